"""Core exceptions for the audit trail and its retention lifecycle."""

from typing import TYPE_CHECKING
from uuid import UUID

from auditvault.utils.exceptions import AuditVaultError

if TYPE_CHECKING:
    from auditvault.db.models.retention import DeletionReceipt


class ContextNotSetError(AuditVaultError):
    """Raised when attempting to access request context that is not set.

    This error indicates a programming error - operations requiring context
    are being called outside of a request_context() context manager.
    """

    def __init__(self, message: str = "Request context is not set"):
        super().__init__(message)


class NoEligibleEventsError(AuditVaultError):
    """Raised when a deletion or postponement has nothing to act on.

    Not fatal: callers report it to the operator and carry on.

    Attributes:
        operation: The operation that found an empty selection
    """

    def __init__(self, operation: str, message: str | None = None):
        super().__init__(message or f"No eligible events for {operation}")
        self.operation = operation

    def __str__(self) -> str:
        return f"NoEligibleEventsError({self.operation}): {self.args[0]}"


class StoreUnavailableError(AuditVaultError):
    """Raised when a persistence call fails.

    The underlying driver or ORM error is chained as ``__cause__``.

    Attributes:
        operation: The store operation that failed
    """

    def __init__(self, operation: str, message: str | None = None):
        super().__init__(message or f"Store unavailable during {operation}")
        self.operation = operation

    def __str__(self) -> str:
        return f"StoreUnavailableError({self.operation}): {self.args[0]}"


class PartialDeletionError(StoreUnavailableError):
    """Raised when a batch deletion fails after some batches were applied.

    Batches before the failing one stay deleted. The run is safe to retry:
    re-selection skips events that are already tombstoned.

    Attributes:
        deleted_count: Events transitioned before the failure
        failed_batch: Zero-based index of the batch that failed
        receipt: Receipt recorded for the applied batches, if one could be written
    """

    def __init__(
        self,
        deleted_count: int,
        failed_batch: int,
        receipt: "DeletionReceipt | None" = None,
    ):
        super().__init__(
            "batch_deletion",
            f"Deletion stopped at batch {failed_batch} after {deleted_count} events",
        )
        self.deleted_count = deleted_count
        self.failed_batch = failed_batch
        self.receipt = receipt


class InvalidTransitionError(AuditVaultError):
    """Raised when a lifecycle or alert status change is not allowed.

    Attributes:
        entity: Kind of record being transitioned
        current: Current status
        target: Requested status
    """

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(f"Cannot move {entity} from '{current}' to '{target}'")
        self.entity = entity
        self.current = current
        self.target = target

    def __str__(self) -> str:
        return f"InvalidTransitionError: {self.args[0]}"


class RecordNotFoundError(AuditVaultError):
    """Raised when a requested record does not exist.

    Attributes:
        entity: Kind of record
        record_id: Identifier that was looked up
    """

    def __init__(self, entity: str, record_id: UUID | str):
        super().__init__(f"{entity} not found: {record_id}")
        self.entity = entity
        self.record_id = record_id

    def __str__(self) -> str:
        return f"RecordNotFoundError: {self.args[0]}"


class IntegrityVerificationError(AuditVaultError):
    """Raised when a deletion receipt fails checksum verification.

    A failed checksum is evidence of tampering or corruption and must be
    escalated rather than accepted.

    Attributes:
        receipt_id: The receipt that failed verification
    """

    def __init__(self, receipt_id: UUID | str):
        super().__init__(f"Deletion receipt failed verification: {receipt_id}")
        self.receipt_id = receipt_id

    def __str__(self) -> str:
        return f"IntegrityVerificationError: {self.args[0]}"
