"""Tamper-evidence checksum for deletion receipts.

The checksum is a 32-bit rolling hash (multiplier 31) over the compact JSON
of ``{"deletedCount", "deletedBy", "timestamp"}``, taken over UTF-16 code
units and rendered as the hex of its absolute value. It detects accidental
or casual edits; it is not a cryptographic signature.
"""

import json
from datetime import UTC, datetime

from auditvault.core.exceptions import IntegrityVerificationError
from auditvault.core.logging import get_logger
from auditvault.db.models.retention import DeletionReceipt

logger = get_logger(__name__)

_MASK_32 = 0xFFFFFFFF


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _rolling_hash(text: str) -> int:
    encoded = text.encode("utf-16-le")
    value = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + unit) & _MASK_32
    if value & 0x80000000:
        value -= 1 << 32
    return value


def compute_checksum(deleted_count: int, deleted_by: str, deleted_at: datetime) -> str:
    """Checksum over a receipt's count, actor and deletion time."""
    payload = json.dumps(
        {
            "deletedCount": deleted_count,
            "deletedBy": deleted_by,
            "timestamp": format_timestamp(deleted_at),
        },
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return format(abs(_rolling_hash(payload)), "x")


def verify(receipt: DeletionReceipt) -> bool:
    """Recompute the checksum from the stored fields and compare.

    Returns False when the receipt carries no checksum.
    """
    if not receipt.verification_checksum:
        return False
    expected = compute_checksum(receipt.deleted_count, receipt.deleted_by, receipt.deleted_at)
    return expected == receipt.verification_checksum


def verify_or_raise(receipt: DeletionReceipt) -> None:
    """Verify a receipt and escalate a mismatch.

    Raises:
        IntegrityVerificationError: If the checksum is missing or does not match
    """
    if not verify(receipt):
        logger.error(
            "receipt_verification_failed",
            receipt_id=str(receipt.receipt_id),
            deleted_count=receipt.deleted_count,
            deleted_by=receipt.deleted_by,
        )
        raise IntegrityVerificationError(receipt.receipt_id)
