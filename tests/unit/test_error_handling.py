"""Unit tests for store error translation and domain exceptions."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from auditvault.core.error_handling import store_errors, store_operation
from auditvault.core.exceptions import (
    InvalidTransitionError,
    NoEligibleEventsError,
    PartialDeletionError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from auditvault.utils.exceptions import AuditVaultError


def db_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


class Service:
    def __init__(self):
        self.db = AsyncMock()

    @store_errors("load")
    async def load(self):
        raise db_error()

    @store_errors()
    async def compute(self):
        return 42

    @store_errors("lookup")
    async def lookup(self):
        raise RecordNotFoundError("AuditEvent", "abc")


@pytest.mark.asyncio
class TestStoreErrors:
    async def test_translates_and_rolls_back(self):
        service = Service()

        with pytest.raises(StoreUnavailableError) as exc_info:
            await service.load()

        assert exc_info.value.operation == "load"
        assert isinstance(exc_info.value.__cause__, OperationalError)
        service.db.rollback.assert_awaited_once()

    async def test_passes_results_through(self):
        assert await Service().compute() == 42

    async def test_domain_errors_untouched(self):
        service = Service()

        with pytest.raises(RecordNotFoundError):
            await service.lookup()

        service.db.rollback.assert_not_awaited()

    async def test_failed_rollback_keeps_original_error(self):
        service = Service()
        service.db.rollback.side_effect = SQLAlchemyError("rollback failed")

        with pytest.raises(StoreUnavailableError) as exc_info:
            await service.load()

        assert isinstance(exc_info.value.__cause__, OperationalError)


@pytest.mark.asyncio
class TestStoreOperation:
    async def test_context_manager_form(self):
        db = AsyncMock()

        with pytest.raises(StoreUnavailableError) as exc_info:
            async with store_operation(db, "select_ready_events"):
                raise db_error()

        assert exc_info.value.operation == "select_ready_events"
        db.rollback.assert_awaited_once()

    async def test_without_session(self):
        with pytest.raises(StoreUnavailableError):
            async with store_operation(None, "standalone"):
                raise db_error()


class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(PartialDeletionError, StoreUnavailableError)
        for exc_type in (
            NoEligibleEventsError,
            StoreUnavailableError,
            InvalidTransitionError,
            RecordNotFoundError,
        ):
            assert issubclass(exc_type, AuditVaultError)

    def test_partial_deletion_message(self):
        error = PartialDeletionError(200, 2)

        assert error.operation == "batch_deletion"
        assert error.receipt is None
        assert "batch 2 after 200 events" in str(error)

    def test_no_eligible_events_default_message(self):
        error = NoEligibleEventsError("batch_deletion")

        assert str(error) == (
            "NoEligibleEventsError(batch_deletion): No eligible events for batch_deletion"
        )

    def test_invalid_transition_attributes(self):
        error = InvalidTransitionError("RetentionAlert", "deleted", "exported")

        assert error.current == "deleted"
        assert error.target == "exported"
        assert "from 'deleted' to 'exported'" in str(error)
