"""Unit tests for deletion receipt checksums."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from uuid_utils.compat import uuid7

from auditvault.compliance.retention.integrity import (
    compute_checksum,
    format_timestamp,
    verify,
    verify_or_raise,
)
from auditvault.core.exceptions import IntegrityVerificationError
from auditvault.db.models.retention import DeletionReceipt

DELETED_AT = datetime(2024, 4, 1, 12, 0, 0, 123456, tzinfo=UTC)


def receipt() -> DeletionReceipt:
    return DeletionReceipt(
        receipt_id=uuid7(),
        deleted_by="Maria",
        deleted_count=42,
        deleted_at=DELETED_AT,
        verification_checksum=compute_checksum(42, "Maria", DELETED_AT),
    )


class TestFormatTimestamp:
    def test_millisecond_precision_with_z(self):
        assert format_timestamp(DELETED_AT) == "2024-04-01T12:00:00.123Z"

    def test_converts_to_utc(self):
        local = datetime(2024, 4, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_timestamp(local) == "2024-04-01T12:00:00.000Z"

    def test_naive_taken_as_utc(self):
        assert format_timestamp(datetime(2024, 4, 1, 12, 0)) == "2024-04-01T12:00:00.000Z"


class TestComputeChecksum:
    def test_deterministic(self):
        first = compute_checksum(42, "Maria", DELETED_AT)
        second = compute_checksum(42, "Maria", DELETED_AT)

        assert first == second

    def test_lowercase_hex(self):
        checksum = compute_checksum(42, "Maria", DELETED_AT)

        assert checksum
        assert all(c in "0123456789abcdef" for c in checksum)
        assert len(checksum) <= 8

    @pytest.mark.parametrize(
        "count,actor,moment",
        [
            (43, "Maria", DELETED_AT),
            (42, "José", DELETED_AT),
            (42, "Maria", DELETED_AT + timedelta(milliseconds=1)),
        ],
    )
    def test_sensitive_to_every_field(self, count, actor, moment):
        assert compute_checksum(count, actor, moment) != compute_checksum(42, "Maria", DELETED_AT)

    def test_sub_millisecond_changes_ignored(self):
        later = DELETED_AT + timedelta(microseconds=100)

        assert compute_checksum(42, "Maria", later) == compute_checksum(42, "Maria", DELETED_AT)


class TestVerify:
    def test_untouched_receipt_verifies(self):
        assert verify(receipt()) is True

    def test_altered_count_fails(self):
        r = receipt()
        r.deleted_count = 41

        assert verify(r) is False

    def test_altered_actor_fails(self):
        r = receipt()
        r.deleted_by = "Someone else"

        assert verify(r) is False

    def test_missing_checksum_fails(self):
        r = receipt()
        r.verification_checksum = None

        assert verify(r) is False

    def test_verify_or_raise(self):
        verify_or_raise(receipt())

        tampered = receipt()
        tampered.deleted_count = 0
        with pytest.raises(IntegrityVerificationError) as exc_info:
            verify_or_raise(tampered)

        assert exc_info.value.receipt_id == tampered.receipt_id
