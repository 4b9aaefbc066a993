"""Tests for the weight record model and sync state machine."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from scale_tally.exceptions import InvalidTransition
from scale_tally.models.schema import TallyConfig, WeightRecord
from scale_tally.models.sync_state import SyncStatus, can_transition, transition


class TestWeightRecord:
    """Test suite for WeightRecord invariants."""

    def test_net_weight_is_derived(self, make_record):
        """Test net weight computed from gross and tare."""
        record = make_record(gross="25.40", tare="0.60")
        assert record.net_weight == Decimal("24.80")

    def test_defaults(self, make_record):
        """Test record defaults."""
        record = WeightRecord(product_id="P-1", gross_weight=Decimal("5"), tare_weight=Decimal("1"))
        assert record.tally_sync_status == SyncStatus.PENDING
        assert record.weight_unit == "kg"
        assert record.weight_source == "scale"
        assert record.roll_no.startswith("R")
        assert len(record.roll_no) == 9

    def test_gross_equal_to_tare_allowed(self, make_record):
        """Test zero net weight is valid."""
        record = make_record(gross="2.00", tare="2.00")
        assert record.net_weight == 0

    @pytest.mark.parametrize("gross,tare", [("0", "0"), ("-1", "0"), ("5", "-1"), ("5", "6")])
    def test_invalid_weights_rejected(self, make_record, gross, tare):
        """Test impossible weight combinations."""
        with pytest.raises(ValidationError):
            make_record(gross=gross, tare=tare)

    def test_inconsistent_net_rejected(self):
        """Test supplied net weight that does not add up."""
        with pytest.raises(ValidationError, match="Net weight"):
            WeightRecord(
                product_id="P-1",
                gross_weight=Decimal("10"),
                tare_weight=Decimal("1"),
                net_weight=Decimal("8"),
            )

    def test_invalid_source_rejected(self, make_record):
        """Test unknown weight source."""
        with pytest.raises(ValidationError):
            make_record(weight_source="guess")

    def test_round_trip_through_json(self, make_record):
        """Test record survives JSON storage."""
        record = make_record()
        restored = WeightRecord.model_validate(record.model_dump(mode='json'))
        assert restored.model_dump() == record.model_dump()


class TestSyncTransitions:
    """Test suite for the sync status transition table."""

    @pytest.mark.parametrize("current,target", [
        (SyncStatus.PENDING, SyncStatus.SYNCED),
        (SyncStatus.PENDING, SyncStatus.FAILED),
        (SyncStatus.FAILED, SyncStatus.FAILED),
        (SyncStatus.FAILED, SyncStatus.SYNCED),
        (SyncStatus.PENDING, SyncStatus.IGNORED),
    ])
    def test_allowed(self, current, target):
        """Test permitted status changes."""
        assert can_transition(current, target)
        assert transition(current, target) == target

    @pytest.mark.parametrize("current,target", [
        (SyncStatus.SYNCED, SyncStatus.PENDING),
        (SyncStatus.SYNCED, SyncStatus.FAILED),
        (SyncStatus.IGNORED, SyncStatus.PENDING),
        (SyncStatus.FAILED, SyncStatus.PENDING),
    ])
    def test_rejected(self, current, target):
        """Test forbidden status changes."""
        with pytest.raises(InvalidTransition):
            transition(current, target)

    def test_record_cannot_leave_synced(self, make_record):
        """Test synced is terminal on the record."""
        record = make_record()
        record.mark_synced("42")

        with pytest.raises(InvalidTransition):
            record.tally_sync_status = SyncStatus.PENDING
        with pytest.raises(InvalidTransition):
            record.mark_failed("boom")

        assert record.tally_sync_status == SyncStatus.SYNCED
        assert record.tally_voucher_id == "42"

    def test_mark_synced_clears_error(self, make_record):
        """Test sync success clears the previous error."""
        record = make_record()
        record.mark_failed("Tally Agent Connection Failed")
        record.mark_synced()

        assert record.tally_sync_status == SyncStatus.SYNCED
        assert record.tally_sync_error is None


class TestTallyConfig:
    """Test suite for TallyConfig."""

    def test_defaults_and_url(self):
        """Test Tally config defaults and agent URL."""
        config = TallyConfig(company_name="Demo Co")
        assert config.base_url == "http://127.0.0.1:9000/"
        assert config.default_godown == "Main Location"
        assert config.ledger_mappings.stock_ledger == "Internal Consumption"
        assert config.active is True
        assert config.auto_sync is False

    def test_company_required(self):
        """Test empty company name."""
        with pytest.raises(ValidationError):
            TallyConfig(company_name="")
