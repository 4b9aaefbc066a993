"""Shared fixtures for the station tests."""

import json
from datetime import datetime
from decimal import Decimal

import pytest

from scale_tally.models.schema import TallyConfig, WeightRecord
from scale_tally.utils.io_handler import RecordStore


@pytest.fixture
def tally_config() -> TallyConfig:
    """Fixture to provide an active Tally configuration."""
    return TallyConfig(
        host="192.168.1.20",
        port=9000,
        company_name="Shree Polymers",
        default_godown="Main Location",
    )


@pytest.fixture
def make_record():
    """Factory for valid weight records."""
    def _make(gross="25.40", tare="0.60", **kwargs):
        kwargs.setdefault('product_id', 'P-100')
        kwargs.setdefault('recorded_by', 'operator-7')
        kwargs.setdefault('recorded_at', datetime(2025, 12, 15, 10, 30))
        kwargs.setdefault('roll_no', 'R12345678')
        return WeightRecord(gross_weight=Decimal(gross), tare_weight=Decimal(tare), **kwargs)
    return _make


@pytest.fixture
def store(tmp_path) -> RecordStore:
    """Fixture to provide a store with two products."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "products.json").write_text(json.dumps([
        {"id": "P-100", "name": "PP Woven Fabric 90gsm", "unit": "kg"},
        {"id": "P-200", "name": None},
    ]), encoding="utf-8")
    return RecordStore(data_dir)
