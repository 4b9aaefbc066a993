"""Tests for the file-backed record store."""

import csv
import json
from datetime import datetime

import pytest

from scale_tally.exceptions import RecordNotFound
from scale_tally.models.sync_state import SYNCABLE, SyncStatus
from scale_tally.utils.io_handler import RecordStore


class TestRecordStore:
    """Test suite for RecordStore."""

    def test_save_and_get(self, store, make_record):
        """Test saving and loading a record."""
        record = store.save(make_record())

        loaded = store.get(record.id)

        assert loaded.model_dump() == record.model_dump()

    def test_save_updates_in_place(self, store, make_record):
        """Test saving an existing record replaces it."""
        record = store.save(make_record())
        record.mark_failed("Tally Agent Connection Failed")
        store.save(record)

        records = store.load_records()

        assert len(records) == 1
        assert records[0].tally_sync_status == SyncStatus.FAILED

    def test_get_missing(self, store):
        """Test lookup of an unknown id."""
        with pytest.raises(RecordNotFound):
            store.get("does-not-exist")

    def test_empty_store(self, tmp_path):
        """Test a store with no files yet."""
        store = RecordStore(tmp_path / "fresh")

        assert store.load_records() == []
        assert store.active_config() is None

    def test_list_records_newest_first_and_paged(self, store, make_record):
        """Test listing order and paging."""
        for day in range(1, 6):
            store.save(make_record(recorded_at=datetime(2025, 12, day, 9, 0)))

        page, total = store.list_records(page=1, limit=2)
        last, _ = store.list_records(page=3, limit=2)

        assert total == 5
        assert [r.recorded_at.day for r in page] == [5, 4]
        assert [r.recorded_at.day for r in last] == [1]

    def test_list_by_status_oldest_first(self, store, make_record):
        """Test status filter and order."""
        late = make_record(recorded_at=datetime(2025, 12, 20))
        early = make_record(recorded_at=datetime(2025, 12, 1))
        early.mark_failed("boom")
        done = make_record(recorded_at=datetime(2025, 12, 10))
        done.mark_synced("5")
        for record in (late, early, done):
            store.save(record)

        records = store.list_by_status(SYNCABLE)

        assert [r.id for r in records] == [early.id, late.id]

    def test_get_product(self, store):
        """Test product lookup."""
        assert store.get_product("P-100").name == "PP Woven Fabric 90gsm"
        assert store.get_product("P-999") is None
        assert store.get_product(None) is None

    def test_active_config(self, store):
        """Test the active configuration is picked."""
        (store.data_dir / "tally_config.json").write_text(json.dumps([
            {"company_name": "Old Co", "active": False},
            {"company_name": "Shree Polymers", "host": "10.0.0.5", "auto_sync": True},
        ]), encoding="utf-8")

        config = store.active_config()

        assert config.company_name == "Shree Polymers"
        assert config.base_url == "http://10.0.0.5:9000/"
        assert config.auto_sync is True

    def test_invalid_json(self, store):
        """Test corrupt records file."""
        (store.data_dir / "records.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid JSON"):
            store.load_records()

    def test_export_csv(self, store, make_record, tmp_path):
        """Test CSV export columns and values."""
        record = store.save(make_record())
        output = tmp_path / "out" / "records.csv"

        store.export_csv([record], output)

        with open(output, newline='', encoding='utf-8') as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1
        assert rows[0]['roll_no'] == "R12345678"
        assert rows[0]['net_weight'] == "24.800"
        assert rows[0]['tally_sync_status'] == "pending"
        assert rows[0]['tally_voucher_id'] == ""

    def test_export_nothing(self, store, tmp_path):
        """Test export with no records writes no file."""
        output = tmp_path / "empty.csv"

        store.export_csv([], output)

        assert not output.exists()
