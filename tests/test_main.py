"""Tests for the weighing station and CLI."""

import asyncio
from decimal import Decimal

import pytest

from scale_tally.exceptions import ErrorType, PrinterError
from scale_tally.main import PRINT_FAILED, WeighStation, build_parser, run
from scale_tally.models.schema import SyncResult, WeightReading
from scale_tally.models.sync_state import SyncStatus


class FakeRenderer:
    def __init__(self, fail=False):
        self.fail = fail
        self.dispatched = []

    def generate_commands(self, label):
        return f"PRINT {label.roll_no}\n"

    async def dispatch(self, commands, destination):
        if self.fail:
            raise PrinterError(f"Printer '{destination}' is not available")
        self.dispatched.append((commands, destination))
        return True


class FakeEngine:
    def __init__(self, reading):
        self.reading = reading

    async def read_weight(self, path, baud_rate, timeout_ms):
        return self.reading


class FakeGateway:
    def __init__(self, reachable=True):
        self.sent = []
        self.reachable = reachable

    async def send_voucher(self, xml, config):
        self.sent.append(xml)
        return SyncResult(success=True, message="Sync Successful", voucher_id="901")

    async def test_connection(self, config):
        return self.reachable

    async def create_godown(self, name, config):
        self.sent.append(name)
        return SyncResult(success=True, message="Sync Successful")


class TestWeighStation:
    """Test suite for WeighStation."""

    def test_save_and_print(self, store):
        """Test a weighing is saved and printed."""
        renderer = FakeRenderer()
        station = WeighStation(store, renderer=renderer, gateway=FakeGateway())

        result = asyncio.run(station.save_and_print("P-100", "25.40", "0.60", printer_name="TSC"))

        record = result['record']
        assert record.net_weight == Decimal("24.80")
        assert store.get(record.id).roll_no == record.roll_no
        assert renderer.dispatched[0][1] == "TSC"
        assert 'print_error' not in result
        assert 'sync' not in result

    def test_print_failure_keeps_record(self, store):
        """Test printer failure after the record was saved."""
        station = WeighStation(store, renderer=FakeRenderer(fail=True), gateway=FakeGateway())

        result = asyncio.run(station.save_and_print("P-100", "25.40", "0.60", printer_name="TSC"))

        assert result['print_error'] == PRINT_FAILED
        assert store.get(result['record'].id).tally_sync_status == SyncStatus.PENDING

    def test_invalid_weighing_not_saved(self, store):
        """Test invalid weights leave the store empty."""
        station = WeighStation(store, renderer=FakeRenderer(), gateway=FakeGateway())

        with pytest.raises(ValueError):
            asyncio.run(station.save_and_print("P-100", "1", "5"))

        assert store.load_records() == []

    def test_auto_sync(self, store, tally_config):
        """Test sync right after saving when enabled."""
        tally_config.auto_sync = True
        gateway = FakeGateway()
        station = WeighStation(store, config=tally_config, renderer=FakeRenderer(), gateway=gateway)

        result = asyncio.run(station.save_and_print("P-100", "25.40", "0.60"))

        assert result['sync'].success is True
        assert len(gateway.sent) == 1
        assert store.get(result['record'].id).tally_voucher_id == "901"

    def test_reprint(self, store, make_record):
        """Test printing a stored record again."""
        record = store.save(make_record())
        renderer = FakeRenderer()
        station = WeighStation(store, renderer=renderer, gateway=FakeGateway())

        asyncio.run(station.reprint(record.id, "TSC"))

        assert renderer.dispatched == [("PRINT R12345678\n", "TSC")]

    def test_test_connection_without_config(self, store):
        """Test connection check with no configuration."""
        station = WeighStation(store, gateway=FakeGateway())
        assert asyncio.run(station.test_connection()) is False

    def test_create_master_requires_config(self, store):
        """Test master creation with no configuration."""
        station = WeighStation(store, gateway=FakeGateway())

        result = asyncio.run(station.create_master('godown', "Warehouse B"))

        assert result.error_type == ErrorType.CONFIG_MISSING

    def test_create_master_unknown_kind(self, store, tally_config):
        """Test unsupported master type."""
        station = WeighStation(store, config=tally_config, gateway=FakeGateway())

        with pytest.raises(ValueError):
            asyncio.run(station.create_master('ledger', "Cash"))


class TestCli:
    """Test suite for CLI command dispatch."""

    def _run(self, station, *argv):
        return asyncio.run(run(build_parser().parse_args(list(argv)), station))

    def test_read_reports_scale_unit(self, store, capsys):
        """Test that the read command prints the unit the scale sent."""
        reading = WeightReading(value=Decimal("12.50"), unit="lb", raw="12.50 lb")
        station = WeighStation(store, engine=FakeEngine(reading), gateway=FakeGateway())

        assert self._run(station, "read", "--port", "COM3") == 0

        out = capsys.readouterr().out
        assert out.startswith("12.50 lb")
        assert "kg" not in out

    def test_record_and_list(self, store, capsys):
        """Test record and list commands."""
        station = WeighStation(store, renderer=FakeRenderer(), gateway=FakeGateway())

        assert self._run(station, "record", "--product", "P-100", "--gross", "25.40", "--tare", "0.60",
                         "--printer", "TSC") == 0
        assert self._run(station, "list", "--status", "pending") == 0

        out = capsys.readouterr().out
        assert "Saved R" in out
        assert "1 of 1 record(s)" in out

    def test_sync_all_without_config_fails(self, store, make_record, capsys):
        """Test batch sync command exit code when unconfigured."""
        store.save(make_record())
        station = WeighStation(store, gateway=FakeGateway())

        assert self._run(station, "sync-all") == 1
        assert "not configured" in capsys.readouterr().out

    def test_sync_one(self, store, make_record, tally_config):
        """Test sync command."""
        record = store.save(make_record())
        station = WeighStation(store, config=tally_config, gateway=FakeGateway())

        assert self._run(station, "sync", record.id) == 0
        assert store.get(record.id).tally_sync_status == SyncStatus.SYNCED

    def test_ignore(self, store, make_record):
        """Test ignore command."""
        record = store.save(make_record())
        station = WeighStation(store, gateway=FakeGateway())

        assert self._run(station, "ignore", record.id) == 0
        assert store.get(record.id).tally_sync_status == SyncStatus.IGNORED

    def test_export(self, store, make_record, tmp_path):
        """Test export command."""
        store.save(make_record())
        output = tmp_path / "export.csv"
        station = WeighStation(store, gateway=FakeGateway())

        assert self._run(station, "export", "-o", str(output)) == 0
        assert output.read_text(encoding="utf-8").startswith("id,roll_no")
