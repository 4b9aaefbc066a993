#!/usr/bin/env python3
"""
Main entry point for the Scale Tally Station.

This module provides a CLI interface for the weighing station. It
coordinates serial acquisition, record persistence, label printing and
Tally sync.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .acquisition.serial_engine import SerialAcquisitionEngine
from .config import Config
from .exceptions import ErrorType, PrinterError, ScaleTallyError
from .models.schema import LabelData, SyncResult, SyncSummary, TallyConfig, WeightReading, WeightRecord
from .models.sync_state import SyncStatus
from .printing.label_renderer import LabelRenderer
from .sync.orchestrator import NOT_CONFIGURED, SyncOrchestrator
from .tally.gateway import TallySyncGateway
from .utils.io_handler import RecordStore
from .utils.logger import setup_logger
from .validation.validator import WeightValidator

PRINT_FAILED = "Record saved but printer failed. Check connection."


class WeighStation:
    """
    Weighing station coordinator.

    This class wires the station together:
    1. Serial acquisition of a weight
    2. Validation and persistence of the record
    3. Label printing (a print failure never undoes the saved record)
    4. Tally sync, on demand, in batch, or right after saving when the
       active configuration has auto_sync set
    """

    def __init__(
        self,
        store: RecordStore,
        config: Optional[TallyConfig] = None,
        engine: Optional[SerialAcquisitionEngine] = None,
        renderer: Optional[LabelRenderer] = None,
        gateway: Optional[TallySyncGateway] = None,
    ):
        """
        Initialize the station with all components.

        Args:
            store: Record persistence
            config: Active Tally configuration, resolved once by the caller
        """
        self.logger = logging.getLogger(self.__class__.__name__)

        self.store = store
        self.config = config
        self.engine = engine or SerialAcquisitionEngine()
        self.renderer = renderer or LabelRenderer()
        self.gateway = gateway or TallySyncGateway()
        self.validator = WeightValidator()
        self.orchestrator = SyncOrchestrator(store, self.gateway, config)

        self.logger.info(f"Initialized {Config.APP_NAME} v{Config.VERSION}")

    async def read_weight(self, path: str, baud_rate: int = Config.DEFAULT_BAUD_RATE,
                          timeout_ms: Optional[int] = None) -> WeightReading:
        return await self.engine.read_weight(path, baud_rate, timeout_ms)

    def _label_for(self, record: WeightRecord) -> LabelData:
        product = self.store.get_product(record.product_id)
        return LabelData(
            product_name=product.name if product else None,
            gross_weight=record.gross_weight,
            tare_weight=record.tare_weight,
            net_weight=record.net_weight,
            unit=record.weight_unit,
            roll_no=record.roll_no,
            date=record.recorded_at,
        )

    async def save_and_print(
        self,
        product_id: str,
        gross_weight,
        tare_weight,
        recorded_by: Optional[str] = None,
        weight_source: str = "scale",
        printer_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Validate and save a weighing, then print its label.

        Returns:
            Dict with the saved 'record', plus 'print_error' when printing
            failed and 'sync' when auto-sync ran

        Raises:
            ValueError: If the weighing is invalid (nothing is saved)
        """
        record = self.validator.create_record(
            product_id=product_id,
            gross_weight=gross_weight,
            tare_weight=tare_weight,
            recorded_by=recorded_by,
            weight_source=weight_source,
        )
        self.store.save(record)
        self.logger.info(f"Saved record {record.roll_no}: net {record.net_weight} {record.weight_unit}")

        result: Dict[str, Any] = {'record': record}

        if printer_name:
            try:
                commands = self.renderer.generate_commands(self._label_for(record))
                await self.renderer.dispatch(commands, printer_name)
            except PrinterError as e:
                self.logger.error(f"Print failed but record was saved: {e}")
                result['print_error'] = PRINT_FAILED

        if self.config is not None and self.config.active and self.config.auto_sync:
            result['sync'] = await self.orchestrator.sync_one(record)

        return result

    async def reprint(self, record_id: str, printer_name: str) -> WeightRecord:
        """
        Print the label of an existing record again.

        Raises:
            RecordNotFound: If no record has this id
            PrinterError: If the printer could not be reached
        """
        record = self.store.get(record_id)
        commands = self.renderer.generate_commands(self._label_for(record))
        await self.renderer.dispatch(commands, printer_name)
        return record

    async def sync_record(self, record_id: str) -> SyncResult:
        return await self.orchestrator.sync_one(self.store.get(record_id))

    async def sync_all(self) -> SyncSummary:
        return await self.orchestrator.sync_all_pending()

    def ignore_record(self, record_id: str) -> WeightRecord:
        return self.orchestrator.ignore(self.store.get(record_id))

    async def test_connection(self, config: Optional[TallyConfig] = None) -> bool:
        config = config or self.config
        if config is None:
            self.logger.error("Configuration missing")
            return False
        return await self.gateway.test_connection(config)

    async def create_master(self, kind: str, name: str, extra: Optional[str] = None) -> SyncResult:
        """
        Create a stock item, godown or unit master in Tally.

        Args:
            kind: 'item', 'godown' or 'unit'
            name: Master name (unit symbol for units)
            extra: Unit for items (default kg), formal name for units
        """
        if self.config is None or not self.config.active:
            return SyncResult(success=False, message=NOT_CONFIGURED, error_type=ErrorType.CONFIG_MISSING)

        if kind == 'item':
            return await self.gateway.create_stock_item(name, extra or Config.DEFAULT_WEIGHT_UNIT, self.config)
        if kind == 'godown':
            return await self.gateway.create_godown(name, self.config)
        if kind == 'unit':
            return await self.gateway.create_unit(name, extra or name, self.config)
        raise ValueError(f"Unknown master type: {kind}")


def _print_result(result: SyncResult) -> int:
    status = "OK" if result.success else f"FAILED [{result.error_type}]"
    print(f"{status}: {result.message}")
    return 0 if result.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Weigh rolls on a serial scale, print labels and sync to Tally",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Find the scale port
  scale-tally ports

  # Read one weight (press PRINT on the scale)
  scale-tally read --port COM3

  # Save a weighing and print its label
  scale-tally record --product P-100 --gross 25.40 --tare 0.60 --printer TSC_TTP_244

  # Push everything pending to Tally
  scale-tally sync-all
        """
    )

    parser.add_argument(
        '--data-dir',
        type=str,
        help='Directory holding records/products/Tally config (default: data/)'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=Config.LOG_LEVEL.upper(),
        help='Logging level (default: INFO)'
    )
    parser.add_argument('--log-file', type=str, help='Also write logs to this file')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('ports', help='List serial ports')

    read = sub.add_parser('read', help='Read one weight from the scale')
    read.add_argument('--port', required=True)
    read.add_argument('--baud-rate', type=int, default=Config.DEFAULT_BAUD_RATE)
    read.add_argument('--timeout-ms', type=int, default=Config.SERIAL_READ_TIMEOUT_MS)

    record = sub.add_parser('record', help='Save a weighing and print its label')
    record.add_argument('--product', required=True)
    record.add_argument('--gross', required=True)
    record.add_argument('--tare', default='0')
    record.add_argument('--operator')
    record.add_argument('--source', choices=['scale', 'manual'], default='scale')
    record.add_argument('--printer', default=Config.DEFAULT_PRINTER)

    reprint = sub.add_parser('reprint', help='Reprint the label of a record')
    reprint.add_argument('record_id')
    reprint.add_argument('--printer', default=Config.DEFAULT_PRINTER, required=Config.DEFAULT_PRINTER is None)

    listing = sub.add_parser('list', help='List weight records, newest first')
    listing.add_argument('--status', choices=[s.value for s in SyncStatus])
    listing.add_argument('--page', type=int, default=1)
    listing.add_argument('--limit', type=int, default=20)

    sync = sub.add_parser('sync', help='Sync one record to Tally')
    sync.add_argument('record_id')

    sub.add_parser('sync-all', help='Sync all pending and failed records')

    ignore = sub.add_parser('ignore', help='Exclude a record from Tally sync')
    ignore.add_argument('record_id')

    sub.add_parser('test-connection', help='Check that the Tally agent is reachable')

    item = sub.add_parser('create-item', help='Create a stock item master in Tally')
    item.add_argument('name')
    item.add_argument('--unit', default=Config.DEFAULT_WEIGHT_UNIT)

    godown = sub.add_parser('create-godown', help='Create a godown master in Tally')
    godown.add_argument('name')

    unit = sub.add_parser('create-unit', help='Create a unit master in Tally')
    unit.add_argument('symbol')
    unit.add_argument('--formal-name')

    export = sub.add_parser('export', help='Export records to CSV')
    export.add_argument('-o', '--output', type=str)

    return parser


async def run(args: argparse.Namespace, station: WeighStation) -> int:
    """Execute one CLI command and return the process exit code."""
    command = args.command

    if command == 'ports':
        for port in station.engine.list_ports():
            print(f"{port.path}\t{port.manufacturer or ''}\t{port.description or ''}")
        return 0

    if command == 'read':
        reading = await station.read_weight(args.port, args.baud_rate, args.timeout_ms)
        print(f"{reading.token}\t(raw: {reading.raw!r})")
        return 0

    if command == 'record':
        result = await station.save_and_print(
            product_id=args.product,
            gross_weight=args.gross,
            tare_weight=args.tare,
            recorded_by=args.operator,
            weight_source=args.source,
            printer_name=args.printer,
        )
        record = result['record']
        print(f"Saved {record.roll_no} ({record.id}): net {record.net_weight} {record.weight_unit}")
        if 'print_error' in result:
            print(result['print_error'])
        if 'sync' in result:
            _print_result(result['sync'])
        return 0

    if command == 'reprint':
        record = await station.reprint(args.record_id, args.printer)
        print(f"Reprinted {record.roll_no}")
        return 0

    if command == 'list':
        if args.status:
            records = station.store.list_by_status([args.status])
            total = len(records)
        else:
            records, total = station.store.list_records(args.page, args.limit)
        for r in records:
            print(
                f"{r.recorded_at:%Y-%m-%d %H:%M}\t{r.roll_no}\t{r.net_weight} {r.weight_unit}\t"
                f"{r.tally_sync_status.value}\t{r.tally_sync_error or ''}"
            )
        print(f"{len(records)} of {total} record(s)")
        return 0

    if command == 'sync':
        return _print_result(await station.sync_record(args.record_id))

    if command == 'sync-all':
        summary = await station.sync_all()
        print(summary.message)
        return 0 if summary.fail_count == 0 and summary.message != NOT_CONFIGURED else 1

    if command == 'ignore':
        record = station.ignore_record(args.record_id)
        print(f"{record.roll_no} excluded from Tally sync")
        return 0

    if command == 'test-connection':
        reachable = await station.test_connection()
        print("Tally Agent reachable" if reachable else "Tally Agent NOT reachable")
        return 0 if reachable else 1

    if command == 'create-item':
        return _print_result(await station.create_master('item', args.name, args.unit))

    if command == 'create-godown':
        return _print_result(await station.create_master('godown', args.name))

    if command == 'create-unit':
        return _print_result(await station.create_master('unit', args.symbol, args.formal_name))

    if command == 'export':
        records = station.store.load_records()
        if args.output:
            output_path = Path(args.output)
        else:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_path = Config.get_export_dir() / f"weight_records_{timestamp}.csv"
        station.store.export_csv(records, output_path)
        print(f"Exported {len(records)} record(s) to {output_path}")
        return 0

    raise ValueError(f"Unknown command: {command}")


def main():
    """Main CLI entry point."""
    args = build_parser().parse_args()

    logger = setup_logger(
        level=args.log_level,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    data_dir = Path(args.data_dir) if args.data_dir else Config.get_data_dir()
    store = RecordStore(data_dir)
    station = WeighStation(store, config=store.active_config())

    try:
        exit_code = asyncio.run(run(args, station))
    except (ScaleTallyError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
