"""File-backed persistence for weight records.

This module handles the station's local data files:
- records.json: append-only ledger of weight records
- products.json: read-only product references
- tally_config.json: Tally configurations (one flagged active)
and CSV export of the ledger.
"""

import csv
import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..exceptions import RecordNotFound
from ..models.schema import Product, TallyConfig, WeightRecord
from ..models.sync_state import SyncStatus

logger = logging.getLogger(__name__)

RECORDS_FILE = "records.json"
PRODUCTS_FILE = "products.json"
TALLY_CONFIG_FILE = "tally_config.json"

CSV_FIELDS = [
    'id', 'roll_no', 'product_id', 'gross_weight', 'tare_weight', 'net_weight',
    'weight_unit', 'weight_source', 'recorded_by', 'recorded_at',
    'tally_sync_status', 'tally_voucher_id', 'tally_last_sync_attempt', 'tally_sync_error',
]


class RecordStore:
    """
    Stores weight records and reference data as JSON files.

    Records are never deleted; ``save`` inserts a new record or replaces
    the stored copy of an existing one (sync fields only change through
    the record's status methods).
    """

    def __init__(self, data_dir: Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the JSON files
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(self.__class__.__name__)

    def _read_json(self, name: str) -> List[Dict[str, Any]]:
        path = self.data_dir / name
        if not path.exists():
            return []

        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}")

    def _write_json(self, name: str, data: List[Dict[str, Any]]):
        path = self.data_dir / name
        tmp_path = path.with_suffix('.tmp')

        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        tmp_path.replace(path)

    def load_records(self) -> List[WeightRecord]:
        return [WeightRecord.model_validate(item) for item in self._read_json(RECORDS_FILE)]

    def save(self, record: WeightRecord) -> WeightRecord:
        """
        Insert or update a record.

        Args:
            record: Validated weight record

        Returns:
            The saved record
        """
        items = self._read_json(RECORDS_FILE)
        data = record.model_dump(mode='json')

        for i, item in enumerate(items):
            if item.get('id') == record.id:
                items[i] = data
                break
        else:
            items.append(data)

        self._write_json(RECORDS_FILE, items)
        self.logger.debug(f"Saved record {record.id} ({record.tally_sync_status.value})")
        return record

    def get(self, record_id: str) -> WeightRecord:
        for item in self._read_json(RECORDS_FILE):
            if item.get('id') == record_id:
                return WeightRecord.model_validate(item)
        raise RecordNotFound(f"Weight record not found: {record_id}")

    def list_records(self, page: int = 1, limit: int = 20) -> Tuple[List[WeightRecord], int]:
        """
        Page through records, newest first.

        Returns:
            (records on the page, total record count)
        """
        records = sorted(self.load_records(), key=lambda r: r.recorded_at, reverse=True)
        start = (max(page, 1) - 1) * limit
        return records[start:start + limit], len(records)

    def list_by_status(self, statuses: Iterable[SyncStatus]) -> List[WeightRecord]:
        """Records in any of the given sync statuses, oldest first."""
        wanted = {SyncStatus(s) for s in statuses}
        records = [r for r in self.load_records() if r.tally_sync_status in wanted]
        return sorted(records, key=lambda r: r.recorded_at)

    def get_product(self, product_id: Optional[str]) -> Optional[Product]:
        if not product_id:
            return None
        for item in self._read_json(PRODUCTS_FILE):
            if item.get('id') == product_id:
                return Product.model_validate(item)
        return None

    def load_configs(self) -> List[TallyConfig]:
        return [TallyConfig.model_validate(item) for item in self._read_json(TALLY_CONFIG_FILE)]

    def active_config(self) -> Optional[TallyConfig]:
        """The authoritative Tally configuration, or None when none is active."""
        for config in self.load_configs():
            if config.active:
                return config
        return None

    def export_csv(self, records: List[WeightRecord], output_path: Path):
        """
        Write records to a CSV file.

        Args:
            records: Records to export
            output_path: Output file path
        """
        if not records:
            self.logger.warning("No data to write to CSV")
            return

        output_path.parent.mkdir(parents=True, exist_ok=True)

        def convert_value(val):
            if isinstance(val, Decimal):
                return f"{val:.3f}"
            if isinstance(val, datetime):
                return val.isoformat()
            if isinstance(val, SyncStatus):
                return val.value
            if val is None:
                return ''
            return str(val)

        with open(output_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for record in records:
                row = record.model_dump(include=set(CSV_FIELDS))
                writer.writerow({k: convert_value(row.get(k)) for k in CSV_FIELDS})

        self.logger.info(f"Wrote {len(records)} records to {output_path}")
