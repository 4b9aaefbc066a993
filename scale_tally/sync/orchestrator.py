"""Tally sync orchestration for weight records.

Drives each record through map -> encode -> dispatch and applies the
outcome to its sync status. The active TallyConfig is handed in at
construction; it is never looked up mid-operation.

Records are synced strictly one after another: the Tally agent has no
correlation id, so overlapping conversations are unsafe. Nothing guards
against two processes syncing the same record at the same time.
"""

import logging
from typing import Optional

from ..exceptions import ErrorType
from ..models.schema import SyncResult, SyncSummary, TallyConfig, WeightRecord
from ..models.sync_state import SYNCABLE, SyncStatus
from ..tally.codec import build_voucher_xml
from ..tally.gateway import TallySyncGateway
from ..tally.mapper import map_weight_record
from ..utils.io_handler import RecordStore

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Tally is not configured"
ALREADY_SYNCED = "Voucher already synced to Tally"
EXCLUDED = "Record is excluded from Tally sync"


class SyncOrchestrator:
    """
    Syncs weight records to Tally one at a time.

    Per-record state machine (see models.sync_state):
        pending -> synced | failed
        failed  -> synced | failed   (retry)
        synced, ignored: terminal

    A synced record is never posted again: Tally would book the stock
    movement twice.
    """

    def __init__(
        self,
        store: RecordStore,
        gateway: TallySyncGateway,
        config: Optional[TallyConfig] = None,
        source_godown: Optional[str] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            store: Record persistence
            gateway: Transport to the Tally agent
            config: Active Tally configuration (None when not configured)
            source_godown: Godown stock is moved out of (default godown if None)
        """
        self.store = store
        self.gateway = gateway
        self.config = config
        self.source_godown = source_godown
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def is_configured(self) -> bool:
        return self.config is not None and self.config.active

    async def sync_one(self, record: WeightRecord) -> SyncResult:
        """
        Sync a single record.

        Already-synced and ignored records are rejected without contacting
        Tally and are left untouched. Every other outcome stamps the attempt
        time and is recorded on the record.

        Args:
            record: Record to sync

        Returns:
            SyncResult of the attempt
        """
        if record.tally_sync_status == SyncStatus.SYNCED:
            self.logger.info(f"Skipping {record.roll_no}: already synced")
            return SyncResult(success=False, message=ALREADY_SYNCED, error_type=ErrorType.ALREADY_SYNCED)

        if record.tally_sync_status == SyncStatus.IGNORED:
            return SyncResult(success=False, message=EXCLUDED, error_type=ErrorType.IGNORED)

        if not self.is_configured:
            result = SyncResult(success=False, message=NOT_CONFIGURED, error_type=ErrorType.CONFIG_MISSING)
        else:
            result = await self._dispatch(record)

        self._apply(record, result)
        return result

    async def _dispatch(self, record: WeightRecord) -> SyncResult:
        product = self.store.get_product(record.product_id)

        try:
            payload = map_weight_record(record, product)
            xml = build_voucher_xml(payload, self.config, source_godown=self.source_godown)
        except ValueError as e:
            self.logger.error(f"Could not build voucher for {record.roll_no}: {e}")
            return SyncResult(success=False, message=str(e), error_type=ErrorType.UNEXPECTED)

        self.logger.debug(f"Voucher XML for {record.roll_no}:\n{xml}")
        return await self.gateway.send_voucher(xml, self.config)

    def _apply(self, record: WeightRecord, result: SyncResult):
        record.mark_attempt()
        if result.success:
            record.mark_synced(result.voucher_id)
            self.logger.info(f"Record {record.roll_no} synced")
        else:
            record.mark_failed(result.message)
            self.logger.warning(f"Record {record.roll_no} failed: {result.message}")
        self.store.save(record)

    async def sync_all_pending(self) -> SyncSummary:
        """
        Sync every pending or failed record, sequentially.

        One record's failure, including an unexpected exception, never stops
        the remaining records.

        Returns:
            SyncSummary with success/failure counts and per-record results
        """
        if not self.is_configured:
            self.logger.error("Batch sync requested but Tally is not configured")
            return SyncSummary(message=NOT_CONFIGURED)

        records = self.store.list_by_status(SYNCABLE)
        self.logger.info(f"Starting batch sync of {len(records)} record(s)")

        summary = SyncSummary()

        for record in records:
            try:
                result = await self.sync_one(record)
            except Exception as e:
                self.logger.error(f"Unexpected error syncing {record.roll_no}: {e}", exc_info=True)
                result = SyncResult(
                    success=False, message=f"Unexpected error: {e}", error_type=ErrorType.UNEXPECTED
                )
                self._record_unexpected(record, result)

            summary.results.append(result)
            if result.success:
                summary.success_count += 1
            else:
                summary.fail_count += 1

        summary.message = (
            f"Sync completed: {summary.success_count} successful, {summary.fail_count} failed."
        )
        self.logger.info(summary.message)
        return summary

    def _record_unexpected(self, record: WeightRecord, result: SyncResult):
        try:
            self._apply(record, result)
        except Exception as e:
            self.logger.error(f"Could not record failure for {record.roll_no}: {e}")

    def ignore(self, record: WeightRecord) -> WeightRecord:
        """
        Exclude a record from Tally sync.

        Raises:
            InvalidTransition: If the record is already synced or ignored
        """
        record.mark_ignored()
        self.store.save(record)
        self.logger.info(f"Record {record.roll_no} excluded from Tally sync")
        return record
