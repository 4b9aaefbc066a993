"""Data models for weighing and Tally sync."""

from .schema import (
    LabelData,
    LedgerMappings,
    PortInfo,
    Product,
    SyncResult,
    SyncSummary,
    TallyConfig,
    TallyVoucherPayload,
    ValidationResult,
    WeightReading,
    WeightRecord,
)
from .sync_state import SyncStatus

__all__ = [
    "LabelData",
    "LedgerMappings",
    "PortInfo",
    "Product",
    "SyncResult",
    "SyncStatus",
    "SyncSummary",
    "TallyConfig",
    "TallyVoucherPayload",
    "ValidationResult",
    "WeightReading",
    "WeightRecord",
]
