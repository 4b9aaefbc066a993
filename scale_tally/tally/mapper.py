"""Mapping of weight records to Tally voucher payloads."""

import time
from decimal import Decimal
from typing import Optional

from ..config import Config
from ..models.schema import Product, TallyVoucherPayload, WeightRecord

NOT_LINKED = "Product Not Linked"
UNKNOWN_ITEM = "Unknown Item"


def format_tally_date(value) -> str:
    """Encode a date/datetime as Tally's YYYYMMDD."""
    return value.strftime("%Y%m%d")


def _fmt(value: Optional[Decimal]) -> str:
    return f"{value:.2f}" if value is not None else "0.00"


def resolve_item_name(product: Optional[Product]) -> str:
    if product is None:
        return NOT_LINKED
    return product.name or UNKNOWN_ITEM


def build_narration(record: WeightRecord) -> str:
    """Fixed, ordered narration kept stable for audit on the Tally side."""
    unit = record.weight_unit or Config.DEFAULT_WEIGHT_UNIT
    return " | ".join([
        f"Roll No: {record.roll_no or 'NONE'}",
        f"Gross: {_fmt(record.gross_weight)}{unit}",
        f"Tare: {_fmt(record.tare_weight)}{unit}",
        f"Net: {_fmt(record.net_weight)}{unit}",
        f"Operator ID: {record.recorded_by or 'System'}",
    ])


def map_weight_record(record: WeightRecord, product: Optional[Product] = None) -> TallyVoucherPayload:
    """
    Convert a weight record into a Tally-ready payload.

    Tally rejects zero or negative quantities, so a non-positive net weight
    is sent as the minimum quantity (0.001).

    Args:
        record: Persisted weight record
        product: Linked product, if it could be resolved

    Returns:
        TallyVoucherPayload for the codec
    """
    net = record.net_weight
    quantity = net if net > 0 else Config.MIN_VOUCHER_QUANTITY

    return TallyVoucherPayload(
        roll_no=record.roll_no or f"ERP-{int(time.time() * 1000)}",
        item_name=resolve_item_name(product),
        quantity=quantity,
        unit=record.weight_unit or Config.DEFAULT_WEIGHT_UNIT,
        date=format_tally_date(record.recorded_at),
        gross_weight=record.gross_weight,
        tare_weight=record.tare_weight,
        narration=build_narration(record),
    )
