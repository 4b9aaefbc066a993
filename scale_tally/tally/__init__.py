"""Tally mapping, XML codec and HTTP gateway."""

from .codec import build_godown_xml, build_stock_item_xml, build_unit_xml, build_voucher_xml
from .gateway import TallySyncGateway
from .mapper import map_weight_record

__all__ = [
    "TallySyncGateway",
    "build_godown_xml",
    "build_stock_item_xml",
    "build_unit_xml",
    "build_voucher_xml",
    "map_weight_record",
]
