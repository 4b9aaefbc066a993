"""Tally XML import documents.

Every document shares the same envelope::

    ENVELOPE
      HEADER/TALLYREQUEST            "Import Data"
      BODY/IMPORTDATA
        REQUESTDESC
          REPORTNAME                 "Vouchers" | "All Masters"
          STATICVARIABLES/SVCURRENTCOMPANY
        REQUESTDATA/TALLYMESSAGE     one voucher or master element

A weighing is booked as a Stock Journal moving the quantity from the
source godown into the destination godown. With the default settings both
are the same godown, so the stock effect is zero and the voucher is an
audit record of the weighing.
"""

import xml.etree.ElementTree as ET
from datetime import datetime
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from ..config import Config
from ..models.schema import TallyConfig, TallyVoucherPayload

VOUCHER_TYPE = "Stock Journal"


def _envelope(report_name: str, company_name: str):
    """Build the shared envelope and return (root, TALLYMESSAGE)."""
    root = ET.Element("ENVELOPE")

    header = ET.SubElement(root, "HEADER")
    ET.SubElement(header, "TALLYREQUEST").text = "Import Data"

    import_data = ET.SubElement(ET.SubElement(root, "BODY"), "IMPORTDATA")
    request_desc = ET.SubElement(import_data, "REQUESTDESC")
    ET.SubElement(request_desc, "REPORTNAME").text = report_name
    static_vars = ET.SubElement(request_desc, "STATICVARIABLES")
    ET.SubElement(static_vars, "SVCURRENTCOMPANY").text = company_name

    request_data = ET.SubElement(import_data, "REQUESTDATA")
    message = ET.SubElement(request_data, "TALLYMESSAGE", {"xmlns:UDF": "TallyUDF"})
    return root, message


def _serialize(root: ET.Element) -> str:
    ET.indent(root)
    return ET.tostring(root, encoding="unicode")


def voucher_date(date_str: str) -> str:
    """
    Normalize a YYYYMMDD date to the first day of its month.

    Tally Educational mode only accepts the 1st, 2nd and last day of a
    month, so only month and year survive into the voucher.
    """
    day = datetime.strptime(date_str, "%Y%m%d") + relativedelta(day=1)
    return day.strftime("%Y%m%d")


def format_quantity(quantity: Decimal, unit: str) -> str:
    if quantity <= 0:
        quantity = Config.MIN_VOUCHER_QUANTITY
    return f"{format(quantity, 'f')} {unit}"


def _inventory_entry(parent: ET.Element, tag: str, item_name: str, qty: str, godown: str, inward: bool):
    entry = ET.SubElement(parent, tag)
    deemed_positive = "Yes" if inward else "No"
    ET.SubElement(entry, "STOCKITEMNAME").text = item_name
    ET.SubElement(entry, "ISDEEMEDPOSITIVE").text = deemed_positive
    ET.SubElement(entry, "ISLASTDEEMEDPOSITIVE").text = deemed_positive
    ET.SubElement(entry, "ACTUALQTY").text = qty
    ET.SubElement(entry, "BILLEDQTY").text = qty

    batch = ET.SubElement(entry, "BATCHALLOCATIONS.LIST")
    ET.SubElement(batch, "GODOWNNAME").text = godown
    ET.SubElement(batch, "ACTUALQTY").text = qty
    ET.SubElement(batch, "BILLEDQTY").text = qty
    return entry


def build_voucher_xml(
    payload: TallyVoucherPayload,
    config: TallyConfig,
    source_godown: Optional[str] = None
) -> str:
    """
    Build a Stock Journal voucher for one weighing.

    Args:
        payload: Mapped voucher data
        config: Active Tally configuration
        source_godown: Godown the stock leaves from (defaults to the
            configured default godown)

    Returns:
        XML document as a string

    Raises:
        ValueError: If the payload has no date
    """
    if not payload.date:
        raise ValueError("Voucher date is required for Stock Journal")

    qty = format_quantity(payload.quantity, payload.unit)
    to_godown = config.default_godown or Config.DEFAULT_GODOWN
    from_godown = source_godown or to_godown

    root, message = _envelope("Vouchers", config.company_name)

    voucher = ET.SubElement(message, "VOUCHER", {"VCHTYPE": VOUCHER_TYPE, "ACTION": "Create"})
    ET.SubElement(voucher, "DATE").text = voucher_date(payload.date)
    ET.SubElement(voucher, "VOUCHERTYPENAME").text = VOUCHER_TYPE
    ET.SubElement(voucher, "VOUCHERNUMBER").text = payload.roll_no
    ET.SubElement(voucher, "NARRATION").text = payload.narration or ""

    _inventory_entry(voucher, "INVENTORYENTRIESIN.LIST", payload.item_name, qty, to_godown, inward=True)
    _inventory_entry(voucher, "INVENTORYENTRIESOUT.LIST", payload.item_name, qty, from_godown, inward=False)

    return _serialize(root)


def build_stock_item_xml(item_name: str, unit: str, config: TallyConfig) -> str:
    """Stock item master under the primary group."""
    root, message = _envelope("All Masters", config.company_name)

    item = ET.SubElement(message, "STOCKITEM", {"NAME": item_name, "ACTION": "Create"})
    ET.SubElement(item, "NAME").text = item_name
    ET.SubElement(item, "PARENT")
    ET.SubElement(item, "UNITS").text = unit
    ET.SubElement(item, "GSTAPPLICABLE").text = "Applicable"
    ET.SubElement(item, "ISGSTGOODS").text = "Yes"

    return _serialize(root)


def build_godown_xml(godown_name: str, config: TallyConfig) -> str:
    root, message = _envelope("All Masters", config.company_name)

    godown = ET.SubElement(message, "GODOWN", {"NAME": godown_name, "ACTION": "Create"})
    ET.SubElement(godown, "NAME").text = godown_name
    ET.SubElement(godown, "PARENT")

    return _serialize(root)


def build_unit_xml(symbol: str, formal_name: str, config: TallyConfig) -> str:
    """Simple unit of measure with three decimal places."""
    root, message = _envelope("All Masters", config.company_name)

    unit = ET.SubElement(message, "UNIT", {"NAME": symbol, "ACTION": "Create"})
    ET.SubElement(unit, "NAME").text = symbol
    ET.SubElement(unit, "ISSYMBOLONLY").text = "No"
    ET.SubElement(unit, "FORMALNAME").text = formal_name or symbol
    ET.SubElement(unit, "DECIMALPLACES").text = "3"

    return _serialize(root)
