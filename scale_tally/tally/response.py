"""Reading of Tally import responses.

Tally answers an import with HTTP 200 even when it rejected the data; the
outcome is in the body::

    <RESPONSE>
      <LINEERROR>Stock Item 'X' does not exist!</LINEERROR>
      <CREATED>0</CREATED> ... <ERRORS>1</ERRORS>
    </RESPONSE>

A body is a business failure when it holds a LINEERROR element or an
ERRORS element with a nonzero count.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Tally returned an unknown error during import"

XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>')
LINEERROR_TEXT = re.compile(r'<LINEERROR>(.*?)</LINEERROR>', re.DOTALL)
ERRORS_TEXT = re.compile(r'<ERRORS>\s*(\d+)\s*</ERRORS>')

VOUCHER_ID_TAGS = ("LASTVCHID", "LASTVID")


class ImportOutcome(NamedTuple):
    error: Optional[str]
    voucher_id: Optional[str]


def _count(text: Optional[str]) -> int:
    try:
        return int((text or '').strip())
    except ValueError:
        return 0


def _scan_text(body: str) -> ImportOutcome:
    match = LINEERROR_TEXT.search(body)
    if match:
        return ImportOutcome(match.group(1).strip() or GENERIC_ERROR, None)

    errors = ERRORS_TEXT.search(body)
    if errors and int(errors.group(1)) > 0:
        return ImportOutcome(GENERIC_ERROR, None)

    return ImportOutcome(None, None)


def read_import_response(body: str) -> ImportOutcome:
    """
    Classify an import response body.

    Args:
        body: Response text from the Tally agent

    Returns:
        ImportOutcome with the first line error (None on success) and the
        voucher id Tally reported, if any
    """
    if not body or not body.strip():
        return ImportOutcome(None, None)

    try:
        root = ET.fromstring(XML_DECLARATION.sub('', body, count=1))
    except (ET.ParseError, ValueError):
        logger.warning("Tally response is not well-formed XML, scanning text")
        return _scan_text(body)

    for line_error in root.iter("LINEERROR"):
        return ImportOutcome((line_error.text or '').strip() or GENERIC_ERROR, None)

    for errors in root.iter("ERRORS"):
        if _count(errors.text) > 0:
            return ImportOutcome(GENERIC_ERROR, None)

    voucher_id = None
    for tag in VOUCHER_ID_TAGS:
        element = root.find(f".//{tag}") if root.tag != tag else root
        if element is not None and _count(element.text) > 0:
            voucher_id = element.text.strip()
            break

    return ImportOutcome(None, voucher_id)
