"""TSPL label rendering and dispatch for TSC thermal printers.

Labels are 100 x 150 mm at 203 DPI. Commands are written to a temporary
file and handed to the OS print spooler as a raw job; the temporary file
is removed whatever the outcome.
"""

import asyncio
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

from ..config import Config
from ..exceptions import PrinterError
from ..models.schema import LabelData

logger = logging.getLogger(__name__)

LABEL_SETUP = [
    "SIZE 100 mm, 150 mm",
    "GAP 3 mm, 0 mm",
    "DIRECTION 1",
    "REFERENCE 0,0",
    "OFFSET 0 mm",
    "SET PEEL OFF",
    "SET CUTTER OFF",
    "SET TEAR ON",
    "CLS",
]

LABEL_HEADER = "FACTORY ERP - WEIGHT LABEL"


def _tspl_text(value: str) -> str:
    # TSPL strings cannot contain a bare double quote
    return value.replace('"', "'")


class LabelRenderer:
    """
    Builds TSPL command streams and sends them to a named printer.

    Printing is independent of persistence: a dispatch failure raises
    PrinterError for the caller to report, it never undoes a saved record.
    """

    def __init__(self, platform: Optional[str] = None):
        """
        Initialize the renderer.

        Args:
            platform: sys.platform value deciding the spooler command
                (defaults to the running platform)
        """
        self.platform = platform or sys.platform
        self.logger = logging.getLogger(self.__class__.__name__)

    def generate_commands(self, data: LabelData) -> str:
        """
        Render a label as TSPL.

        Args:
            data: Label fields

        Returns:
            TSPL command stream, identical for identical input
        """
        unit = data.unit
        product = _tspl_text(data.product_name[:Config.LABEL_PRODUCT_WIDTH])
        roll_no = _tspl_text(data.roll_no)

        lines = LABEL_SETUP + [
            "",
            f'TEXT 50,40,"3",0,1,1,"{LABEL_HEADER}"',
            "",
            f'QRCODE 50,90,M,6,A,0,"{roll_no}"',
            "",
            'TEXT 220,100,"3",0,1,1,"Roll No:"',
            f'TEXT 220,130,"4",0,1,1,"{roll_no}"',
            "",
            f'TEXT 50,260,"3",0,1,1,"Product: {product}"',
            f'TEXT 50,310,"3",0,1,1,"Gross: {data.gross_weight:.2f} {unit}"',
            f'TEXT 50,360,"3",0,1,1,"Tare:  {data.tare_weight:.2f} {unit}"',
            f'TEXT 50,410,"4",0,1,1,"NET:   {data.net_weight:.2f} {unit}"',
            f'TEXT 50,470,"2",0,1,1,"Date: {data.date.strftime(Config.LABEL_DATE_FORMAT)}"',
            "",
            "PRINT 1,1",
        ]
        return "\n".join(lines) + "\n"

    def spool_command(self, file_path: str, destination: str) -> List[str]:
        """Command that copies a raw file to the named print queue."""
        if self.platform.startswith("win"):
            # Printer must be shared under this name
            return ["cmd", "/c", "copy", "/B", file_path, f"\\\\localhost\\{destination}"]
        return ["lp", "-d", destination, "-o", "raw", file_path]

    async def dispatch(self, commands: str, destination: str) -> bool:
        """
        Send a TSPL stream to a printer through the OS spooler.

        Args:
            commands: TSPL command stream
            destination: Registered printer/queue name

        Returns:
            True once the spooler accepted the job

        Raises:
            PrinterError: Spooler missing, printer unreachable or unshared
        """
        fd, temp_name = tempfile.mkstemp(prefix="label_", suffix=".tspl")
        temp_path = Path(temp_name)

        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(commands.encode('utf-8'))

            argv = self.spool_command(str(temp_path), destination)
            self.logger.debug(f"Spooling label: {' '.join(argv)}")

            try:
                process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise PrinterError(f"Printing service error: {e}") from e

            _, stderr = await process.communicate()

            if process.returncode != 0:
                detail = stderr.decode(errors='replace').strip() if stderr else ''
                self.logger.error(f"Printer Error on '{destination}': {detail or process.returncode}")
                raise PrinterError(
                    "Failed to send data to printer. Check printer connection and sharing."
                )

            self.logger.info(f"Label sent to printer '{destination}'")
            return True

        finally:
            temp_path.unlink(missing_ok=True)
