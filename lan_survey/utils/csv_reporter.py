"""
CSV input and output for the LAN survey.

This module reads the persisted inventory (any supported header layout),
renders inventory and cycle rows with standard CSV quoting, and provides
the RowSink that streams cycle rows to stdout and an optional file.
"""

import csv
import io
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TextIO

from ..core.data_models import CYCLE_COLUMNS, HostRecord, InventoryEntry
from ..core.inventory_schema import normalize_header
from .error_handler import InventoryFileError
from .logger import get_logger
from .network_utils import is_valid_ip

logger = get_logger(__name__)


def format_row(values: Iterable[str]) -> str:
    """
    Render one CSV line without its terminator.

    Quotes are doubled; a field is quoted when it contains a quote, a
    comma, CR or LF.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(["" if value is None else str(value) for value in values])
    return buffer.getvalue()[:-1]


def render_rows(header: List[str], rows: Iterable[List[str]]) -> str:
    """Render a header and rows as CSV text with \\n line ends."""
    lines = [format_row(header)]
    lines.extend(format_row(row) for row in rows)
    return "\n".join(lines) + "\n"


def parse_inventory(content: str, path: Optional[str] = None) -> Dict[str, InventoryEntry]:
    """
    Parse inventory CSV text into entries keyed by IP.

    Args:
        content: File content, BOM already removed
        path: Inventory path, used in error messages

    Returns:
        Dict[str, InventoryEntry]: Entries in file order

    Raises:
        InventoryFileError: On an empty file, a bad header or a malformed row
    """
    rows = [
        (line_number, row)
        for line_number, row in enumerate(csv.reader(io.StringIO(content)), start=1)
        if any(cell.strip() for cell in row)
    ]
    if not rows:
        raise InventoryFileError("Inventory file is empty", path=path)

    _, header = rows[0]
    _, columns = normalize_header([cell.strip() for cell in header], path=path)

    entries: Dict[str, InventoryEntry] = {}
    for line_number, row in rows[1:]:
        if len(row) < 3:
            raise InventoryFileError("Malformed inventory row", path=path, line_number=line_number)

        values = {column: "" for column in columns}
        for column, value in zip(columns, row):
            values[column] = value.strip()

        ip = values["ip"]
        if not ip:
            raise InventoryFileError("Inventory row has an empty ip", path=path, line_number=line_number)
        if not is_valid_ip(ip):
            raise InventoryFileError(
                f"Inventory row has an invalid ip: {ip}", path=path, line_number=line_number
            )

        entries[ip] = InventoryEntry(**values)

    return entries


def read_inventory(path: Optional[str], allow_missing: bool) -> Dict[str, InventoryEntry]:
    """
    Load the persisted inventory.

    Args:
        path: Inventory file path; None means no inventory
        allow_missing: Treat a missing file as an empty inventory

    Returns:
        Dict[str, InventoryEntry]: Entries keyed by IP

    Raises:
        InventoryFileError: If the file is missing (and not allowed to be),
            unreadable or malformed
    """
    if not path:
        return {}

    inventory_path = Path(path)
    if not inventory_path.exists():
        if allow_missing:
            logger.warning(f"Inventory {path} not found - starting with an empty inventory")
            return {}
        raise InventoryFileError("Cannot read inventory file", path=path)

    try:
        content = inventory_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise InventoryFileError(f"Cannot read inventory file: {e}", path=path) from e

    entries = parse_inventory(content, path=path)
    logger.debug(f"Loaded {len(entries)} inventory entries from {path}")
    return entries


def write_text(path: str, content: str) -> None:
    """
    Rewrite a file with UTF-8 text.

    Raises:
        InventoryFileError: If the file cannot be written
    """
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as e:
        raise InventoryFileError(f"Cannot write inventory file: {e}", path=path) from e


class RowSink:
    """
    Destination for cycle rows.

    Every cycle starts with the header. Rows go to the primary stream
    (stdout by default) and, when an output path is set, to that file,
    which is rewritten each cycle.
    """

    def __init__(self, output_path: Optional[str] = None, stream: Optional[TextIO] = None):
        self.output_path = output_path
        self.stream = stream or sys.stdout
        self._file: Optional[TextIO] = None
        self.rows_written = 0

    def begin_cycle(self) -> None:
        if self.output_path:
            try:
                self._file = open(self.output_path, "w", encoding="utf-8", newline="")
            except OSError as e:
                logger.warning(f"Cannot open output file {self.output_path}: {e}")
                self._file = None
        self.rows_written = 0
        self._write_line(format_row(CYCLE_COLUMNS))

    def emit(self, record: HostRecord) -> None:
        self._write_line(format_row(record.to_row()))
        self.rows_written += 1

    def end_cycle(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _write_line(self, line: str) -> None:
        self.stream.write(line + "\n")
        self.stream.flush()
        if self._file is not None:
            self._file.write(line + "\n")
