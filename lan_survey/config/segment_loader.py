"""
Loader for the segment list.

Each non-blank line names one segment and its range:

    office   192.168.1.0/24
    lab      10.20.0.0/26
"""

from pathlib import Path
from typing import List, Optional

from ..core.data_models import Segment
from ..utils.error_handler import SegmentFileError, ValidationError
from ..utils.logger import get_logger
from ..utils.network_utils import mask_from_prefix, parse_cidr

logger = get_logger(__name__)


def parse_segments(content: str, path: Optional[str] = None) -> List[Segment]:
    """
    Parse segment list text into segments in declaration order.

    Args:
        content: File content, BOM already removed
        path: Segment list path, used in error messages

    Returns:
        List[Segment]: Parsed segments

    Raises:
        SegmentFileError: On a malformed line, a bad CIDR or an empty list
    """
    segments = []
    for line_number, line in enumerate(content.splitlines(), start=1):
        parts = line.split()
        if not parts:
            continue
        if len(parts) != 2:
            raise SegmentFileError(
                "Segment line must contain a name and a CIDR", path=path, line_number=line_number
            )

        name, cidr = parts
        try:
            address, prefix = parse_cidr(cidr)
        except ValidationError as e:
            raise SegmentFileError(str(e), path=path, line_number=line_number) from e

        segments.append(Segment(
            name=name,
            cidr=cidr,
            network_address=address & mask_from_prefix(prefix),
            prefix_length=prefix,
        ))

    if not segments:
        raise SegmentFileError("Segment list is empty", path=path)

    return segments


def load_segments(path: str) -> List[Segment]:
    """
    Read and parse the segment list file.

    Raises:
        SegmentFileError: If the file cannot be read or is malformed
    """
    try:
        content = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise SegmentFileError(f"Cannot read segment list: {e}", path=path) from e

    segments = parse_segments(content, path=path)
    logger.debug(f"Loaded {len(segments)} segments from {path}")
    return segments
