"""
Source detection and data extraction utilities.

Reads spreadsheet exports into raw 2D data (rows x columns of cell strings).
"""

import csv
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


class SourceType(Enum):
    """Supported data source types."""
    CSV = "csv"
    UNKNOWN = "unknown"


def detect_source_type(source: Union[str, Path]) -> SourceType:
    """
    Detect the type of data source from its file extension.
    """
    if str(source).lower().endswith(".csv"):
        return SourceType.CSV
    return SourceType.UNKNOWN


def read_csv_rows(path: Union[str, Path], header_rows: int = 1) -> List[List[str]]:
    """
    Read a CSV file and drop its header rows.

    Args:
        path: CSV file path
        header_rows: Number of leading rows to discard

    Returns:
        List of rows, each a list of cell strings indexed from 0
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"CSV file not found: {file_path}")

    # utf-8-sig strips the BOM spreadsheet tools like to prepend
    with open(file_path, "r", encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f))

    logger.debug(f"[CSV] Read {len(rows)} rows from {file_path.name}, dropping {header_rows} header rows")
    return rows[header_rows:]


def extract_from_source(
    source: Union[str, Path],
    source_type: Optional[SourceType] = None,
    header_rows: int = 1,
) -> List[List[str]]:
    """
    Extract raw 2D data from a source.

    Raises:
        NotImplementedError: If source type is not yet supported
    """
    if source_type is None:
        source_type = detect_source_type(source)

    if source_type == SourceType.CSV:
        return read_csv_rows(source, header_rows=header_rows)

    raise NotImplementedError(f"Unsupported source type for {source}: {source_type.value}")
