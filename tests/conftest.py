"""
Shared fixtures for the quality measures normalizer tests.

Builds quality measure rows in the 61-column layout of the measures
spreadsheet export and writes them to CSV files with two header rows.
"""

import csv
import sys
from pathlib import Path
from typing import Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from config import ImportConfig  # noqa: E402

ROW_WIDTH = 61

HEADER_ROWS = [
    ["", "Measure Title", "eMeasure ID", "NQF eMeasure ID", "NQF", "Quality #", "Description"],
    ["", "", "", "", "", "", ""],
]

STRATA_HEADER_ROWS = [
    ["Measure ID", "Stratum Name", "Notes", "Stratum Description"],
    ["", "", "", ""],
]


def make_row(cells: Dict[int, str], width: int = ROW_WIDTH) -> List[str]:
    """Row of empty cells with the given column values filled in."""
    row = [""] * width
    for index, value in cells.items():
        row[index] = value
    return row


def measure_row(measure_id: str = "001", **overrides: str) -> List[str]:
    """
    A complete, schema-valid quality measure row.

    Keyword overrides use the form ``c<index>="value"``.
    """
    cells = {
        1: "Diabetes: Hemoglobin A1c (HbA1c) Poor Control (>9%)",
        2: "CMS122v6",
        3: "0059",
        4: "0059",
        5: measure_id,
        6: "Percentage of patients 18-75 years of age with diabetes who had hemoglobin A1c > 9.0%",
        7: "Effective Clinical Care",
        8: "Intermediate Outcome",
        9: "National Committee for Quality Assurance",
        10: "X",
        12: "TRUE",
        15: "x",
        28: "x",
        51: "singlePerformanceRate",
        52: "2017",
        53: "N/A",
        55: "TRUE",
        56: "TRUE",
        60: "simpleAverage",
    }
    for key, value in overrides.items():
        cells[int(key.lstrip("c"))] = value
    return make_row(cells)


def write_csv(path: Path, rows: List[List[str]], header_rows: List[List[str]] = HEADER_ROWS) -> Path:
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerows(header_rows)
        writer.writerows(rows)
    return path


@pytest.fixture
def config() -> ImportConfig:
    return ImportConfig(schema_root=ROOT / "schemas")


@pytest.fixture
def quality_csvs(tmp_path):
    """Quality + strata CSV pair: two measures, one with two strata."""
    quality = write_csv(tmp_path / "quality.csv", [measure_row("001"), measure_row("236", c8="Process", c56="")])
    strata = write_csv(
        tmp_path / "strata.csv",
        [
            ["236", "Stratum 1", "", "Patients 18-85 with hypertension"],
            ["", "", "", ""],
            [" 236 ", " Stratum 2 ", "x", " Patients with diabetes "],
        ],
        header_rows=STRATA_HEADER_ROWS,
    )
    return quality, strata
