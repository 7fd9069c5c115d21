"""
Cell value transforms.

Converts raw spreadsheet cell strings into the typed values used by the
measures schema. Spreadsheet authors write TRUE, True, true, X or x for
checked boxes and often leave stray spaces around values.
"""

import re
from typing import Any, Iterable, Optional, Union

NormalizedValue = Union[bool, None, int, str]

TRUE_VALUES = frozenset({"true", "x"})
FALSE_VALUES = frozenset({"false"})
NULL_VALUES = frozenset({"null", "n/a"})

# plain ASCII decimal notation only
NUMBER_PATTERN = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)(e[+-]?[0-9]+)?")


def clean_input(value: str) -> str:
    """Trim and lowercase a cell for comparisons."""
    return value.strip().lower()


def parse_year(cleaned: str, valid_years: Iterable[int]) -> Optional[int]:
    """
    Return the cell as an int when it is one of the valid performance years.

    Accepts decimal spellings of the year ("2018", "2018.0", "2.018e3").
    """
    if not NUMBER_PATTERN.fullmatch(cleaned):
        return None
    number = float(cleaned)
    if not number.is_integer():
        return None
    year = int(number)
    return year if year in valid_years else None


def map_input(value: str, valid_years: Iterable[int] = ()) -> NormalizedValue:
    """
    Map a raw CSV cell to its representation in the measures schema.

    Args:
        value: Raw cell string
        valid_years: Whitelist of numeric performance years

    Returns:
        True/False for checkbox values, None for "null"/"n/a", an int for a
        valid performance year, otherwise the trimmed original string
    """
    cleaned = clean_input(value)
    if cleaned in TRUE_VALUES:
        return True
    if cleaned in FALSE_VALUES:
        return False
    if cleaned in NULL_VALUES:
        return None

    year = parse_year(cleaned, valid_years)
    if year is not None:
        return year

    # not one of the special cases, keep the author's casing
    return value.strip()


def is_checked(value: Optional[Any], valid_years: Iterable[int] = ()) -> bool:
    """True when a checkbox cell normalizes to boolean True. Absent cells are unchecked."""
    if not isinstance(value, str):
        return False
    return map_input(value, valid_years) is True
