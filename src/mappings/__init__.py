"""
Mappings module - Contains all dataset mapping configurations
"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .quality_measures_mappings import (
    MEASURE_SETS,
    MEASURE_TYPES,
    QUALITY_MEASURES_MAPPINGS,
    SUBMISSION_METHODS,
)

DEFAULT_MAPPING_ID = "source_quality_measures_2018"

ALL_MAPPINGS = QUALITY_MEASURES_MAPPINGS


def get_mapping_by_id(mapping_id: str) -> Optional[Dict[str, Any]]:
    """
    Get a mapping configuration by its ID.

    Args:
        mapping_id: The unique ID of the mapping configuration

    Returns:
        Mapping configuration dictionary or None if not found
    """
    for mapping in ALL_MAPPINGS:
        if mapping.get("id") == mapping_id:
            return mapping

    return None


def get_mappings_by_source_type(source_type: str) -> List[Dict[str, Any]]:
    """
    Get all mappings for a specific source type (e.g. "csv").
    """
    return [
        mapping for mapping in ALL_MAPPINGS
        if mapping.get("metadata", {}).get("source_type") == source_type
    ]


def load_column_overrides(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load column index overrides from a YAML file.

    The file mirrors the mapping sections it overrides, e.g.::

        sourced_fields:
          metricType: 50
          isInverse: 57
        flag_fields:
          submissionMethods:
            10: claims
    """
    with open(path, "r", encoding="utf-8") as f:
        overrides = yaml.safe_load(f) or {}
    if not isinstance(overrides, dict):
        raise ValueError(f"Column overrides in {path} must be a mapping, got {type(overrides).__name__}")
    return overrides


def apply_column_overrides(
    mapping_config: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """
    Merge column overrides into a copy of a mapping configuration.

    Sourced fields given as a bare index keep any translation table or
    default from the base entry and only move to the new column. Flag
    field overrides replace the whole column map for that field.
    Metadata entries (such as header_rows) are merged key by key.
    Missing entries fall back to the base so callers only specify deltas.
    """
    merged = copy.deepcopy(dict(mapping_config))
    if not overrides:
        return merged

    sourced = merged.setdefault("sourced_fields", {})
    for field_name, entry in (overrides.get("sourced_fields") or {}).items():
        base = sourced.get(field_name)
        if isinstance(entry, int) and isinstance(base, dict):
            sourced[field_name] = {**base, "index": entry}
        else:
            sourced[field_name] = entry

    flags = merged.setdefault("flag_fields", {})
    for field_name, columns in (overrides.get("flag_fields") or {}).items():
        flags[field_name] = {int(k): v for k, v in columns.items()}

    if overrides.get("metadata"):
        merged["metadata"] = {**merged.get("metadata", {}), **overrides["metadata"]}

    if overrides.get("sub_records"):
        merged["sub_records"] = {**merged.get("sub_records", {}), **overrides["sub_records"]}

    return merged


__all__ = [
    "ALL_MAPPINGS",
    "DEFAULT_MAPPING_ID",
    "MEASURE_SETS",
    "MEASURE_TYPES",
    "QUALITY_MEASURES_MAPPINGS",
    "SUBMISSION_METHODS",
    "apply_column_overrides",
    "get_mapping_by_id",
    "get_mappings_by_source_type",
    "load_column_overrides",
]
