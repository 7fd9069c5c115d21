"""
Data models for the measure import pipeline.

Compiled, validated forms of the declarative mapping configurations in
the mappings package. Built once by normalizer.compile_mapping and
treated as read-only afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class FieldKind(Enum):
    """How a sourced field takes its value from a row."""
    DIRECT = "direct"
    DEFAULT = "default"
    TRANSLATION = "translation"


@dataclass(frozen=True)
class FieldMapping:
    """
    Binding of one record field to one CSV column.

    Attributes:
        target_field: Record key to write
        index: Zero-based column index in the row
        kind: DIRECT, DEFAULT or TRANSLATION
        default: Substitute value for empty/falsy cells or translation misses
        has_default: Whether a default was configured (None is a valid default)
        translations: Lowercase raw value -> canonical label
    """
    target_field: str
    index: int
    kind: FieldKind = FieldKind.DIRECT
    default: Any = None
    has_default: bool = False
    translations: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FlagColumns:
    """Checkbox columns collapsed into one list field, in declaration order."""
    target_field: str
    columns: Tuple[Tuple[int, str], ...]


@dataclass(frozen=True)
class SubRecordSpec:
    """
    Layout of the one-to-many sub-record CSV.

    Attributes:
        target_field: List field on the parent record (e.g. "strata")
        foreign_key_index: Column holding the parent's identifier
        fields: Sub-record key -> column index, in output order
        header_rows: Header rows to drop, None to use the run config
    """
    target_field: str
    foreign_key_index: int = 0
    fields: Tuple[Tuple[str, int], ...] = (("name", 1), ("description", 3))
    header_rows: Optional[int] = None


@dataclass(frozen=True)
class MappingSpec:
    """Complete recipe for building records from one primary CSV."""
    id: str
    identifier_field: str
    sourced_fields: Tuple[FieldMapping, ...]
    constant_fields: Dict[str, Any] = field(default_factory=dict)
    flag_fields: Tuple[FlagColumns, ...] = ()
    sub_records: Optional[SubRecordSpec] = None
    header_rows: Optional[int] = None
    performance_year: Optional[int] = None
    schema_type: str = "measures"
