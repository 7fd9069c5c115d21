"""
Measure record normalizer.

Builds schema-shaped measure records from the rows of a primary CSV export
using a declarative mapping configuration (see the mappings package), then
attaches sub-records (performance rate strata) from a secondary CSV keyed
by measure id.

Pipeline: read -> build -> validate -> write. Any row or sub-record error
aborts the run before output is written; schema violations are reported
and also prevent the write.
"""

import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from config import ImportConfig, get_config
from mappings import DEFAULT_MAPPING_ID, apply_column_overrides, get_mapping_by_id
from models import FieldKind, FieldMapping, FlagColumns, MappingSpec, SubRecordSpec
from schema import SchemaValidationError, ValidationReport, validate_records
from sources import extract_from_source
from transforms import clean_input, is_checked, map_input

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Row = Sequence[str]


class ErrorKind(Enum):
    """Machine-readable category of a normalization failure."""
    MISSING_COLUMN = "missing_column"
    UNRESOLVED_FOREIGN_KEY = "unresolved_foreign_key"
    INVALID_MAPPING = "invalid_mapping"


class NormalizationError(Exception):
    """Raised when normalization fails."""
    kind: Optional[ErrorKind] = None


class MappingConfigError(NormalizationError, ValueError):
    """The mapping configuration itself is malformed."""
    kind = ErrorKind.INVALID_MAPPING


class MissingColumnError(NormalizationError):
    """A mapped column index does not exist in a source row."""
    kind = ErrorKind.MISSING_COLUMN

    def __init__(self, column_index: int, row_number: Optional[int] = None, target_field: Optional[str] = None):
        self.column_index = column_index
        self.row_number = row_number
        self.target_field = target_field
        message = f"Column {column_index} does not exist in source data"
        if target_field:
            message += f" (field '{target_field}'"
            message += f", row {row_number})" if row_number is not None else ")"
        elif row_number is not None:
            message += f" (row {row_number})"
        super().__init__(message)


class UnresolvedForeignKeyError(NormalizationError):
    """A sub-record points at a record id the primary source does not contain."""
    kind = ErrorKind.UNRESOLVED_FOREIGN_KEY

    def __init__(self, foreign_key: str, primary_source: str, sub_record_source: str):
        self.foreign_key = foreign_key
        self.primary_source = primary_source
        self.sub_record_source = sub_record_source
        super().__init__(
            f"Measure id: {foreign_key} does not exist in {primary_source} "
            f"but does exist in {sub_record_source}"
        )


# ============================================================================
# Mapping compilation
# ============================================================================

def _check_index(index: Any, where: str) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise MappingConfigError(f"{where}: column index must be a non-negative integer, got {index!r}")
    return index


def _compile_field(target_field: str, entry: Any) -> FieldMapping:
    if not isinstance(entry, dict):
        return FieldMapping(target_field, _check_index(entry, target_field))

    if "index" not in entry:
        raise MappingConfigError(f"{target_field}: mapping entry has no 'index'")
    index = _check_index(entry["index"], target_field)
    has_default = "default" in entry
    translations = entry.get("mappings")

    if translations is not None:
        for key in translations:
            if not isinstance(key, str) or key != clean_input(key):
                raise MappingConfigError(
                    f"{target_field}: translation key {key!r} must be lowercase with no surrounding whitespace"
                )
        return FieldMapping(
            target_field,
            index,
            kind=FieldKind.TRANSLATION,
            default=entry.get("default"),
            has_default=has_default,
            translations=dict(translations),
        )

    if not has_default:
        raise MappingConfigError(f"{target_field}: mapping entry needs 'mappings' or 'default'")
    return FieldMapping(target_field, index, kind=FieldKind.DEFAULT, default=entry["default"], has_default=True)


def compile_mapping(mapping_config: Mapping[str, Any]) -> MappingSpec:
    """
    Validate a mapping configuration dictionary and compile it to a MappingSpec.

    Raises:
        MappingConfigError: On negative/non-integer column indexes, translation
            keys that are not lowercase, or entries without index/default/mappings
    """
    metadata = mapping_config.get("metadata", {})
    mapping_id = mapping_config.get("id", "unknown")

    sourced = tuple(
        _compile_field(name, entry)
        for name, entry in mapping_config.get("sourced_fields", {}).items()
    )

    flags = []
    for target_field, columns in mapping_config.get("flag_fields", {}).items():
        pairs = tuple((_check_index(int(idx), target_field), label) for idx, label in columns.items())
        flags.append(FlagColumns(target_field, pairs))

    sub_records = None
    sub_config = mapping_config.get("sub_records")
    if sub_config:
        fields = sub_config.get("fields", {"name": 1, "description": 3})
        sub_records = SubRecordSpec(
            target_field=sub_config.get("target_field", "strata"),
            foreign_key_index=_check_index(sub_config.get("foreign_key", 0), "sub_records.foreign_key"),
            fields=tuple((name, _check_index(idx, f"sub_records.{name}")) for name, idx in fields.items()),
            header_rows=sub_config.get("header_rows"),
        )

    return MappingSpec(
        id=mapping_id,
        identifier_field=metadata.get("identifier_field", "measureId"),
        sourced_fields=sourced,
        constant_fields=dict(mapping_config.get("constant_fields", {})),
        flag_fields=tuple(flags),
        sub_records=sub_records,
        header_rows=metadata.get("header_rows"),
        performance_year=metadata.get("performance_year"),
        schema_type=metadata.get("schema_type", "measures"),
    )


# ============================================================================
# Row level resolution
# ============================================================================

def _cell(row: Row, index: int, target_field: str, row_number: Optional[int]) -> str:
    if index >= len(row) or row[index] is None:
        raise MissingColumnError(index, row_number, target_field)
    return row[index]


def resolve_fields(
    row: Row,
    fields: Iterable[FieldMapping],
    valid_years: Iterable[int] = (),
    strict_defaults: bool = False,
    row_number: Optional[int] = None,
) -> Record:
    """
    Resolve the sourced fields of one record from one CSV row.

    Direct fields are omitted when the cell is empty. Default fields take
    their default whenever the normalized value is falsy, so a legitimate
    False or 0 is replaced too; strict_defaults limits substitution to empty
    cells. Translation misses fall back to the default, or omit the field
    when no default is configured.

    Raises:
        MissingColumnError: If the row is too short for any mapped column
    """
    years = tuple(valid_years)
    record: Record = {}

    for mapping in fields:
        raw = _cell(row, mapping.index, mapping.target_field, row_number)

        if mapping.kind == FieldKind.DIRECT:
            if raw != "":
                record[mapping.target_field] = map_input(raw, years)
            continue

        if mapping.kind == FieldKind.TRANSLATION:
            value = mapping.translations.get(clean_input(raw))
            if value is not None:
                record[mapping.target_field] = value
            elif mapping.has_default:
                record[mapping.target_field] = mapping.default
            continue

        value = map_input(raw, years)
        if strict_defaults:
            empty = raw.strip() == ""
            record[mapping.target_field] = mapping.default if empty else value
        else:
            record[mapping.target_field] = value or mapping.default

    return record


def get_checked_columns(row: Row, columns: Iterable, valid_years: Iterable[int] = ()) -> List[str]:
    """
    Collect labels of the checkbox columns that are checked in a row.

    Used when multiple csv columns map into a single measure field. Columns
    missing from the row count as unchecked. Labels come back in the order
    the columns were declared.
    """
    pairs = columns.items() if isinstance(columns, Mapping) else columns
    years = tuple(valid_years)
    checked = []
    for index, label in pairs:
        index = int(index)
        value = row[index] if 0 <= index < len(row) else None
        if is_checked(value, years):
            checked.append(label)
    return checked


# ============================================================================
# Sub-records
# ============================================================================

def add_sub_records(
    records: List[Record],
    sub_record_rows: Iterable[Row],
    spec: SubRecordSpec,
    identifier_field: str = "measureId",
    primary_source: str = "primary source",
    sub_record_source: str = "sub-record source",
) -> List[Record]:
    """
    Attach each sub-record row to the record whose identifier matches its foreign key.

    The records list is modified in place and returned. Rows with a blank
    foreign key are separators and skipped.

    Raises:
        UnresolvedForeignKeyError: If a foreign key matches no record
        MissingColumnError: If a sub-record row is too short
    """
    by_id: Dict[Any, Record] = {}
    for record in records:
        # first match wins for duplicated identifiers
        by_id.setdefault(record.get(identifier_field), record)

    attached = 0
    for row_number, row in enumerate(sub_record_rows, 1):
        fk_index = spec.foreign_key_index
        if fk_index >= len(row) or not (row[fk_index] or "").strip():
            continue

        foreign_key = row[fk_index].strip()
        sub_record = {
            name: _cell(row, index, f"{spec.target_field}.{name}", row_number).strip()
            for name, index in spec.fields
        }

        record = by_id.get(foreign_key)
        if record is None:
            raise UnresolvedForeignKeyError(foreign_key, primary_source, sub_record_source)

        record.setdefault(spec.target_field, []).append(sub_record)
        attached += 1

    logger.debug(f"[add_sub_records] Attached {attached} {spec.target_field} entries")
    return records


# ============================================================================
# Record builder
# ============================================================================

def build_record(row: Row, spec: MappingSpec, config: ImportConfig, row_number: Optional[int] = None) -> Record:
    """Build one record: sourced fields, then constants (which win), then flag lists."""
    years = config.valid_performance_years
    record = resolve_fields(
        row,
        spec.sourced_fields,
        valid_years=years,
        strict_defaults=config.strict_defaults,
        row_number=row_number,
    )

    for key, value in spec.constant_fields.items():
        record[key] = value

    for flag in spec.flag_fields:
        record[flag.target_field] = get_checked_columns(row, flag.columns, years)

    return record


def build_records(
    primary_rows: Iterable[Row],
    sub_record_rows: Optional[Iterable[Row]],
    spec: MappingSpec,
    config: Optional[ImportConfig] = None,
    primary_source: str = "primary source",
    sub_record_source: str = "sub-record source",
) -> List[Record]:
    """
    Build the full record collection from primary rows and attach sub-records.

    Stops at the first error; there is no partial result.
    """
    config = get_config(config)
    records = [
        build_record(row, spec, config, row_number=row_number)
        for row_number, row in enumerate(primary_rows, 1)
    ]
    logger.debug(f"[build_records] Built {len(records)} records with mapping {spec.id}")

    if spec.sub_records is not None and sub_record_rows is not None:
        add_sub_records(
            records,
            sub_record_rows,
            spec.sub_records,
            identifier_field=spec.identifier_field,
            primary_source=primary_source,
            sub_record_source=sub_record_source,
        )
    return records


# ============================================================================
# Output
# ============================================================================

def serialize_records(records: List[Record]) -> str:
    """Pretty-print records as JSON with stable 2-space indentation."""
    return json.dumps(records, indent=2, ensure_ascii=False)


def write_records(output_path: Union[str, Path], text: str) -> Path:
    """
    Write output atomically: a temp file in the target directory replaces the old file.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return path


def normalize_quality_measures(
    primary_source: Union[str, Path],
    sub_record_source: Optional[Union[str, Path]],
    output_path: Optional[Union[str, Path]] = None,
    mapping_id: str = DEFAULT_MAPPING_ID,
    config: Optional[ImportConfig] = None,
    column_overrides: Optional[Mapping[str, Any]] = None,
    validate: Optional[bool] = None,
    raise_on_invalid: bool = False,
) -> Dict[str, Any]:
    """
    Import a quality measures CSV and its strata CSV into measure records.

    Args:
        primary_source: Quality measures CSV path
        sub_record_source: Strata CSV path (None to skip sub-records)
        output_path: JSON output path; nothing is written when None
        mapping_id: Mapping configuration to use
        config: Run configuration (defaults to ImportConfig.from_env())
        column_overrides: Column index overrides merged into the mapping
        validate: Validate before writing (defaults to config.validate_before_write)
        raise_on_invalid: Raise SchemaValidationError instead of returning a failed result

    Returns:
        Dictionary with:
            - "success": Records built, valid (or not validated) and written
            - "total_records": Number of records built
            - "data": List of record dictionaries
            - "errors": Structured schema violations
            - "validation": ValidationReport or None
            - "output_path": Written path or None

    Raises:
        NormalizationError: On missing columns, unresolved foreign keys or a bad mapping
    """
    config = get_config(config)
    mapping_config = get_mapping_by_id(mapping_id)
    if not mapping_config:
        raise MappingConfigError(f"Mapping '{mapping_id}' not found")
    spec = compile_mapping(apply_column_overrides(mapping_config, column_overrides))

    header_rows = spec.header_rows if spec.header_rows is not None else config.header_rows
    primary_rows = extract_from_source(primary_source, header_rows=header_rows)

    sub_rows = None
    if sub_record_source is not None and spec.sub_records is not None:
        sub_header_rows = spec.sub_records.header_rows
        sub_rows = extract_from_source(
            sub_record_source,
            header_rows=sub_header_rows if sub_header_rows is not None else config.header_rows,
        )

    records = build_records(
        primary_rows,
        sub_rows,
        spec,
        config,
        primary_source=str(primary_source),
        sub_record_source=str(sub_record_source),
    )

    result: Dict[str, Any] = {
        "success": False,
        "total_records": len(records),
        "data": records,
        "errors": [],
        "validation": None,
        "output_path": None,
    }

    if validate is None:
        validate = config.validate_before_write
    if validate:
        year = spec.performance_year or config.current_performance_year
        report: ValidationReport = validate_records(records, spec.schema_type, year, config.schema_root)
        result["validation"] = report
        if not report.valid:
            logger.error(f"[normalize_quality_measures] Invalid for {year} performance year schema: {report.summary}")
            result["errors"] = report.errors
            if raise_on_invalid:
                raise SchemaValidationError(report)
            return result

    if output_path is not None:
        result["output_path"] = write_records(output_path, serialize_records(records))
        logger.info(f"[normalize_quality_measures] Wrote {len(records)} records to {output_path}")

    result["success"] = True
    return result
