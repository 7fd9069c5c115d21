"""
Schema validation utilities.

Validates normalized data against versioned JSON Schema documents stored
as YAML (<schema_root>/<type>/<year>/<type>-schema.yaml). Schemas may use
the ``uniqueItemProperties`` keyword: a list of property names whose
values must be unique across the elements of an array.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml
from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import SchemaError
from jsonschema.exceptions import ValidationError as JsonSchemaError

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when schema validation fails."""
    pass


class SchemaValidationError(ValidationError):
    """Raised by callers that opt into failing on an invalid collection."""

    def __init__(self, report: "ValidationReport"):
        super().__init__(report.summary)
        self.report = report


class SchemaLoadError(ValidationError):
    """Raised when a schema document cannot be parsed or is not a valid schema."""
    pass


@dataclass
class ValidationReport:
    """
    Outcome of validating one document.

    Attributes:
        valid: True when no violations were found
        errors: Structured violations (path, message, keyword, expected, actual, schema_path)
        summary: One-line human readable description of all violations
    """
    valid: bool
    errors: List[Dict[str, Any]] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": self.errors, "summary": self.summary}


# never a json.dumps result, so absent properties only collide with each other
_ABSENT_KEY = "<absent>"


def _value_key(item: Dict[str, Any], prop: str) -> str:
    if prop not in item:
        return _ABSENT_KEY
    # canonical form so unhashable values (lists, objects) can be compared
    return json.dumps(item[prop], sort_keys=True)


def unique_item_properties(validator, properties, instance, schema) -> Iterator[JsonSchemaError]:
    """
    ``uniqueItemProperties`` keyword: no two array items may share a value
    for any one of the named properties. An absent property counts as a
    value, so two objects that both lack it are duplicates. Non-object
    items are ignored.
    """
    if not validator.is_type(instance, "array"):
        return

    for prop in properties:
        seen: Dict[str, int] = {}
        for index, item in enumerate(instance):
            if not isinstance(item, dict):
                continue
            key = _value_key(item, prop)
            if key in seen:
                first = seen[key]
                shown = repr(item[prop]) if prop in item else "(missing)"
                yield JsonSchemaError(
                    f"items {first} and {index} have the same {prop!r} value {shown}",
                    path=(index, prop),
                    instance=[instance[first], item],
                )
            else:
                seen[key] = index


RecordsValidator = validators.extend(
    Draft7Validator,
    {"uniqueItemProperties": unique_item_properties},
)


def schema_path_for(schema_type: str, performance_year: Union[int, str], schema_root: Union[str, Path]) -> Path:
    """Location of a schema document for a record type and performance year."""
    year = str(performance_year)
    return Path(schema_root) / schema_type / year / f"{schema_type}-schema.yaml"


def load_schema(schema_type: str, performance_year: Union[int, str], schema_root: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML schema document.

    Raises:
        FileNotFoundError: If no schema exists for the type and year
        SchemaLoadError: If the document is not YAML or not a valid JSON Schema
    """
    path = schema_path_for(schema_type, performance_year, schema_root)
    if not path.exists():
        raise FileNotFoundError(f"No {schema_type} schema for performance year {performance_year}: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            schema = yaml.safe_load(f)
        RecordsValidator.check_schema(schema)
    except yaml.YAMLError as e:
        raise SchemaLoadError(f"Schema {path} is not valid YAML: {e}") from e
    except SchemaError as e:
        raise SchemaLoadError(f"Schema {path} is not a valid JSON Schema: {e.message}") from e

    logger.debug(f"[schema] Loaded {schema_type} schema for {performance_year} from {path}")
    return schema


def _format_path(path) -> str:
    text = "data"
    for part in path:
        text += f"[{part}]" if isinstance(part, int) else f".{part}"
    return text


def _error_to_dict(error: JsonSchemaError) -> Dict[str, Any]:
    return {
        "path": _format_path(error.absolute_path),
        "message": error.message,
        "keyword": error.validator,
        "expected": error.validator_value,
        "actual": error.instance,
        "schema_path": "/".join(str(p) for p in error.absolute_schema_path),
    }


def validate_data(schema: Dict[str, Any], data: Any) -> ValidationReport:
    """
    Validate a document against a schema, collecting every violation.

    Args:
        schema: Parsed schema document
        data: Parsed JSON document (not modified)

    Returns:
        ValidationReport; never raises for invalid data
    """
    validator = RecordsValidator(schema)
    errors = [_error_to_dict(e) for e in validator.iter_errors(data)]

    if not errors:
        return ValidationReport(valid=True)

    summary = ", ".join(f"{e['path']} {e['message']}" for e in errors)
    logger.debug(f"[schema] {len(errors)} violations: {summary}")
    return ValidationReport(valid=False, errors=errors, summary=summary)


def validate_records(
    records: Any,
    schema_type: str,
    performance_year: Union[int, str],
    schema_root: Union[str, Path],
    schema: Optional[Dict[str, Any]] = None,
) -> ValidationReport:
    """Load the schema for a record type/year (unless given) and validate against it."""
    if schema is None:
        schema = load_schema(schema_type, performance_year, schema_root)
    return validate_data(schema, records)
