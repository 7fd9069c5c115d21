"""
Configuration module for loading environment variables.

This module loads environment variables from .env file and exposes
them as an ImportConfig object that is passed explicitly into the
record builder and the schema validator.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv
load_dotenv()

PROJECT_ROOT = Path(__file__).parent.parent


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


def _env_years(name: str, default: str) -> Tuple[int, ...]:
    raw = os.getenv(name, default)
    return tuple(int(part) for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class ImportConfig:
    """
    Settings for one import/validation run.

    Attributes:
        current_performance_year: Year used when a caller does not name one
        valid_performance_years: Numeric cell values recognised as years
        header_rows: Header rows to drop from each CSV input
        schema_root: Directory holding <type>/<year>/<type>-schema.yaml files
        strict_defaults: Only substitute defaults for empty cells
        validate_before_write: Run schema validation before writing output
        log_level: Logging level name for the command line tools
    """
    current_performance_year: int = 2018
    valid_performance_years: Tuple[int, ...] = (2017, 2018)
    header_rows: int = 2
    schema_root: Path = field(default_factory=lambda: PROJECT_ROOT / "schemas")
    strict_defaults: bool = False
    validate_before_write: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "ImportConfig":
        """Build a config from the process environment (and .env)."""
        return cls(
            current_performance_year=int(os.getenv("CURRENT_PERFORMANCE_YEAR", "2018")),
            valid_performance_years=_env_years("VALID_PERFORMANCE_YEARS", "2017,2018"),
            header_rows=int(os.getenv("HEADER_ROWS", "2")),
            schema_root=Path(os.getenv("SCHEMA_ROOT", str(PROJECT_ROOT / "schemas"))),
            strict_defaults=_env_bool("STRICT_DEFAULTS", "false"),
            validate_before_write=_env_bool("VALIDATE_BEFORE_WRITE", "true"),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        )

    def with_overrides(self, **changes) -> "ImportConfig":
        """Return a copy with the given (non-None) fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def get_config(config: Optional[ImportConfig] = None) -> ImportConfig:
    return config if config is not None else ImportConfig.from_env()
