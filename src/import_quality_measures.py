#!/usr/bin/env python3
"""
Read the quality measures and strata CSV exports and write measure records as JSON.

Usage:
    import-quality-measures quality.csv strata.csv measures-data-quality.json
"""

import argparse
import logging
import sys
from typing import List, Optional

from config import ImportConfig
from mappings import DEFAULT_MAPPING_ID, load_column_overrides
from normalizer import NormalizationError, normalize_quality_measures
from schema import SchemaLoadError


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Convert quality measure CSV exports to measures JSON")
    parser.add_argument("quality_csv", help="Quality measures CSV export")
    parser.add_argument("strata_csv", help="Performance rate strata CSV export")
    parser.add_argument("output", help="Output JSON path")
    parser.add_argument("--mapping-id", default=DEFAULT_MAPPING_ID, help="Mapping configuration id")
    parser.add_argument("--column-overrides", help="YAML file rebinding fields to column indexes")
    parser.add_argument("--skip-validation", action="store_true", help="Write without schema validation")
    parser.add_argument("--strict-defaults", action="store_true",
                        help="Only use defaults for empty cells, keep explicit false values")
    args = parser.parse_args(argv)

    config = ImportConfig.from_env()
    if args.strict_defaults:
        config = config.with_overrides(strict_defaults=True)
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        overrides = load_column_overrides(args.column_overrides) if args.column_overrides else None
        result = normalize_quality_measures(
            args.quality_csv,
            args.strata_csv,
            args.output,
            mapping_id=args.mapping_id,
            config=config,
            column_overrides=overrides,
            validate=False if args.skip_validation else None,
        )
    except (NormalizationError, SchemaLoadError, FileNotFoundError, ValueError) as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1

    if not result["success"]:
        print(f"Import failed, output not written: {result['validation'].summary}", file=sys.stderr)
        return 1

    print(f"Wrote {result['total_records']} measures to {result['output_path']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
