#!/usr/bin/env python3
"""
Validate a JSON document from standard input against a versioned schema.

If no performance year is given, the current performance year from the
configuration is used.

Usage:
    cat measures/measures-data.json | validate-data measures 2018

Exit codes: 0 valid, 1 invalid, 2 bad input or missing schema.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional, TextIO

from config import ImportConfig
from schema import SchemaLoadError, load_schema, validate_data


def run(schema_type: str, performance_year: Optional[str], stream: TextIO, config: ImportConfig) -> int:
    year = performance_year or str(config.current_performance_year)

    try:
        document = json.loads(stream.read())
    except json.JSONDecodeError as e:
        print(f"Input is not valid JSON: {e}")
        return 2

    try:
        schema = load_schema(schema_type, year, config.schema_root)
    except (FileNotFoundError, SchemaLoadError) as e:
        print(str(e))
        return 2

    report = validate_data(schema, document)
    if report.valid:
        print(f"Valid for {year} performance year schema")
        return 0

    print(f"Invalid for {year} performance year schema: {report.summary}")
    print("Detailed error: ", json.dumps(report.errors, indent=2, ensure_ascii=False, default=str))
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate JSON from stdin against a schema, e.g. measures or benchmarks",
        epilog="Example: cat measures/measures-data.json | validate-data measures 2018",
    )
    parser.add_argument("schema_type", help="Schema type, e.g. measures or benchmarks")
    parser.add_argument("performance_year", nargs="?", help="Performance year (default: current year)")
    args = parser.parse_args(argv)

    config = ImportConfig.from_env()
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")
    return run(args.schema_type, args.performance_year, sys.stdin, config)


if __name__ == "__main__":
    sys.exit(main())
