from __future__ import annotations
"""Main pipeline orchestrator for loading a CSV file into InfluxDB."""

import argparse
import logging
import sys
from functools import partial
from typing import List, Optional

from . import __version__
from .classifier import classify_columns
from .config import Config
from .connection import InfluxConnection, ensure_database
from .converter import RowConverter
from .data_loader import BatchWriter
from .exceptions import ConfigurationError, CsvInfluxError
from .logging_config import LoggingConfig, setup_logging
from .reader import CsvSource
from .retry import BackoffConfig, write_with_retry
from .schema_inference import (
    KindPatterns,
    describe_schema,
    export_schema_yaml,
    infer_column_kinds,
)

logger = logging.getLogger(__name__)


def run_pipeline(config: Config, connection: Optional[InfluxConnection] = None,
                 backoff_config: Optional[BackoffConfig] = None) -> int:
    """Load ``config.csv_file`` into InfluxDB and return the number of points written."""
    if not config.csv_file:
        raise CsvInfluxError("No CSV file configured")
    if config.batch_size < 1:
        raise ConfigurationError(f"Batch size must be at least 1, got {config.batch_size}")
    patterns = KindPatterns(config.timestamp_format)
    source = CsvSource(config.csv_file, config.separator)

    roles = classify_columns(source.header(), config.timestamp_column, config.tag_columns)
    schema = infer_column_kinds(source.rows(), roles, patterns, config.sample_rows)
    logger.info("Inferred schema for %s:\n%s", config.csv_file, describe_schema(schema))
    if config.export_schema_dir:
        path = export_schema_yaml(config.measurement, schema, config.export_schema_dir)
        logger.info("Schema exported to %s", path)

    conn = connection or InfluxConnection(config)
    try:
        ensure_database(conn, config.database, config.auto_create)
        converter = RowConverter(schema, patterns, config.measurement)
        writer = BatchWriter(
            partial(write_with_retry, conn.write, backoff_config=backoff_config),
            config.batch_size,
        )
        for row_number, row in enumerate(source.rows(), start=1):
            point = converter.convert(row, row_number)
            if point is not None:
                writer.append(point)
        writer.flush()
    finally:
        conn.close()

    logger.info("Done (wrote %d points in %d batches)", writer.total, writer.flushes)
    return writer.total


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csv-to-influxdb",
        description="Load a CSV file with a header row into InfluxDB",
    )
    parser.add_argument("csv_file", help="path to a CSV file with an initial header row")
    parser.add_argument("--config", default="config.yaml", help="YAML configuration file")
    parser.add_argument("--env-file", default=".env", help="dotenv file with INFLUX_TOKEN/INFLUX_ORG")
    parser.add_argument("--server", help="server address")
    parser.add_argument("--database", help="database (bucket) name")
    parser.add_argument("--measurement", help="measurement name")
    parser.add_argument("--batch-size", type=int, help="batch insert size")
    parser.add_argument("--tag-columns",
                        help="separator-separated list of columns to use as tags instead of fields")
    parser.add_argument("-ts", "--timestamp-column", help="header name of the timestamp column")
    parser.add_argument("-tf", "--timestamp-format",
                        help="strftime format used to parse all timestamp values")
    parser.add_argument("-F", "--separator", help="input CSV separator character")
    parser.add_argument("--no-auto-create", action="store_true", default=None,
                        help="disable automatic creation of the database")
    parser.add_argument("--export-schema-dir", help="write the inferred schema as YAML here")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(LoggingConfig(level=args.log_level))
    config = Config(
        args.config,
        args.env_file,
        csv_file=args.csv_file,
        server=args.server,
        database=args.database,
        measurement=args.measurement,
        batch_size=args.batch_size,
        tag_columns=args.tag_columns,
        timestamp_column=args.timestamp_column,
        timestamp_format=args.timestamp_format,
        separator=args.separator,
        no_auto_create=args.no_auto_create,
        export_schema_dir=args.export_schema_dir,
    )
    try:
        run_pipeline(config)
    except CsvInfluxError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
