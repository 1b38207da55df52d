from __future__ import annotations
"""InfluxDB connection wrapper for writing point batches."""

import logging
from datetime import datetime
from typing import Sequence

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS
from influxdb_client.rest import ApiException
from urllib3.exceptions import HTTPError

from .config import Config
from .converter import DataPoint
from .exceptions import BackendError, DatabaseNotFound

logger = logging.getLogger(__name__)

BACKEND_ERRORS = (ApiException, HTTPError, OSError)


def to_influx_point(point: DataPoint) -> Point:
    """Convert a ``DataPoint`` to the client's ``Point``.

    Timestamp-valued fields are stored as ISO-8601 strings.
    """
    record = Point(point.measurement)
    for key, value in point.tags.items():
        record.tag(key, value)
    for key, value in point.fields.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        record.field(key, value)
    if point.time is not None:
        record.time(point.time, WritePrecision.NS)
    return record


class InfluxConnection:
    """Wrapper around influxdb_client for easy mocking."""

    def __init__(self, config: Config):
        self.config = config
        self._client = None
        self._write_api = None

    def connect(self) -> None:
        self._client = InfluxDBClient(
            url=self.config.server,
            token=self.config.influx_token,
            org=self.config.influx_org,
            timeout=self.config.influx_timeout_ms,
        )
        self._write_api = self._client.write_api(write_options=SYNCHRONOUS)

    def write(self, points: Sequence[DataPoint]) -> None:
        if self._client is None:
            self.connect()
        self._write_api.write(
            bucket=self.config.database,
            org=self.config.influx_org,
            record=[to_influx_point(p) for p in points],
        )

    def has_database(self, name: str) -> bool:
        if self._client is None:
            self.connect()
        return self._client.buckets_api().find_bucket_by_name(name) is not None

    def create_database(self, name: str) -> None:
        if self._client is None:
            self.connect()
        self._client.buckets_api().create_bucket(bucket_name=name, org=self.config.influx_org)

    def close(self) -> None:
        if self._client:
            self._write_api.close()
            self._client.close()
            self._client = None
            self._write_api = None


def ensure_database(conn: InfluxConnection, name: str, auto_create: bool = True) -> bool:
    """Make sure database ``name`` exists; returns True when it was created."""
    try:
        exists = conn.has_database(name)
    except BACKEND_ERRORS as e:
        raise BackendError(f"Invalid server address or credentials: {e}") from e
    if exists:
        return False
    if not auto_create:
        raise DatabaseNotFound(f"Database '{name}' does not exist")
    logger.info("Creating database '%s'", name)
    try:
        conn.create_database(name)
    except BACKEND_ERRORS as e:
        raise BackendError(f"Failed to create database '{name}': {e}") from e
    return True
