"""
Logging configuration for the CSV to InfluxDB loader.

Row-level diagnostics, write retries and the final summary all go through the
standard logging module; this module wires up the console and optional
rotating file handlers.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field, ConfigDict


class LoggingConfig(BaseModel):
    """Logging configuration model."""
    model_config = ConfigDict(extra='forbid')

    level: str = Field(default="INFO", description="Root logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Date format for log messages"
    )

    # File logging
    enable_file_logging: bool = Field(default=False)
    log_file_path: str = Field(default="logs/csv_to_influxdb.log")
    max_file_size_mb: int = Field(default=100, ge=1, le=1000)
    backup_count: int = Field(default=5, ge=1, le=50)

    # Console logging
    enable_console_logging: bool = Field(default=True)

    component_levels: Dict[str, str] = Field(default_factory=dict)

    suppress_noisy_loggers: bool = Field(default=True)
    noisy_loggers: list[str] = Field(
        default_factory=lambda: [
            'urllib3.connectionpool',
            'influxdb_client',
            'influxdb_client.client.write_api',
        ]
    )


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Setup logging for a loader run.

    Args:
        config: Optional logging configuration, defaults to console-only INFO.

    Returns:
        Root logger instance
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, config.level.upper()))

    formatter = logging.Formatter(fmt=config.format, datefmt=config.date_format)

    if config.enable_file_logging:
        log_path = Path(config.log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=config.log_file_path,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if config.enable_console_logging:
        # diagnostics go to stderr
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    for logger_name, level in config.component_levels.items():
        logging.getLogger(logger_name).setLevel(getattr(logging, level.upper()))

    if config.suppress_noisy_loggers:
        for logger_name in config.noisy_loggers:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    return root_logger
