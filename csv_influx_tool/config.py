import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import yaml
from dotenv import load_dotenv

from .classifier import parse_tag_columns

DEFAULTS: Dict[str, Any] = {
    "server": "http://localhost:8086",
    "database": "test",
    "measurement": "data",
    "batch_size": 5000,
    "separator": ",",
    "tag_columns": "",
    "timestamp_column": "timestamp",
    "timestamp_format": "%Y-%m-%d %H:%M:%S",
    "no_auto_create": False,
    "sample_rows": 100,
    "export_schema_dir": None,
}


class Config:
    """Load configuration from YAML file, .env environment and explicit overrides.

    Overrides win over the YAML file, which wins over the defaults. ``None``
    overrides are ignored so unset CLI options fall through.
    """

    def __init__(
        self,
        config_path: str = "config.yaml",
        env_path: str = ".env",
        **overrides: Any,
    ):
        env_file = Path(env_path)
        if env_file.exists():
            load_dotenv(env_file)
        self._config_path = Path(config_path)
        self.config_data: Dict = {}
        if self._config_path.exists():
            with self._config_path.open() as f:
                self.config_data = yaml.safe_load(f) or {}
        self.config_data.update({k: v for k, v in overrides.items() if v is not None})
        self._load_env()

    def _load_env(self) -> None:
        self.influx_token = os.getenv("INFLUX_TOKEN", "")
        self.influx_org = os.getenv("INFLUX_ORG", "")
        self.influx_timeout_ms = int(os.getenv("INFLUX_TIMEOUT_MS", "10000"))

    def _get(self, key: str) -> Any:
        return self.config_data.get(key, DEFAULTS[key])

    @property
    def csv_file(self) -> Optional[str]:
        return self.config_data.get("csv_file")

    @property
    def server(self) -> str:
        return self._get("server")

    @property
    def database(self) -> str:
        return self._get("database")

    @property
    def measurement(self) -> str:
        return self._get("measurement")

    @property
    def batch_size(self) -> int:
        return int(self._get("batch_size"))

    @property
    def separator(self) -> str:
        return self._get("separator")

    @property
    def tag_columns(self) -> Tuple[str, ...]:
        value = self._get("tag_columns")
        if isinstance(value, (list, tuple)):
            return tuple(str(v).strip() for v in value if str(v).strip())
        return parse_tag_columns(value or "", self.separator)

    @property
    def timestamp_column(self) -> str:
        return self._get("timestamp_column")

    @property
    def timestamp_format(self) -> str:
        return self._get("timestamp_format")

    @property
    def auto_create(self) -> bool:
        return not bool(self._get("no_auto_create"))

    @property
    def sample_rows(self) -> int:
        return int(self._get("sample_rows"))

    @property
    def export_schema_dir(self) -> Optional[str]:
        return self._get("export_schema_dir")
