import yaml

from csv_influx_tool.config import Config


def test_defaults(tmp_path):
    config = Config(str(tmp_path / "none.yaml"), str(tmp_path / "none.env"))
    assert config.server == "http://localhost:8086"
    assert config.database == "test"
    assert config.measurement == "data"
    assert config.batch_size == 5000
    assert config.separator == ","
    assert config.tag_columns == ()
    assert config.timestamp_column == "timestamp"
    assert config.timestamp_format == "%Y-%m-%d %H:%M:%S"
    assert config.auto_create is True
    assert config.sample_rows == 100


def test_yaml_and_overrides(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(yaml.safe_dump({
        "database": "metrics",
        "separator": ";",
        "tag_columns": "host; region",
        "batch_size": 10,
    }))
    config = Config(str(cfg_file), str(tmp_path / "none.env"), batch_size=20, measurement=None)
    assert config.database == "metrics"
    assert config.tag_columns == ("host", "region")
    assert config.batch_size == 20
    assert config.measurement == "data"


def test_tag_columns_as_list(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(yaml.safe_dump({"tag_columns": ["host", " dc ", ""]}))
    assert Config(str(cfg_file), str(tmp_path / "none.env")).tag_columns == ("host", "dc")


def test_env_file(tmp_path, monkeypatch):
    monkeypatch.delenv("INFLUX_TOKEN", raising=False)
    monkeypatch.delenv("INFLUX_ORG", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("INFLUX_TOKEN=secret\nINFLUX_ORG=acme\n")
    config = Config(str(tmp_path / "none.yaml"), str(env_file), no_auto_create=True)
    assert config.influx_token == "secret"
    assert config.influx_org == "acme"
    assert config.auto_create is False
