from csv_influx_tool import pipeline_runner
from csv_influx_tool.pipeline_runner import main, run_pipeline
from csv_influx_tool.config import Config
from csv_influx_tool.connection import InfluxConnection
from csv_influx_tool.exceptions import (
    BackendError,
    MalformedRowError,
    MissingTimestampColumn,
    UnmatchedTagColumn,
    UnresolvedColumnType,
)
from csv_influx_tool.retry import BackoffConfig
import pytest
import yaml


class DummyConn(InfluxConnection):
    def __init__(self, databases=("test",), failures=0):
        self.databases = list(databases)
        self.failures = failures
        self.batches = []
        self.calls = 0
        self.closed = False

    def has_database(self, name):
        return name in self.databases

    def create_database(self, name):
        self.databases.append(name)

    def write(self, points):
        self.calls += 1
        if self.failures:
            self.failures -= 1
            raise ConnectionError("write timeout")
        self.batches.append(list(points))

    def close(self):
        self.closed = True


def make_config(tmp_path, csv_text, **overrides):
    csv_file = tmp_path / "data.csv"
    csv_file.write_text(csv_text)
    return Config(str(tmp_path / "none.yaml"), str(tmp_path / "none.env"),
                  csv_file=str(csv_file), **overrides)


def rows(n):
    return "".join(f"2021-01-01 00:00:{i:02d},h1,{i},true\n" for i in range(n))


def test_run_pipeline_batches_in_row_order(tmp_path):
    config = make_config(tmp_path, "timestamp,host,cpu,ok\n" + rows(5),
                         tag_columns="host", batch_size=2)
    conn = DummyConn()
    assert run_pipeline(config, conn) == 5
    assert [len(b) for b in conn.batches] == [2, 2, 1]
    assert [p.fields["cpu"] for b in conn.batches for p in b] == [0, 1, 2, 3, 4]
    assert all(p.tags == {"host": "h1"} for b in conn.batches for p in b)
    assert conn.closed


def test_run_pipeline_scenario_fallback(tmp_path):
    config = make_config(
        tmp_path,
        "timestamp,host,cpu,ok\n"
        "2021-01-01 00:00:00,h1,42,true\n"
        "2021-01-01 00:00:01,h1,43,false\n"
        "2021-01-01 00:00:02,h1,44,true\n"
        "2021-01-01 00:00:03,h1,abc,true\n",
        tag_columns="host",
    )
    conn = DummyConn()
    run_pipeline(config, conn)
    points = conn.batches[0]
    assert points[1].fields == {"cpu": 43, "ok": False}
    assert points[3].fields == {"cpu": "abc", "ok": True}


def test_run_pipeline_retries_failed_writes(tmp_path, monkeypatch):
    sleeps = []
    monkeypatch.setattr("csv_influx_tool.retry.time.sleep", sleeps.append)
    config = make_config(tmp_path, "timestamp,host,cpu,ok\n" + rows(3), tag_columns="host")
    conn = DummyConn(failures=2)
    assert run_pipeline(config, conn, BackoffConfig(min_delay=0.01)) == 3
    assert conn.calls == 3
    assert len(conn.batches) == 1 and len(conn.batches[0]) == 3
    assert sleeps == pytest.approx([0.01, 0.02])


def test_unmatched_tag_fails_before_any_write(tmp_path):
    config = make_config(tmp_path, "timestamp,host,cpu\n" + "2021-01-01 00:00:00,h1,1\n",
                         tag_columns="host,region")
    conn = DummyConn(databases=())
    with pytest.raises(UnmatchedTagColumn):
        run_pipeline(config, conn)
    assert conn.calls == 0
    assert conn.databases == []


def test_unresolved_column_is_fatal(tmp_path):
    config = make_config(tmp_path, "timestamp,name\n2021-01-01 00:00:00,abc\n")
    with pytest.raises(UnresolvedColumnType):
        run_pipeline(config, DummyConn())


def test_database_created_and_schema_exported(tmp_path):
    export_dir = tmp_path / "schemas"
    config = make_config(tmp_path, "timestamp;v\n2021-01-01 00:00:00;1.5\n",
                         separator=";", measurement="Power", export_schema_dir=str(export_dir))
    conn = DummyConn(databases=())
    assert run_pipeline(config, conn) == 1
    assert conn.databases == ["test"]
    schema = yaml.safe_load((export_dir / "power_schema.yaml").read_text())
    assert schema["columns"][1] == {"name": "v", "role": "field", "kind": "float"}


def test_main_exit_status(tmp_path, monkeypatch):
    def failing(config):
        raise MissingTimestampColumn("timestamp", ["time", "cpu"])

    monkeypatch.setattr(pipeline_runner, "run_pipeline", failing)
    assert main([str(tmp_path / "data.csv"), "--config", str(tmp_path / "none.yaml")]) == 1

    seen = {}

    def ok(config):
        seen["config"] = config
        return 0

    monkeypatch.setattr(pipeline_runner, "run_pipeline", ok)
    assert main([str(tmp_path / "data.csv"), "--config", str(tmp_path / "none.yaml"),
                 "-ts", "time", "--tag-columns", "host", "--batch-size", "10",
                 "--no-auto-create"]) == 0
    config = seen["config"]
    assert config.timestamp_column == "time"
    assert config.tag_columns == ("host",)
    assert config.batch_size == 10
    assert config.auto_create is False
    assert config.server == "http://localhost:8086"


def test_evenly_divisible_rows_have_no_empty_write(tmp_path):
    config = make_config(tmp_path, "timestamp,host,cpu,ok\n" + rows(4),
                         tag_columns="host", batch_size=2)
    conn = DummyConn()
    assert run_pipeline(config, conn) == 4
    assert conn.calls == 2
    assert [len(b) for b in conn.batches] == [2, 2]


def test_negative_and_blank_values_in_main_pass(tmp_path):
    config = make_config(
        tmp_path,
        "timestamp,temp,load\n"
        "2021-01-01 00:00:00,5,0.5\n"
        "2021-01-01 00:00:01,-5,-1.5\n"
        "2021-01-01 00:00:02,,\n",
    )
    conn = DummyConn()
    run_pipeline(config, conn)
    fields = [p.fields for p in conn.batches[0]]
    assert fields == [
        {"temp": 5, "load": 0.5},
        {"temp": -5, "load": -1.5},
        {"temp": 0, "load": 0.0},
    ]


def test_short_row_is_fatal(tmp_path):
    config = make_config(tmp_path, "timestamp,v,w\n2021-01-01 00:00:00,1,2\n"
                                   "2021-01-01 00:00:01,1\n")
    conn = DummyConn()
    with pytest.raises(MalformedRowError):
        run_pipeline(config, conn)
    assert conn.batches == []


def test_main_reports_backend_errors(tmp_path, monkeypatch):
    def unreachable(config):
        raise BackendError("Invalid server address or credentials: connection refused")

    monkeypatch.setattr(pipeline_runner, "run_pipeline", unreachable)
    assert main([str(tmp_path / "data.csv"), "--config", str(tmp_path / "none.yaml")]) == 1
