"""Tests for the fetch barrier, multi-format output and the command line."""
import os
import threading

import pytest

from schema_graph import main as cli
from schema_graph.src import pipeline, snapshot
from schema_graph.src.errors import RenderError
from schema_graph.src.ranking import order_tables


def test_run_all_returns_results_in_task_order():
    assert pipeline.run_all([lambda: 1, lambda: 2, lambda: 3]) == [1, 2, 3]


def test_run_all_runs_tasks_concurrently():
    barrier = threading.Barrier(2, timeout=5)

    # deadlocks (and times out) unless both run at once
    assert pipeline.run_all([barrier.wait, barrier.wait]) is not None


def test_run_all_raises_first_failure():
    def boom():
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        pipeline.run_all([lambda: 1, boom])


class FakeSource:
    def __init__(self, constraints, tables, fail=None):
        self.constraints = constraints
        self.tables = tables
        self.fail = fail

    def read_constraints(self):
        if self.fail:
            raise self.fail
        return self.constraints

    def read_tables(self):
        return self.tables


def test_load_tables_writes_and_reads_snapshot(merged_constraints, merged_tables, tables, tmp_path):
    path = str(tmp_path / "schema.json")

    fetched = pipeline.load_tables(FakeSource(merged_constraints, merged_tables), path)
    loaded = pipeline.load_tables(None, path)

    assert fetched == order_tables(tables)
    assert loaded == fetched
    # the snapshot holds what was fetched, before assembly
    assert snapshot.load_file(path) == (merged_constraints, merged_tables)


def test_load_tables_fails_before_writing(merged_tables, tmp_path):
    path = tmp_path / "schema.json"

    with pytest.raises(RuntimeError):
        pipeline.load_tables(FakeSource({}, merged_tables, fail=RuntimeError("lost")), str(path))
    assert not path.exists()


def test_write_formats(tables, tmp_path):
    base = str(tmp_path / "schema")

    paths = pipeline.write_formats(base, ["dot", "gml", "graphml"], tables)

    assert paths == {fmt: f"{base}.{fmt}" for fmt in ["dot", "gml", "graphml"]}
    for path in paths.values():
        assert os.path.getsize(path) > 0


def test_write_formats_unwritable(tables, tmp_path):
    with pytest.raises(RenderError):
        pipeline.write_formats(str(tmp_path / "missing" / "schema"), ["gml"], tables)


def test_output_base():
    assert pipeline.output_base("out/schema.dot") == "out/schema"
    assert pipeline.output_base("schema") == "schema"


@pytest.fixture
def snapshot_file(merged_constraints, merged_tables, tmp_path):
    path = str(tmp_path / "schema.json")
    snapshot.save_file(path, merged_constraints, merged_tables)
    return path


def test_cli_to_stdout(snapshot_file, capsys):
    cli.main(["--connect", "", "--json", snapshot_file])

    out = capsys.readouterr().out
    assert out.startswith("digraph")
    assert "SCOTT__EMP:MGR -> SCOTT__EMP:MGR" in out


def test_cli_stdout_format(snapshot_file, capsys):
    cli.main(["--connect", "", "--json", snapshot_file, "-o", "-", "-f", "gml"])

    assert capsys.readouterr().out.startswith("graph [")


def test_cli_to_files(snapshot_file, tmp_path, monkeypatch):
    calls = []

    def fake_layout(dot_path, engine, fmt, outfile=None):
        calls.append((dot_path, engine, fmt, outfile))
        return outfile

    monkeypatch.setattr(cli, "layout", fake_layout)
    out = tmp_path / "diagram.dot"

    cli.main(["--connect", "", "--json", snapshot_file, "-o", str(out), "-K", "dot", "-T", "png"])

    for ext in ("dot", "gml", "graphml"):
        assert (tmp_path / f"diagram.{ext}").exists()
    assert calls == [(str(out), "dot", "png", str(tmp_path / "diagram.png"))]


def test_cli_no_layout(snapshot_file, tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "layout", lambda *a, **kw: pytest.fail("layout should not run"))

    cli.main(["--connect", "", "--json", snapshot_file, "-o", str(tmp_path / "d"), "-f", "gml", "--no-layout"])

    assert (tmp_path / "d.gml").exists()
    assert not (tmp_path / "d.dot").exists()


def test_cli_bad_snapshot_exits(tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--connect", "", "--json", str(bad)])

    assert excinfo.value.code == 1
    assert "Error" in capsys.readouterr().err


def test_cli_missing_snapshot_exits(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--connect", "", "--json", str(tmp_path / "nope.json")])

    assert excinfo.value.code == 1


def test_cli_rejects_several_formats_on_stdout(snapshot_file, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--connect", "", "--json", snapshot_file, "-f", "dot", "-f", "gml"])

    assert excinfo.value.code == 2
    assert "only one --format" in capsys.readouterr().err


def test_cli_snapshot_skips_validation(snapshot_file, monkeypatch, capsys):
    class Strict(cli.config):
        @classmethod
        def validate(cls):
            raise ValueError("should not validate")

    monkeypatch.setattr(cli, "config", Strict)

    cli.main(["--connect", "", "--json", snapshot_file])

    assert capsys.readouterr().out.startswith("digraph")
