"""Tests for the JSON snapshot."""
import io
import json

import pytest

from schema_graph.src import snapshot
from schema_graph.src.errors import SnapshotError


def test_round_trip(merged_constraints, merged_tables):
    buf = io.StringIO()
    snapshot.dump(buf, merged_constraints, merged_tables)
    buf.seek(0)

    constraints, tables = snapshot.load(buf)

    assert tables == merged_tables
    assert constraints == merged_constraints
    for key, items in merged_constraints.items():
        assert [c.name for c in constraints[key]] == [c.name for c in items]


def test_round_trip_assembled_tables(merged_constraints, tables, tmp_path):
    path = str(tmp_path / "schema.json")
    snapshot.save_file(path, merged_constraints, tables)

    _, loaded = snapshot.load_file(path)

    assert loaded == tables


def test_two_documents_one_per_line(merged_constraints, merged_tables):
    buf = io.StringIO()
    snapshot.dump(buf, merged_constraints, merged_tables)

    first, second = buf.getvalue().splitlines()
    constraint_map = json.loads(first)
    assert list(constraint_map) == ["SCOTT.DEPT", "SCOTT.EMP"]
    assert constraint_map["SCOTT.EMP"][0] == {
        "Owner": "SCOTT", "Name": "FK_DEPTNO", "Type": "R", "Table": "EMP",
        "Columns": ["DEPTNO"], "RemoteOwner": "SCOTT", "RemoteTable": "DEPT", "RemoteName": "PK_DEPT",
    }
    assert json.loads(second)[0]["Columns"][0] == {
        "Name": "DEPTNO", "Type": "DECIMAL(2) NOT NULL", "Comment": "Department number", "Unique": False,
    }


def test_null_lists_are_empty():
    text = (
        '{"S.T": [{"Owner": "S", "Name": "PK", "Type": "P", "Table": "T", "Columns": ["ID"],'
        ' "RemoteOwner": "", "RemoteTable": "", "RemoteName": ""}]}\n'
        '[{"Owner": "S", "Name": "T", "Comment": "", "Columns": null, "Constraints": null}]\n'
    )

    constraints, tables = snapshot.load(io.StringIO(text))

    assert tables[0].columns == []
    assert tables[0].constraints == []
    assert constraints[("S", "T")][0].columns == ["ID"]


def test_keys_come_from_the_records():
    text = (
        '{"whatever": [{"Owner": "A.B", "Name": "PK", "Type": "P", "Table": "C", "Columns": ["ID"]}]}\n'
        '[]\n'
    )

    constraints, tables = snapshot.load(io.StringIO(text))

    assert list(constraints) == [("A.B", "C")]
    assert tables == []


@pytest.mark.parametrize("text", [
    "",
    "{}\n",
    "{not json",
    "[]\n[]\n",
    '{"S.T": [{"Name": "PK"}]}\n[]\n',
    '{}\n[{"Name": "T"}]\n',
])
def test_malformed(text):
    with pytest.raises(SnapshotError):
        snapshot.load(io.StringIO(text))
