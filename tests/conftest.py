"""Shared fixtures: a small SCOTT-like schema as the metadata source returns it."""
import pytest

from schema_graph.src.assembler import assemble
from schema_graph.src.merger import group_constraints, merge_constraints, merge_tables

COLUMN_ROWS = [
    ("SCOTT", "DEPT", "DEPTNO", "DECIMAL(2) NOT NULL", " Departments ", "Department number"),
    ("SCOTT", "DEPT", "DNAME", "VARCHAR(14)", " Departments ", None),
    ("SCOTT", "EMP", "EMPNO", "DECIMAL(4) NOT NULL", "Employees", ""),
    ("SCOTT", "EMP", "ENAME", "VARCHAR(10)", "Employees", " Name "),
    ("SCOTT", "EMP", "DEPTNO", "DECIMAL(2)", "Employees", ""),
    ("SCOTT", "EMP", "MGR", "DECIMAL(4)", "Employees", "Manager"),
]

CONSTRAINT_ROWS = [
    ("SCOTT", "FK_DEPTNO", "R", "EMP", "DEPTNO", "SCOTT", "DEPT", "PK_DEPT"),
    ("SCOTT", "FK_MGR", "R", "EMP", "MGR", "SCOTT", "EMP", "PK_EMP"),
    ("SCOTT", "PK_DEPT", "P", "DEPT", "DEPTNO", None, None, None),
    ("SCOTT", "PK_EMP", "P", "EMP", "EMPNO", None, None, None),
    ("SCOTT", "UK_EMP", "U", "EMP", "ENAME", None, None, None),
]


@pytest.fixture
def column_rows():
    return list(COLUMN_ROWS)


@pytest.fixture
def constraint_rows():
    return list(CONSTRAINT_ROWS)


@pytest.fixture
def merged_tables():
    return merge_tables(COLUMN_ROWS)


@pytest.fixture
def merged_constraints():
    return group_constraints(merge_constraints(CONSTRAINT_ROWS))


@pytest.fixture
def tables(merged_tables, merged_constraints):
    """Assembled tables"""
    return assemble(merged_tables, merged_constraints)
