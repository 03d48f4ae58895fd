"""
Row Merger - folds ordered metadata rows into tables and constraints

Both row streams must already be sorted by their entity key. Only
consecutive rows with an equal key are merged; an unsorted stream yields
duplicate entities instead of an error.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .errors import ScanError
from .schema_model import Column, Constraint, Table, TableKey

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')

COLUMN_ROW_FIELDS = 6
CONSTRAINT_ROW_FIELDS = 8


def merge_runs(rows: Iterable[R],
               key: Callable[[R], Any],
               start: Callable[[R], T],
               append: Callable[[T, R], None]) -> List[T]:
    """
    Fold runs of rows sharing a key into one entity per run.

    The state is the key of the pending entity plus the entity itself; it is
    flushed whenever the key changes and once more at the end of the stream.
    """
    merged: List[T] = []
    pending: Optional[T] = None
    pending_key = None
    for row in rows:
        row_key = key(row)
        if pending is not None and row_key == pending_key:
            append(pending, row)
            continue
        if pending is not None:
            merged.append(pending)
        pending, pending_key = start(row), row_key
    if pending is not None:
        merged.append(pending)
    return merged


def _text(value) -> str:
    return "" if value is None else str(value)


def _scan(row: Sequence[Any], width: int, kind: str) -> Tuple[str, ...]:
    try:
        if len(row) != width:
            raise ScanError(f"{kind} row has {len(row)} fields, expected {width}: {row!r}")
    except TypeError as exc:
        raise ScanError(f"{kind} row is not a sequence: {row!r}") from exc
    return tuple(_text(v) for v in row)


def scan_column_row(row: Sequence[Any]) -> Tuple[str, ...]:
    """(owner, table, column, type, table_comment, column_comment)"""
    return _scan(row, COLUMN_ROW_FIELDS, "column")


def scan_constraint_row(row: Sequence[Any]) -> Tuple[str, ...]:
    """(owner, constraint, type, table, column, remote_owner, remote_table, remote_constraint)"""
    return _scan(row, CONSTRAINT_ROW_FIELDS, "constraint")


def _start_table(row) -> Table:
    owner, table, column, data_type, table_comment, column_comment = row
    return Table(owner=owner, name=table, comment=table_comment.strip(),
                 columns=[Column(column, data_type, column_comment.strip())])


def _append_column(table: Table, row):
    _, _, column, data_type, _, column_comment = row
    table.add_column(Column(column, data_type, column_comment.strip()))


def merge_tables(rows: Iterable[Sequence[Any]]) -> List[Table]:
    """Merge column rows ordered by (owner, table, column position) into tables"""
    tables = merge_runs(
        (scan_column_row(r) for r in rows),
        key=lambda r: (r[0], r[1]),
        start=_start_table,
        append=_append_column,
    )
    logger.debug(f"merged {len(tables)} tables")
    return tables


def _start_constraint(row) -> Constraint:
    owner, name, ctype, table, column, remote_owner, remote_table, remote_name = row
    return Constraint(owner=owner, name=name, type=ctype, table=table, columns=[column],
                      remote_owner=remote_owner, remote_table=remote_table,
                      remote_constraint_name=remote_name)


def _append_constraint_column(constraint: Constraint, row):
    constraint.columns.append(row[4])


def _constraint_key(row):
    owner, name, ctype, table, _, remote_owner, remote_table, remote_name = row
    return (owner, name, ctype, table, remote_owner, remote_table, remote_name)


def merge_constraints(rows: Iterable[Sequence[Any]]) -> List[Constraint]:
    """Merge constraint membership rows ordered by (owner, constraint, column position)"""
    constraints = merge_runs(
        (scan_constraint_row(r) for r in rows),
        key=_constraint_key,
        start=_start_constraint,
        append=_append_constraint_column,
    )
    logger.debug(f"merged {len(constraints)} constraints")
    return constraints


def group_constraints(constraints: Iterable[Constraint]) -> Dict[TableKey, List[Constraint]]:
    """Index constraints by the (owner, table) they belong to, keeping source order"""
    by_table: Dict[TableKey, List[Constraint]] = {}
    for constraint in constraints:
        by_table.setdefault(constraint.table_key, []).append(constraint)
    return by_table
