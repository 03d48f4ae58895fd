"""
JSON snapshot of the fetched metadata

A snapshot holds two JSON documents, one per line: the constraint map keyed
by "OWNER.TABLE", then the table list. It lets a graph be re-rendered
without a database connection.
"""
import json
import logging
from typing import Dict, List, TextIO, Tuple

from .errors import SnapshotError
from .merger import group_constraints
from .schema_model import Constraint, Table, TableKey

logger = logging.getLogger(__name__)


def dump(out: TextIO, constraints: Dict[TableKey, List[Constraint]], tables: List[Table]):
    """Write constraints and tables as two consecutive JSON documents"""
    constraint_map = {
        f"{owner}.{table}": [c.to_dict() for c in items]
        for (owner, table), items in sorted(constraints.items())
    }
    out.write(json.dumps(constraint_map, ensure_ascii=False))
    out.write("\n")
    out.write(json.dumps([t.to_dict() for t in tables], ensure_ascii=False))
    out.write("\n")


def _documents(text: str) -> List[object]:
    decoder = json.JSONDecoder()
    docs = []
    pos = 0
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return docs
        doc, pos = decoder.raw_decode(text, pos)
        docs.append(doc)


def load(fh: TextIO) -> Tuple[Dict[TableKey, List[Constraint]], List[Table]]:
    """Read back what dump() wrote"""
    try:
        docs = _documents(fh.read())
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"invalid JSON: {exc}") from exc
    if len(docs) < 2:
        raise SnapshotError(f"expected 2 JSON documents, found {len(docs)}")

    constraint_map, table_list = docs[0], docs[1]
    if not isinstance(constraint_map, dict) or not isinstance(table_list, (list, type(None))):
        raise SnapshotError("expected a constraint object followed by a table array")
    try:
        # regroup by the owner/table carried inside each constraint
        constraints = group_constraints(
            Constraint.from_dict(c)
            for items in constraint_map.values()
            for c in (items or [])
        )
        tables = [Table.from_dict(t) for t in (table_list or [])]
    except (KeyError, TypeError, AttributeError) as exc:
        raise SnapshotError(f"malformed record: {exc!r}") from exc

    logger.info(f"snapshot: {len(tables)} tables, {sum(map(len, constraints.values()))} constraints")
    return constraints, tables


def save_file(path: str, constraints: Dict[TableKey, List[Constraint]], tables: List[Table]):
    with open(path, "w", encoding="utf-8") as fh:
        dump(fh, constraints, tables)
    logger.info(f"snapshot written to {path}")


def load_file(path: str) -> Tuple[Dict[TableKey, List[Constraint]], List[Table]]:
    with open(path, "r", encoding="utf-8") as fh:
        return load(fh)
