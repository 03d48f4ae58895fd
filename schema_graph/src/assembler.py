"""
Graph Assembler - attaches merged constraints to their tables
"""
import logging
from typing import List, Mapping, Set

from .schema_model import (
    CONSTRAINT_PRIMARY, CONSTRAINT_REFERENTIAL, CONSTRAINT_UNIQUE,
    Column, Constraint, Table, TableKey,
)

logger = logging.getLogger(__name__)

UNIQUE_TYPES = (CONSTRAINT_PRIMARY, CONSTRAINT_UNIQUE)


def assemble(tables: List[Table],
             constraints: Mapping[TableKey, List[Constraint]]) -> List[Table]:
    """
    Build the schema graph from merged tables and constraints.

    Foreign keys are attached to their owning table in source order, and
    every column taking part in a primary or unique key gets unique=True.
    Returns new Table objects; the inputs are left untouched, so running it
    again on the same merged input gives the same graph.
    """
    assembled = []
    edges = 0
    for table in tables:
        unique_columns: Set[str] = set()
        table_constraints = []
        for constraint in constraints.get(table.key, ()):
            if constraint.type == CONSTRAINT_REFERENTIAL:
                table_constraints.append(constraint.table_constraint())
            elif constraint.type in UNIQUE_TYPES:
                unique_columns.update(constraint.columns)

        columns = [
            Column(col.name, col.type, col.comment, col.name in unique_columns)
            for col in table.columns
        ]
        edges += len(table_constraints)
        assembled.append(Table(
            owner=table.owner,
            name=table.name,
            comment=table.comment,
            columns=columns,
            constraints=table_constraints,
        ))

    logger.info(f"assembled {len(assembled)} tables with {edges} foreign keys")
    return assembled
