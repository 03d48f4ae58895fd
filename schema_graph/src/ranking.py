"""
Table Ranker/Grouper - decides the order tables are drawn in
"""
from typing import List, Tuple

from .schema_model import Table


def group_key(name: str) -> str:
    """
    Derive the cluster a table belongs to from its name.

    The name is split on '_' into at most 3 parts and the first part after
    the leading one that is longer than 2 characters is used, e.g.
    ORDER_ITEM_DETAIL -> ITEM. Without such a part the whole name is used.
    """
    for i, part in enumerate(name.split('_', 2)):
        if i >= 1 and len(part) > 2:
            return part
    return name


def rank_weight(table: Table) -> Tuple[int, int]:
    return len(table.constraints), len(table.columns)


def rank_by_size(tables: List[Table]) -> List[Table]:
    """Tables with the most constraints (then columns) first"""
    return sorted(tables, key=rank_weight, reverse=True)


def group_by_name(tables: List[Table]) -> List[Table]:
    """Stable sort on (owner, group key, name) so related tables sit together"""
    return sorted(tables, key=lambda t: (t.owner, group_key(t.name), t.name))


def order_tables(tables: List[Table]) -> List[Table]:
    """The rendering order shared by every output format"""
    return group_by_name(rank_by_size(tables))
