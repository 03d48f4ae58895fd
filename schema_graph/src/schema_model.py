"""
Schema Model Classes - Represent tables, columns and their constraints
"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Tuple

# (owner, table name) identifies a table across the whole graph
TableKey = Tuple[str, str]

CONSTRAINT_PRIMARY = 'P'
CONSTRAINT_UNIQUE = 'U'
CONSTRAINT_REFERENTIAL = 'R'


def _list(value) -> list:
    """Snapshots may carry null for an empty list"""
    return list(value) if value else []


@dataclass
class Column:
    """Represents a column of a table"""
    name: str
    type: str = ""
    comment: str = ""
    unique: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Name": self.name,
            "Type": self.type,
            "Comment": self.comment,
            "Unique": self.unique,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Column':
        return cls(
            name=data["Name"],
            type=data.get("Type") or "",
            comment=data.get("Comment") or "",
            unique=bool(data.get("Unique", False)),
        )

    def __repr__(self):
        unique_str = " [U]" if self.unique else ""
        return f"Column(name={self.name}{unique_str}, type={self.type})"


@dataclass
class TableConstraint:
    """
    A constraint as seen from its owning table.

    An empty remote_table means a primary/unique constraint, which is only
    used to derive Column.unique and is never drawn as an edge.
    """
    columns: List[str] = field(default_factory=list)
    remote_owner: str = ""
    remote_table: str = ""
    remote_constraint_name: str = ""

    @property
    def is_edge(self) -> bool:
        return bool(self.remote_table)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Columns": list(self.columns),
            "RemoteOwner": self.remote_owner,
            "RemoteTable": self.remote_table,
            "RemoteName": self.remote_constraint_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TableConstraint':
        return cls(
            columns=_list(data.get("Columns")),
            remote_owner=data.get("RemoteOwner") or "",
            remote_table=data.get("RemoteTable") or "",
            remote_constraint_name=data.get("RemoteName") or "",
        )


@dataclass
class Table:
    """Represents a table (a node of the schema graph)"""
    owner: str
    name: str
    comment: str = ""
    columns: List[Column] = field(default_factory=list)
    constraints: List[TableConstraint] = field(default_factory=list)

    @property
    def key(self) -> TableKey:
        return (self.owner, self.name)

    def add_column(self, column: Column):
        """Add a column to this table"""
        self.columns.append(column)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Owner": self.owner,
            "Name": self.name,
            "Comment": self.comment,
            "Columns": [c.to_dict() for c in self.columns],
            "Constraints": [c.to_dict() for c in self.constraints],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Table':
        return cls(
            owner=data["Owner"],
            name=data["Name"],
            comment=data.get("Comment") or "",
            columns=[Column.from_dict(c) for c in _list(data.get("Columns"))],
            constraints=[TableConstraint.from_dict(c) for c in _list(data.get("Constraints"))],
        )

    def __repr__(self):
        return (f"Table({self.owner}.{self.name}, columns={len(self.columns)}, "
                f"constraints={len(self.constraints)})")


@dataclass
class Constraint:
    """A merged constraint before it is attached to its table"""
    owner: str
    name: str
    type: str
    table: str
    columns: List[str] = field(default_factory=list)
    remote_owner: str = ""
    remote_table: str = ""
    remote_constraint_name: str = ""

    @property
    def table_key(self) -> TableKey:
        return (self.owner, self.table)

    def table_constraint(self) -> TableConstraint:
        return TableConstraint(
            columns=list(self.columns),
            remote_owner=self.remote_owner,
            remote_table=self.remote_table,
            remote_constraint_name=self.remote_constraint_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "Owner": self.owner,
            "Name": self.name,
            "Type": self.type,
            "Table": self.table,
        }
        data.update(self.table_constraint().to_dict())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Constraint':
        embedded = TableConstraint.from_dict(data)
        return cls(
            owner=data["Owner"],
            name=data["Name"],
            type=data["Type"],
            table=data["Table"],
            columns=embedded.columns,
            remote_owner=embedded.remote_owner,
            remote_table=embedded.remote_table,
            remote_constraint_name=embedded.remote_constraint_name,
        )
