"""
Metadata Source - reads tables, columns and constraints from MySQL's information_schema
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pymysql

from .errors import SourceError
from .merger import group_constraints, merge_constraints, merge_tables
from .schema_model import Constraint, Table, TableKey

logger = logging.getLogger(__name__)

COLUMNS_QUERY = """
SELECT c.TABLE_SCHEMA, c.TABLE_NAME, c.COLUMN_NAME,
       CONCAT(UPPER(c.COLUMN_TYPE),
              CASE c.IS_NULLABLE WHEN 'NO' THEN ' NOT NULL' ELSE '' END) AS data_type,
       t.TABLE_COMMENT, c.COLUMN_COMMENT
  FROM information_schema.COLUMNS c
  JOIN information_schema.TABLES t
    ON t.TABLE_SCHEMA = c.TABLE_SCHEMA AND t.TABLE_NAME = c.TABLE_NAME
 WHERE t.TABLE_TYPE = 'BASE TABLE' AND INSTR(c.TABLE_NAME, '$') = 0
       {owner_filter}
 ORDER BY c.TABLE_SCHEMA, c.TABLE_NAME, c.ORDINAL_POSITION
"""

CONSTRAINTS_QUERY = """
SELECT k.CONSTRAINT_SCHEMA, k.CONSTRAINT_NAME,
       CASE tc.CONSTRAINT_TYPE
            WHEN 'PRIMARY KEY' THEN 'P' WHEN 'UNIQUE' THEN 'U' ELSE 'R' END AS constraint_type,
       k.TABLE_NAME, k.COLUMN_NAME,
       k.REFERENCED_TABLE_SCHEMA, k.REFERENCED_TABLE_NAME, rc.UNIQUE_CONSTRAINT_NAME
  FROM information_schema.KEY_COLUMN_USAGE k
  JOIN information_schema.TABLE_CONSTRAINTS tc
    ON tc.CONSTRAINT_SCHEMA = k.CONSTRAINT_SCHEMA
   AND tc.CONSTRAINT_NAME = k.CONSTRAINT_NAME
   AND tc.TABLE_NAME = k.TABLE_NAME
  LEFT JOIN information_schema.REFERENTIAL_CONSTRAINTS rc
    ON rc.CONSTRAINT_SCHEMA = k.CONSTRAINT_SCHEMA
   AND rc.CONSTRAINT_NAME = k.CONSTRAINT_NAME
   AND rc.TABLE_NAME = k.TABLE_NAME
 WHERE tc.CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE', 'FOREIGN KEY')
       {owner_filter}
 ORDER BY 1, 2, 3, 4, k.ORDINAL_POSITION
"""


def sanitize_owner(owner: str) -> str:
    """Owner value as matched against the upper-cased owner column"""
    return owner.replace("\n", " ").upper()


def owner_filter(column: str, owners: Sequence[str]) -> str:
    """AND clause restricting column to the given owners, case-insensitively"""
    if not owners:
        return ""
    placeholders = ",".join(["%s"] * len(owners))
    return f"AND UPPER({column}) IN ({placeholders})"


def owner_params(owners: Sequence[str]) -> Optional[List[str]]:
    """Values bound to the owner_filter placeholders, None without a filter"""
    if not owners:
        return None
    return [sanitize_owner(o) for o in owners]


def _as_tuples(rows: Iterable[Any]) -> List[tuple]:
    # a DictCursor keeps the select order in its dict rows
    return [tuple(r.values()) if isinstance(r, dict) else tuple(r) for r in rows]


class MetadataSource:
    """
    Runs the two metadata queries.

    Each fetch opens its own connection so the two can run on separate
    threads; pymysql connections must not be shared between threads.
    """

    def __init__(self, db_config: Dict[str, Any], owners: Optional[Sequence[str]] = None):
        self.db_config = dict(db_config)
        self.owners = list(owners or [])

    def get_db_connection(self):
        """Open a new database connection"""
        try:
            return pymysql.connect(**self.db_config)
        except pymysql.MySQLError as exc:
            raise SourceError(f"connect to {self.describe()}: {exc}") from exc

    def describe(self) -> str:
        cfg = self.db_config
        return f"{cfg.get('user', '')}@{cfg.get('host', '')}:{cfg.get('port', '')}/{cfg.get('database') or ''}"

    def _query(self, sql: str, params: Optional[List[str]] = None) -> List[Sequence[Any]]:
        conn = self.get_db_connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute(sql, params)
                rows = _as_tuples(cursor.fetchall())
        except pymysql.MySQLError as exc:
            raise SourceError(f"{exc}\n{sql}") from exc
        finally:
            conn.close()
        return rows

    def columns_sql(self) -> str:
        return COLUMNS_QUERY.format(owner_filter=owner_filter("c.TABLE_SCHEMA", self.owners))

    def constraints_sql(self) -> str:
        return CONSTRAINTS_QUERY.format(owner_filter=owner_filter("k.CONSTRAINT_SCHEMA", self.owners))

    def fetch_columns(self) -> List[Sequence[Any]]:
        rows = self._query(self.columns_sql(), owner_params(self.owners))
        logger.info(f"fetched {len(rows)} column rows")
        return rows

    def fetch_constraints(self) -> List[Sequence[Any]]:
        rows = self._query(self.constraints_sql(), owner_params(self.owners))
        logger.info(f"fetched {len(rows)} constraint rows")
        return rows

    def read_tables(self) -> List[Table]:
        return merge_tables(self.fetch_columns())

    def read_constraints(self) -> Dict[TableKey, List[Constraint]]:
        return group_constraints(merge_constraints(self.fetch_constraints()))

