"""
Schema Graph - database schema to diagram pipeline
"""
from .schema_model import Column, Table, TableConstraint, Constraint
from .merger import merge_tables, merge_constraints, group_constraints
from .assembler import assemble
from .ranking import group_key, order_tables
from .visualization import render_schema_graph, RENDERERS, layout
from .metadata import MetadataSource
from .pipeline import load_tables, write_formats
from .errors import SchemaGraphError

__all__ = [
    'Column',
    'Table',
    'TableConstraint',
    'Constraint',
    'merge_tables',
    'merge_constraints',
    'group_constraints',
    'assemble',
    'group_key',
    'order_tables',
    'render_schema_graph',
    'RENDERERS',
    'layout',
    'MetadataSource',
    'load_tables',
    'write_formats',
    'SchemaGraphError'
]
