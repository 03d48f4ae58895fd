"""
Error taxonomy for the schema graph pipeline.

Every failure is terminal for the run: nothing here is retried, and the
CLI turns any SchemaGraphError into a non-zero exit status.
"""


class SchemaGraphError(Exception):
    """Base class for all schema graph failures"""


class SourceError(SchemaGraphError):
    """Connecting to or querying the metadata source failed"""


class ScanError(SchemaGraphError):
    """A metadata row could not be decoded into its expected fields"""


class SnapshotError(SchemaGraphError):
    """A snapshot file is malformed or truncated"""


class RenderError(SchemaGraphError):
    """Writing a rendered document failed"""

    def __init__(self, fmt: str, message: str):
        super().__init__(f"{fmt}: {message}")
        self.fmt = fmt


class LayoutError(SchemaGraphError):
    """The external Graphviz layout step failed"""
