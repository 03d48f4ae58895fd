"""
Pipeline - fetch, assemble, order and fan out to the renderers
"""
import logging
import os
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .assembler import assemble
from .errors import RenderError
from .metadata import MetadataSource
from .ranking import order_tables
from .schema_model import Constraint, Table, TableKey
from .snapshot import load_file, save_file
from .visualization import RENDERERS

logger = logging.getLogger(__name__)


def run_all(tasks: Sequence[Callable[[], object]]) -> List[object]:
    """
    Run tasks concurrently and wait for all of them.

    The first failure wins: it is re-raised once the pool has drained.
    Tasks still running at that point are not interrupted, their results
    are dropped.
    """
    with ThreadPoolExecutor(max_workers=max(len(tasks), 1)) as pool:
        futures = [pool.submit(task) for task in tasks]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done and future.exception() is not None:
                raise future.exception()
        return [future.result() for future in futures]


def fetch(source: MetadataSource) -> Tuple[Dict[TableKey, List[Constraint]], List[Table]]:
    """Read constraints and tables in parallel"""
    constraints, tables = run_all([source.read_constraints, source.read_tables])
    return constraints, tables


def load_tables(source: Optional[MetadataSource] = None, snapshot_path: str = "") -> List[Table]:
    """
    Build the ordered schema graph.

    With a source the metadata is fetched (and saved to snapshot_path when
    given); without one it is read from snapshot_path.
    """
    if source is not None:
        constraints, tables = fetch(source)
        if snapshot_path:
            save_file(snapshot_path, constraints, tables)
    else:
        constraints, tables = load_file(snapshot_path)

    return order_tables(assemble(tables, constraints))


def write_format(path: str, fmt: str, tables: List[Table]) -> str:
    logger.info(f"{fmt!r}: {path!r}")
    try:
        with open(path, "w", encoding="utf-8") as fh:
            RENDERERS[fmt]().render(fh, tables)
    except OSError as exc:
        raise RenderError(fmt, f"{path}: {exc}") from exc
    return path


def write_formats(base: str, formats: Sequence[str], tables: List[Table]) -> Dict[str, str]:
    """
    Write every format to base.<format> concurrently.

    Files already finished when another format fails are left in place.
    """
    paths = run_all([
        (lambda fmt=fmt: write_format(f"{base}.{fmt}", fmt, tables))
        for fmt in formats
    ])
    return dict(zip(formats, paths))


def output_base(output: str) -> str:
    """Output path without its extension"""
    return os.path.splitext(output)[0]
