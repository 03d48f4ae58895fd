"""
Schema Graph Visualization Module - Renders the schema graph as DOT, GML and GraphML
"""
import html
import logging
import subprocess
import textwrap
from typing import Callable, Dict, Iterator, List, TextIO, Tuple

import graphviz

from .errors import LayoutError, RenderError
from .ranking import group_key
from .schema_model import Table, TableConstraint

logger = logging.getLogger(__name__)

# joins owner and table in node ids; normalize() never produces it
SEPARATOR = "__"

TABLE_COMMENT_WIDTH = 40
COLUMN_COMMENT_WIDTH = 25

UNIQUE_COLOR = "YELLOW"


def normalize(s: str) -> str:
    return s.replace(".", SEPARATOR).replace("$", "_")


def node_id(owner: str, name: str) -> str:
    """Identifier of a table in every output format"""
    return normalize(owner) + SEPARATOR + normalize(name)


def wrap_text(text: str, width: int) -> str:
    """
    Wrap text at whitespace so no line exceeds width, unless a single word
    is longer than that. Existing line breaks are kept.
    """
    return "\n".join(
        textwrap.fill(line, width, break_long_words=False, break_on_hyphens=False)
        for line in text.split("\n")
    )


def escape(text: str, width: int = 0) -> str:
    """Wrap (when width is set) and escape for HTML/XML-like grammars"""
    if width:
        text = wrap_text(text, width)
    return html.escape(text, quote=True)


def clusters(tables: List[Table]) -> Iterator[Tuple[str, List[Table]]]:
    """Runs of consecutive tables sharing a group key"""
    group, members = None, []
    for table in tables:
        key = group_key(table.name)
        if members and key != group:
            yield group, members
            members = []
        group = key
        members.append(table)
    if members:
        yield group, members


def edges(tables: List[Table]) -> Iterator[Tuple[Table, TableConstraint, str]]:
    """
    Foreign keys to draw, with the port used on both ends.

    Only the first column of a composite key is exposed as the port.
    """
    for table in tables:
        for constraint in table.constraints:
            if not constraint.is_edge:
                continue
            port = constraint.columns[0] if constraint.columns else ""
            yield table, constraint, port


def missing_tables(tables: List[Table]) -> List[Tuple[str, str, List[str]]]:
    """
    Edge targets outside the rendered tables (e.g. in a filtered-out owner),
    as (owner, name, ports) in first-reference order.
    """
    known = {t.key for t in tables}
    missing: Dict[Tuple[str, str], List[str]] = {}
    for _, constraint, port in edges(tables):
        key = (constraint.remote_owner, constraint.remote_table)
        if key in known:
            continue
        ports = missing.setdefault(key, [])
        if port not in ports:
            ports.append(port)
    return [(owner, name, ports) for (owner, name), ports in missing.items()]


class SchemaGraphRenderer:
    """Base class: builds a complete document and writes it in one go"""

    fmt = ""

    def render_document(self, tables: List[Table]) -> str:
        raise NotImplementedError

    def render(self, out: TextIO, tables: List[Table]):
        document = self.render_document(tables)
        try:
            out.write(document)
            out.flush()
        except (OSError, ValueError) as exc:
            raise RenderError(self.fmt, str(exc)) from exc


class DotRenderer(SchemaGraphRenderer):
    """Renders the box diagram as Graphviz DOT"""

    fmt = "dot"

    def html_label(self, table: Table) -> str:
        rows = [
            '<TABLE ALIGN="LEFT">'
            f'<TR><TD ALIGN="CENTER" COLSPAN="3"><B>{escape(table.owner)}.{escape(table.name)}</B></TD></TR> '
            f'<TR><TD COLSPAN="3">{self.br(escape(table.comment, TABLE_COMMENT_WIDTH))}</TD></TR>'
        ]
        for col in table.columns:
            attrs = f' BGCOLOR="{UNIQUE_COLOR}" ' if col.unique else ""
            rows.append(
                f'<TR><TD PORT="{escape(col.name)}" ALIGN="LEFT"{attrs}>{escape(col.name)}</TD>'
                f'<TD ALIGN="LEFT">{escape(col.type)}</TD>'
                f'<TD ALIGN="RIGHT">{self.br(escape(col.comment, COLUMN_COMMENT_WIDTH))}</TD></TR>'
            )
        rows.append("</TABLE>")
        return "<" + "\n".join(rows) + ">"

    @staticmethod
    def br(text: str) -> str:
        return text.replace("\n", "<BR/>\n")

    def render_tables(self, dot: graphviz.Digraph, tables: List[Table]):
        for group, members in clusters(tables):
            with dot.subgraph(name=f"cluster_{group}") as sub:
                for table in members:
                    sub.node(
                        node_id(table.owner, table.name),
                        label=self.html_label(table),
                        pencolor="white",
                        shape="box",
                    )

    def render_edges(self, dot: graphviz.Digraph, tables: List[Table]):
        for table, constraint, port in edges(tables):
            dot.edge(
                f"{node_id(table.owner, table.name)}:{port}",
                f"{node_id(constraint.remote_owner, constraint.remote_table)}:{port}",
                label=constraint.remote_constraint_name,
            )

    def build(self, tables: List[Table]) -> graphviz.Digraph:
        dot = graphviz.Digraph()
        self.render_tables(dot, tables)
        self.render_edges(dot, tables)
        return dot

    def render_document(self, tables: List[Table]) -> str:
        return self.build(tables).source


class GMLRenderer(SchemaGraphRenderer):
    """Renders a plain node/edge graph in GML, without clusters"""

    fmt = "gml"

    @staticmethod
    def string(text: str, width: int = 0) -> str:
        # GML is 7-bit ASCII, anything else goes in as a character reference
        return '"' + escape(text, width).encode("ascii", "xmlcharrefreplace").decode("ascii") + '"'

    def render_document(self, tables: List[Table]) -> str:
        lines = ["graph [", "\tdirected 1"]
        for table in tables:
            lines += [
                "\tnode [",
                f"\t\tid {self.string(node_id(table.owner, table.name))}",
                f"\t\tlabel {self.string(table.owner + '.' + table.name)}",
                f"\t\tcomment {self.string(table.comment, TABLE_COMMENT_WIDTH)}",
                "\t]",
            ]
        for owner, name, _ in missing_tables(tables):
            lines += [
                "\tnode [",
                f"\t\tid {self.string(node_id(owner, name))}",
                f"\t\tlabel {self.string(owner + '.' + name)}",
                "\t]",
            ]
        for table, constraint, port in edges(tables):
            lines += [
                "\tedge [",
                f"\t\tsource {self.string(node_id(table.owner, table.name))}",
                f"\t\ttarget {self.string(node_id(constraint.remote_owner, constraint.remote_table))}",
                f"\t\tsourceport {self.string(port)}",
                f"\t\ttargetport {self.string(port)}",
                f"\t\tlabel {self.string(constraint.remote_constraint_name)}",
                "\t]",
            ]
        lines.append("]")
        return "\n".join(lines) + "\n"


class GraphMLRenderer(SchemaGraphRenderer):
    """
    Renders the box diagram as GraphML.

    Clusters become group nodes holding a nested graph, and each column is a
    port of its table node carrying its type, comment and unique flag.
    """

    fmt = "graphml"

    HEADER = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<graphml xmlns="http://graphml.graphdrawing.org/xmlns"\n'
        '    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"\n'
        '    xsi:schemaLocation="http://graphml.graphdrawing.org/xmlns '
        'http://graphml.graphdrawing.org/xmlns/1.0/graphml.xsd">\n'
        '  <key id="label" for="all" attr.name="label" attr.type="string"/>\n'
        '  <key id="comment" for="all" attr.name="comment" attr.type="string"/>\n'
        '  <key id="type" for="port" attr.name="type" attr.type="string"/>\n'
        '  <key id="unique" for="port" attr.name="unique" attr.type="boolean">'
        '<default>false</default></key>\n'
    )

    @staticmethod
    def data(indent: str, key: str, text: str, width: int = 0) -> str:
        return f'{indent}<data key="{key}">{escape(text, width)}</data>'

    def render_node(self, table: Table, indent: str) -> List[str]:
        lines = [
            f'{indent}<node id="{escape(node_id(table.owner, table.name))}">',
            self.data(indent + "  ", "label", f"{table.owner}.{table.name}"),
        ]
        if table.comment:
            lines.append(self.data(indent + "  ", "comment", table.comment, TABLE_COMMENT_WIDTH))
        for col in table.columns:
            lines.append(f'{indent}  <port name="{escape(col.name)}">')
            lines.append(self.data(indent + "    ", "type", col.type))
            if col.comment:
                lines.append(self.data(indent + "    ", "comment", col.comment, COLUMN_COMMENT_WIDTH))
            if col.unique:
                lines.append(self.data(indent + "    ", "unique", "true"))
            lines.append(f"{indent}  </port>")
        lines.append(f"{indent}</node>")
        return lines

    def render_document(self, tables: List[Table]) -> str:
        lines = [self.HEADER + '  <graph id="G" edgedefault="directed">']
        for i, (group, members) in enumerate(clusters(tables)):
            cluster = f"cluster_{i}"
            lines += [
                f'    <node id="{cluster}">',
                self.data("      ", "label", group),
                f'      <graph id="{cluster}:" edgedefault="directed">',
            ]
            for table in members:
                lines += self.render_node(table, "        ")
            lines += ["      </graph>", "    </node>"]
        for owner, name, ports in missing_tables(tables):
            lines += [
                f'    <node id="{escape(node_id(owner, name))}">',
                self.data("      ", "label", f"{owner}.{name}"),
            ]
            lines += [f'      <port name="{escape(port)}"/>' for port in ports]
            lines.append("    </node>")
        for table, constraint, port in edges(tables):
            lines += [
                f'    <edge source="{escape(node_id(table.owner, table.name))}"'
                f' target="{escape(node_id(constraint.remote_owner, constraint.remote_table))}"'
                f' sourceport="{escape(port)}" targetport="{escape(port)}">',
                self.data("      ", "label", constraint.remote_constraint_name),
                "    </edge>",
            ]
        lines += ["  </graph>", "</graphml>"]
        return "\n".join(lines) + "\n"


RENDERERS: Dict[str, Callable[[], SchemaGraphRenderer]] = {
    "dot": DotRenderer,
    "gml": GMLRenderer,
    "graphml": GraphMLRenderer,
}


def render_schema_graph(out: TextIO, tables: List[Table], fmt: str = "dot"):
    """
    Convenience function to write one format

    Args:
        out: Text stream receiving the document
        tables: Assembled tables in rendering order
        fmt: One of RENDERERS
    """
    try:
        renderer = RENDERERS[fmt]()
    except KeyError:
        raise RenderError(fmt, f"unknown format, expected one of {', '.join(RENDERERS)}") from None
    renderer.render(out, tables)


def layout(dot_path: str, engine: str = "osage", fmt: str = "svg", outfile: str = None) -> str:
    """Run Graphviz on a written DOT file, returning the produced file path"""
    logger.info(f"graphviz -K{engine} -T{fmt} {dot_path}")
    try:
        return graphviz.render(engine, fmt, dot_path, outfile=outfile)
    except graphviz.ExecutableNotFound as exc:
        raise LayoutError(f"Graphviz is not installed: {exc}") from exc
    except (subprocess.CalledProcessError, ValueError) as exc:
        raise LayoutError(f"{engine} -T{fmt} {dot_path}: {exc}") from exc
