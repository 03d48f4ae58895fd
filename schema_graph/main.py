#!/usr/bin/env python3
"""
Schema Graph - Main Program
Draws the tables of a database and their foreign keys as DOT, GML and GraphML
"""
import argparse
import logging
import sys

from schema_graph.app_config import config
from schema_graph.src import MetadataSource, SchemaGraphError, load_tables, render_schema_graph, write_formats, layout
from schema_graph.src.pipeline import output_base
from schema_graph.src.visualization import RENDERERS

logger = logging.getLogger("schema_graph")


def schema_to_graph(tables, output: str = "", formats=None,
                    engine: str = "osage", image_format: str = "svg", run_layout: bool = True):
    """
    Write the ordered tables in the requested formats

    Args:
        tables: Assembled and ordered tables
        output: Output path; empty or '-' writes one format to stdout
        formats: Formats to write, defaults to all of them (dot to stdout)
        engine: Graphviz layout engine for the image
        image_format: Graphviz output format for the image
        run_layout: Whether to run Graphviz on the DOT file

    Returns:
        Mapping of format to written path, empty for stdout
    """
    if not output or output == "-":
        render_schema_graph(sys.stdout, tables, formats[0] if formats else "dot")
        return {}

    base = output_base(output)
    paths = write_formats(base, formats or list(RENDERERS), tables)
    if run_layout and "dot" in paths:
        paths[image_format] = layout(paths["dot"], engine, image_format, outfile=f"{base}.{image_format}")
    return paths


def build_parser():
    parser = argparse.ArgumentParser(
        description="Draw database tables and their foreign keys as a graph"
    )
    parser.add_argument(
        "owners",
        nargs="*",
        help="Schemas (owners) to include, all when omitted"
    )
    parser.add_argument(
        "--connect",
        default=config.SCHEMA_GRAPH_DSN,
        help="Database to connect to: user:password@host:port/database"
    )
    parser.add_argument(
        "--json",
        default="",
        help="Snapshot file; read when not connecting, written after fetching otherwise"
    )
    parser.add_argument(
        "-o", "--output",
        default="",
        help="Output name; '-' or empty for stdout"
    )
    parser.add_argument(
        "-f", "--format",
        dest="formats",
        action="append",
        choices=list(RENDERERS),
        help="Output format, may be repeated (default: all to files, dot to stdout)"
    )
    parser.add_argument(
        "-K", "--dot-engine",
        default=config.DOT_ENGINE,
        help="Graphviz layout engine"
    )
    parser.add_argument(
        "-T", "--dot-format",
        default=config.DOT_FORMAT,
        help="Graphviz output format"
    )
    parser.add_argument(
        "--no-layout",
        action="store_true",
        help="Don't run Graphviz on the written DOT file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )
    return parser


def main(argv=None):
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    to_stdout = not args.output or args.output == "-"
    if to_stdout and len(args.formats or []) > 1:
        parser.error("only one --format can be written to stdout, use -o for more")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        source = None
        if args.connect or not args.json:
            config.validate()
            source = MetadataSource(config.get_db_config(args.connect), args.owners)
            logger.info(f"reading metadata from {source.describe()}")
        else:
            logger.info(f"reading snapshot {args.json}")

        tables = load_tables(source, args.json)
        paths = schema_to_graph(
            tables,
            output=args.output,
            formats=args.formats,
            engine=args.dot_engine,
            image_format=args.dot_format,
            run_layout=not args.no_layout,
        )
    except (SchemaGraphError, OSError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    for fmt, path in paths.items():
        logger.info(f"✅ {fmt}: {path}")


if __name__ == "__main__":
    main()
