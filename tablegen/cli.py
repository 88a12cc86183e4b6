"""
Command-line interface for tablegen.

Reads a Diesel schema and writes model modules into an output directory.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Sequence

from rich.console import Console
from rich.markup import escape

from .codegen import (
    FileChangeStatus,
    GeneratorError,
    count_modified,
    generate_files,
    load_config,
)
from .codegen.core.templates import TemplateError
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)

console = Console()
error_console = Console(stderr=True)

_STATUS_STYLES = {
    FileChangeStatus.ADDED: "green",
    FileChangeStatus.MODIFIED: "yellow",
    FileChangeStatus.UNCHANGED: "dim",
}


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tablegen",
        description="Generate Diesel models and CRUD functions from a Diesel schema",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tablegen -i src/schema.rs -o src/models -c "diesel::pg::PgConnection"
  tablegen -i src/schema.rs -o src/models --no-crud
  tablegen -i src/schema.rs -o src/models --config tablegen.json
        """.strip(),
    )

    parser.add_argument("-i", "--input", required=True, help="Input Diesel schema file")
    parser.add_argument("-o", "--output", required=True, help="Output directory for the models")
    parser.add_argument(
        "-c",
        "--connection-type",
        help="Rust type of the database connection, like diesel::pg::PgConnection",
    )
    parser.add_argument("--config", metavar="FILE", help="JSON configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    table_group = parser.add_argument_group("table options")
    table_group.add_argument(
        "--no-serde", action="store_true", default=None, help="Don't derive serde traits"
    )
    table_group.add_argument(
        "--no-crud", action="store_true", default=None, help="Don't generate CRUD functions"
    )
    table_group.add_argument(
        "--async",
        dest="use_async",
        action="store_true",
        default=None,
        help="Generate async functions using diesel_async",
    )
    table_group.add_argument(
        "--tsync", action="store_true", default=None, help="Add #[tsync::tsync] to structs"
    )
    table_group.add_argument(
        "--advanced-queries",
        action="store_true",
        default=None,
        help="Generate filter structs and a filter function",
    )
    table_group.add_argument(
        "--single-model-file",
        action="store_true",
        default=None,
        help="Write <table>.rs instead of <table>/generated.rs",
    )
    table_group.add_argument(
        "-g",
        "--autogenerated-columns",
        nargs="+",
        metavar="COLUMN",
        help="Columns assigned by the database, left out of Create structs",
    )
    for variant in ("create", "update"):
        table_group.add_argument(
            f"--{variant}-str",
            choices=["string", "str", "cow"],
            help=f"Type used for text columns in {variant.title()} structs",
        )
        table_group.add_argument(
            f"--{variant}-bytes",
            choices=["vec", "slice", "cow"],
            help=f"Type used for binary columns in {variant.title()} structs",
        )

    output_group = parser.add_argument_group("output options")
    output_group.add_argument(
        "--default-impl",
        action="store_true",
        default=None,
        help="Generate Default impls for Read and Create structs",
    )
    output_group.add_argument(
        "--once-common-structs",
        action="store_true",
        default=None,
        help="Write shared structs once into common.rs",
    )
    output_group.add_argument(
        "--once-connection-type",
        action="store_true",
        default=None,
        help="Write the ConnectionType alias once into common.rs",
    )
    output_group.add_argument(
        "--readonly-prefix",
        action="append",
        metavar="PREFIX",
        help="Tables starting with PREFIX only get read functions (repeatable)",
    )
    output_group.add_argument(
        "--readonly-suffix",
        action="append",
        metavar="SUFFIX",
        help="Tables ending with SUFFIX only get read functions (repeatable)",
    )
    output_group.add_argument("--schema-path", help="Module path of the schema (default: crate::schema::)")
    output_group.add_argument("--model-path", help="Module path of the models (default: crate::models::)")
    output_group.add_argument("--diesel-backend", help="Diesel backend type (default: diesel::pg::Pg)")

    return parser


def _build_custom_config(args: argparse.Namespace) -> dict[str, Any]:
    """Collect the options given on the command line, leaving the rest to the config file."""
    table_options: dict[str, Any] = {}
    if args.no_serde:
        table_options["serde"] = False
    if args.no_crud:
        table_options["fns"] = False
    if args.use_async:
        table_options["use_async"] = True
    if args.tsync:
        table_options["tsync"] = True
    if args.advanced_queries:
        table_options["advanced_queries"] = True
    if args.single_model_file:
        table_options["single_model_file"] = True
    if args.autogenerated_columns:
        table_options["autogenerated_columns"] = args.autogenerated_columns
    for key in ("create_str", "update_str", "create_bytes", "update_bytes"):
        value = getattr(args, key)
        if value:
            table_options[f"{key}_type"] = value

    custom: dict[str, Any] = {}
    if table_options:
        custom["default_table_options"] = table_options
    if args.connection_type:
        custom["connection_type"] = args.connection_type
    if args.default_impl:
        custom["default_impl"] = True
    if args.once_common_structs:
        custom["once_common_structs"] = True
    if args.once_connection_type:
        custom["once_connection_type"] = True
    if args.readonly_prefix:
        custom["readonly_prefixes"] = args.readonly_prefix
    if args.readonly_suffix:
        custom["readonly_suffixes"] = args.readonly_suffix
    for key in ("schema_path", "model_path", "diesel_backend"):
        value = getattr(args, key)
        if value:
            custom[key] = value
    return custom


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv: Arguments, defaults to sys.argv.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    logger.debug("Arguments: %s", args)

    try:
        config = load_config(_build_custom_config(args), args.config)
        changes = generate_files(args.input, args.output, config)
    except (GeneratorError, TemplateError) as e:
        error_console.print(
            f"[red]✗ Error:[/red] {escape(str(e))}", soft_wrap=True, highlight=False
        )
        logger.debug("Generation failed", exc_info=True)
        return 1

    for change in changes:
        style = _STATUS_STYLES[change.status]
        console.print(
            f"[{style}]{change.status.value}[/{style}] {escape(str(change.path))}",
            soft_wrap=True,
            highlight=False,
        )

    console.print(f"Modified {count_modified(changes)} files", highlight=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
