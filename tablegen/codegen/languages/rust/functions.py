"""
CRUD function generation.

Renders the `impl` block of the Read struct and the supporting types it
relies on: the filter struct, `PaginationResult`, `NullableFilter` and
the `ConnectionType` alias.
"""

from dataclasses import dataclass
from typing import List, Optional

from ...core.config import GenerationConfig, ResolvedTableOptions
from ...core.schema import Table
from ...core.templates import TemplateEngine
from ....logging_config import get_logger
from .structs import Struct
from .types import StructField

logger = get_logger(__name__)


@dataclass(frozen=True)
class FilterColumn:
    """A column of the `{Struct}Filter` struct."""

    name: str
    nullable: bool
    filter_type: str


def filter_struct_name(table: Table) -> str:
    return f"{table.struct_name}Filter"


def filter_columns(table: Table) -> List[FilterColumn]:
    """Columns of the filter struct, nullable ones use the tri-state `NullableFilter`."""
    columns = []
    for column in table.columns:
        struct_field = StructField.from_column(column)
        if column.is_nullable:
            filter_type = f"NullableFilter<{struct_field.to_non_null_type()}>"
        else:
            filter_type = f"Option<{struct_field.to_rust_type()}>"
        columns.append(FilterColumn(column.name, column.is_nullable, filter_type))
    return columns


def key_params(table: Table) -> str:
    """Primary keys as function parameters, like `param_id: i32`."""
    return ", ".join(
        f"param_{column.name}: {StructField.from_column(column).to_rust_type()}"
        for column in table.primary_key_column_objects()
    )


def key_filters(table: Table) -> str:
    """Chained `filter` calls matching every primary key column."""
    return ".".join(
        f"filter({name}.eq(param_{name}))" for name in table.primary_key_columns
    )


def build_table_fns(
    table: Table,
    options: ResolvedTableOptions,
    config: GenerationConfig,
    create_struct: Struct,
    update_struct: Struct,
    engine: TemplateEngine,
) -> str:
    """
    Render the `impl` block with the CRUD functions of a table.

    Args:
        table: Table to generate functions for
        options: Resolved options of the table
        config: Generation configuration
        create_struct: The table's Create struct, possibly suppressed
        update_struct: The table's Update struct, possibly suppressed
        engine: Template engine holding the Rust templates

    Returns:
        Rendered `impl` block
    """
    has_keys = bool(table.primary_key_columns)
    if not has_keys:
        logger.warning(
            "Table `%s` has no primary key, skipping read/update/delete functions",
            table.name,
        )

    create_fn: Optional[str] = None
    if not options.readonly:
        create_fn = "payload" if create_struct.has_fields else "default_values"

    context = {
        "struct_name": table.struct_name,
        "table_name": table.name,
        "schema_path": config.schema_path,
        "diesel_backend": config.diesel_backend,
        "fn_kw": "async fn" if options.use_async else "fn",
        "await_kw": ".await" if options.use_async else "",
        "create_fn": create_fn,
        "create_identifier": create_struct.identifier,
        "update_identifier": update_struct.identifier,
        "emit_read": has_keys,
        "emit_update": has_keys and not options.readonly and update_struct.has_fields,
        "emit_delete": has_keys and not options.readonly,
        "key_params": key_params(table),
        "key_filters": key_filters(table),
        "key_word": "keys" if len(table.primary_key_columns) > 1 else "key",
        "advanced_queries": options.advanced_queries,
        "filter_struct": filter_struct_name(table),
        "filter_columns": filter_columns(table),
    }
    logger.debug(
        "Rendering functions for `%s` (create=%s, keys=%d, async=%s)",
        table.name,
        create_fn,
        len(table.primary_key_columns),
        options.use_async,
    )
    return engine.render_template("impl.rs.j2", context)


def build_filter_struct(table: Table, engine: TemplateEngine) -> str:
    """Render the `{Struct}Filter` struct consumed by `filter` and `paginate`."""
    return engine.render_template(
        "filter_struct.rs.j2",
        {
            "struct_name": table.struct_name,
            "filter_struct": filter_struct_name(table),
            "filter_columns": filter_columns(table),
        },
    )


def build_pagination_result(options: ResolvedTableOptions, engine: TemplateEngine) -> str:
    return engine.render_template(
        "pagination_result.rs.j2", {"serde": options.serde, "tsync": options.tsync}
    )


def build_nullable_filter(engine: TemplateEngine) -> str:
    return engine.render_template("nullable_filter.rs.j2", {})


def build_connection_type(config: GenerationConfig, engine: TemplateEngine) -> str:
    return engine.render_template(
        "connection_type.rs.j2", {"connection_type": config.connection_type}
    )
