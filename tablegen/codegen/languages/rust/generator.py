"""
Rust code generator implementation.

Generates Diesel model structs and CRUD functions for each table of a
parsed schema.
"""

from pathlib import Path
from typing import List, Optional

from ...core.config import GenerationConfig, ResolvedTableOptions
from ...core.generator import (
    CodeGenerator,
    CommonFragmentLedger,
    FragmentKind,
    GeneratedArtifact,
)
from ...core.naming import module_name_for_table, struct_name_for_table
from ...core.schema import Table
from ....logging_config import get_logger
from .functions import (
    build_connection_type,
    build_filter_struct,
    build_nullable_filter,
    build_pagination_result,
    build_table_fns,
)
from .structs import Struct, StructType

logger = get_logger(__name__)

FILE_SIGNATURE = "/* @generated and managed by tablegen */"


class RustGenerator(CodeGenerator):
    """Code generator for Diesel models."""

    def __init__(self, config: Optional[GenerationConfig] = None):
        """Initialize Rust generator with configuration."""
        super().__init__(config or GenerationConfig())

    def get_template_directory(self) -> Optional[Path]:
        """Return the Rust templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "rust"

    @property
    def file_extension(self) -> str:
        """Return Rust file extension."""
        return ".rs"

    def table_path(self, table: Table, options: ResolvedTableOptions) -> Path:
        """Target path of a table's generated file, relative to the output directory."""
        if options.single_model_file:
            return Path(f"{table.module_name}{self.file_extension}")
        return Path(table.module_name) / f"generated{self.file_extension}"

    def generate_table(self, table: Table, ledger: CommonFragmentLedger) -> GeneratedArtifact:
        """
        Generate the model file of a single table.

        Args:
            table: Parsed table
            ledger: Shared fragments, filled when a once-option is set

        Returns:
            Artifact holding the ordered fragments of the file
        """
        options = self.config.table(table.name)
        engine = self.template_engine
        logger.debug("Generating `%s` with %s", table.name, options)

        read = Struct(StructType.READ, table, options, engine)
        create = Struct(StructType.CREATE, table, options, engine)
        update = Struct(StructType.UPDATE, table, options, engine)
        structs = [read, create, update]

        artifact = GeneratedArtifact(table=table, path=self.table_path(table, options))
        artifact.add(FILE_SIGNATURE)
        artifact.add(self.build_imports(table, options, structs, ledger))

        artifact.add(read.render())
        artifact.add(create.render())
        if self.config.default_impl:
            artifact.add(create.render_default_impl())
        artifact.add(update.render())

        if options.fns and not read.has_fields:
            logger.warning(f"Table `{table.name}` has no columns, skipping its functions")
        elif options.fns:
            shared = [(FragmentKind.PAGINATION_RESULT, build_pagination_result(options, engine))]
            if options.advanced_queries:
                shared.append((FragmentKind.NULLABLE_FILTER, build_nullable_filter(engine)))

            for kind, text in shared:
                if self.config.once_common_structs:
                    ledger.record(kind, text)
                else:
                    artifact.add(text)

            artifact.add(build_table_fns(table, options, self.config, create, update, engine))
            if options.advanced_queries:
                artifact.add(build_filter_struct(table, engine))

        if self.config.default_impl:
            artifact.add(read.render_default_impl())

        artifact.fragments = [self.format_code(fragment) for fragment in artifact.fragments]
        return artifact

    def build_imports(
        self,
        table: Table,
        options: ResolvedTableOptions,
        structs: List[Struct],
        ledger: CommonFragmentLedger,
    ) -> str:
        """Import block of a table's file, ending with the connection type alias."""
        config = self.config
        lines = [
            "#[allow(unused)]",
            "use crate::diesel::*;",
            f"use {config.schema_path}*;",
        ]

        if config.any_once_option():
            lines.append(f"use {config.model_path}common::*;")

        if any(struct.uses_cow for struct in structs):
            lines.append("use std::borrow::Cow;")

        seen = set()
        for fk in table.foreign_keys:
            if fk.target_table == table.name or fk.target_table in seen:
                continue
            seen.add(fk.target_table)
            lines.append(
                f"use {config.model_path}{module_name_for_table(fk.target_table)}"
                f"::{struct_name_for_table(fk.target_table)};"
            )

        if options.serde:
            lines.append("use serde::{Deserialize, Serialize};")

        if options.fns and options.use_async:
            lines.append("use diesel_async::RunQueryDsl;")

        if options.fns:
            connection_type = build_connection_type(config, self.template_engine)
            if config.once_connection_type:
                ledger.record(FragmentKind.CONNECTION_TYPE, connection_type)
            else:
                lines.append("")
                lines.append(connection_type.rstrip("\n"))

        return "\n".join(lines) + "\n"
