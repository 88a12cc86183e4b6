"""
Core code generation components.

Provides the schema model, parser, configuration and base classes used
by the language generators.
"""

from .generator import (
    CodeGenerator,
    CommonFragmentLedger,
    FragmentKind,
    GeneratedArtifact,
    GeneratorError,
)
from .schema import Column, ForeignKey, SourceLocation, Table
from .naming import module_name_for_table, singularize, struct_name_for_table
from .config import (
    ConfigError,
    ConfigManager,
    GenerationConfig,
    RepresentationKind,
    ResolvedTableOptions,
    TableOptions,
    TypeRepresentation,
    load_config,
)
from .parser import ParseError, parse_schema
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Base generator interface
    "CodeGenerator",
    "CommonFragmentLedger",
    "FragmentKind",
    "GeneratedArtifact",
    "GeneratorError",
    # Schema model
    "Column",
    "ForeignKey",
    "SourceLocation",
    "Table",
    # Naming utilities
    "module_name_for_table",
    "singularize",
    "struct_name_for_table",
    # Configuration system
    "ConfigError",
    "ConfigManager",
    "GenerationConfig",
    "RepresentationKind",
    "ResolvedTableOptions",
    "TableOptions",
    "TypeRepresentation",
    "load_config",
    # Parser
    "ParseError",
    "parse_schema",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
