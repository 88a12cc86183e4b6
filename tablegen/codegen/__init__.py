"""
tablegen code generation module.

Generates Diesel models and CRUD functions from a Diesel schema.
"""

from .core import (
    ConfigError,
    GenerationConfig,
    GeneratorError,
    ParseError,
    TableOptions,
    TypeRepresentation,
    load_config,
    parse_schema,
)
from .languages import RustGenerator
from .files import (
    FileChange,
    FileChangeStatus,
    count_modified,
    generate_code,
    generate_files,
)

__all__ = [
    "ConfigError",
    "GenerationConfig",
    "GeneratorError",
    "ParseError",
    "TableOptions",
    "TypeRepresentation",
    "load_config",
    "parse_schema",
    "RustGenerator",
    "FileChange",
    "FileChangeStatus",
    "count_modified",
    "generate_code",
    "generate_files",
]
