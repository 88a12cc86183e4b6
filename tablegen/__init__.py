"""Generate Diesel models and CRUD functions from a Diesel schema."""

from .codegen import (
    ConfigError,
    FileChange,
    FileChangeStatus,
    GenerationConfig,
    GeneratorError,
    ParseError,
    TableOptions,
    count_modified,
    generate_code,
    generate_files,
    load_config,
)
from .utils import FileIOError

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "FileChange",
    "FileChangeStatus",
    "FileIOError",
    "GenerationConfig",
    "GeneratorError",
    "ParseError",
    "TableOptions",
    "count_modified",
    "generate_code",
    "generate_files",
    "load_config",
]
