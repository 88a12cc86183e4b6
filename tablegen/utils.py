"""Utility functions for reading and writing generated files.

This module wraps the file system calls used by the generator so that
every failure surfaces as a `FileIOError` naming the offending path.
"""

from pathlib import Path

from .codegen.core.generator import GeneratorError
from .logging_config import get_logger

logger = get_logger(__name__)


class FileIOError(GeneratorError):
    """Custom exception for file system errors."""

    def __init__(self, message: str, path: str | Path):
        super().__init__(message)
        self.path = Path(path)


def read_file(file_path: str | Path) -> str:
    """Read a UTF-8 text file.

    Args:
        file_path: Path to the file.

    Returns:
        The file content.

    Raises:
        FileIOError: If the file cannot be read.
    """
    file_path = Path(file_path)
    logger.debug(f"Reading file: {file_path}")

    try:
        with file_path.open("r", encoding="utf-8", newline="") as f:
            return f.read()
    except OSError as e:
        logger.error(f"Error reading file {file_path}: {e}")
        raise FileIOError(f"Error reading file {file_path}: {e}", file_path) from e
    except UnicodeDecodeError as e:
        logger.error(f"File {file_path} is not valid UTF-8: {e}")
        raise FileIOError(f"File {file_path} is not valid UTF-8: {e}", file_path) from e


def read_file_if_exists(file_path: str | Path) -> str | None:
    """Read a file, returning None if it does not exist."""
    file_path = Path(file_path)
    if not file_path.exists():
        return None
    return read_file(file_path)


def write_file(file_path: str | Path, content: str) -> None:
    """Write a UTF-8 text file, replacing any previous content.

    Args:
        file_path: Path to the file.
        content: Text to write.

    Raises:
        FileIOError: If the file cannot be written.
    """
    file_path = Path(file_path)

    try:
        with file_path.open("w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        logger.info(f"Wrote {file_path}")
    except OSError as e:
        logger.error(f"Error writing file {file_path}: {e}")
        raise FileIOError(f"Error writing file {file_path}: {e}", file_path) from e


def ensure_directory(dir_path: str | Path) -> Path:
    """Create a directory and its parents if missing.

    Raises:
        FileIOError: If the directory cannot be created.
    """
    dir_path = Path(dir_path)

    try:
        dir_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Error creating directory {dir_path}: {e}")
        raise FileIOError(f"Error creating directory {dir_path}: {e}", dir_path) from e

    return dir_path
