"""
File assembly and change tracking.

Turns the per-table artifacts into files under an output directory,
keeps the `mod.rs` files declaring them up to date and reports what
changed compared to the previous run.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..logging_config import get_logger
from ..utils import ensure_directory, read_file, read_file_if_exists, write_file
from .core.config import ConfigError, GenerationConfig
from .core.generator import CommonFragmentLedger, GeneratedArtifact
from .core.parser import parse_schema
from .languages.rust import FILE_SIGNATURE, RustGenerator

logger = get_logger(__name__)


class FileChangeStatus(Enum):
    """What happened to a file during a run."""

    ADDED = "Added"
    MODIFIED = "Modified"
    UNCHANGED = "Unchanged"


@dataclass(frozen=True)
class FileChange:
    """A file touched by a run."""

    path: Path
    status: FileChangeStatus

    def __str__(self) -> str:
        return f"{self.status.value} {self.path}"


class MarkedFile:
    """
    A file whose previous content is kept to detect changes.

    Content is only written back when it differs from what was read.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.original = read_file_if_exists(self.path)
        self.content = self.original or ""

    @property
    def exists(self) -> bool:
        return self.original is not None

    def has_signature(self) -> bool:
        """Whether the file was written by the generator."""
        return self.content.startswith(FILE_SIGNATURE)

    def ensure_generated(self) -> None:
        """Refuse to touch an existing file the generator does not manage."""
        if self.exists and not self.has_signature():
            raise ConfigError(
                f"Refusing to overwrite {self.path}: it exists but was not generated "
                f"(missing `{FILE_SIGNATURE}`)"
            )

    def has_line(self, line: str) -> bool:
        return any(existing.strip() == line for existing in self.content.splitlines())

    def ensure_line(self, line: str) -> None:
        """Append a statement unless the file already has it."""
        if self.has_line(line):
            return
        if self.content and not self.content.endswith("\n"):
            self.content += "\n"
        self.content += line + "\n"

    def write(self) -> FileChange:
        """Write the content if it changed and report the outcome."""
        if self.original is None:
            status = FileChangeStatus.ADDED
        elif self.original != self.content:
            status = FileChangeStatus.MODIFIED
        else:
            return FileChange(self.path, FileChangeStatus.UNCHANGED)

        write_file(self.path, self.content)
        return FileChange(self.path, status)


def generate_code(
    schema_text: str,
    config: GenerationConfig,
    ledger: Optional[CommonFragmentLedger] = None,
    source_name: Optional[str] = None,
) -> List[GeneratedArtifact]:
    """
    Generate the code of every table in a schema without touching the disk.

    Args:
        schema_text: Diesel schema source
        config: Generation configuration
        ledger: Collects fragments emitted once, a fresh one is used when omitted
        source_name: Name of the schema source used in error messages

    Returns:
        One artifact per table, in schema order

    Raises:
        ParseError: If the schema cannot be parsed
        ConfigError: If the configuration is invalid or two tables share a module
    """
    config.validate()
    if ledger is None:
        ledger = CommonFragmentLedger()

    tables = parse_schema(schema_text, config.schema_path, source_name)

    reserved = {"mod"}
    if config.any_once_option():
        reserved.add("common")

    modules: Dict[str, str] = {}
    for table in tables:
        if table.module_name in reserved:
            raise ConfigError(
                f"Table `{table.name}` maps to module `{table.module_name}`, "
                f"which is reserved for the generated `{table.module_name}.rs`"
            )
        other = modules.setdefault(table.module_name, table.name)
        if other != table.name:
            raise ConfigError(
                f"Tables `{other}` and `{table.name}` both map to module `{table.module_name}`"
            )

    generator = RustGenerator(config)
    artifacts = [generator.generate_table(table, ledger) for table in tables]
    logger.debug("Generated code for %d table(s)", len(artifacts))
    return artifacts


def generate_files(
    input_path: Union[str, Path],
    output_dir: Union[str, Path],
    config: GenerationConfig,
) -> List[FileChange]:
    """
    Generate model files from a schema file.

    Args:
        input_path: Path of the Diesel schema file
        output_dir: Directory receiving the model modules
        config: Generation configuration

    Returns:
        Every file written or checked, with its change status

    Raises:
        ParseError: If the schema cannot be parsed
        ConfigError: On invalid configuration or output conflicts
        FileIOError: If a file cannot be read or written
    """
    input_path = Path(input_path)
    output_dir = Path(output_dir)

    if output_dir.exists() and not output_dir.is_dir():
        raise ConfigError(f"Output path {output_dir} exists but is not a directory")

    ledger = CommonFragmentLedger()
    artifacts = generate_code(read_file(input_path), config, ledger, str(input_path))

    ensure_directory(output_dir)
    changes: List[FileChange] = []

    for artifact in artifacts:
        target = output_dir / artifact.path
        ensure_directory(target.parent)

        generated = MarkedFile(target)
        generated.ensure_generated()
        generated.content = artifact.code
        changes.append(generated.write())

        # multi-file mode: <module>/mod.rs re-exports the generated code
        if target.parent != output_dir:
            module_file = MarkedFile(target.parent / "mod.rs")
            module_file.ensure_line("pub use generated::*;")
            module_file.ensure_line("pub mod generated;")
            changes.append(module_file.write())

    root_mod = MarkedFile(output_dir / "mod.rs")

    if config.any_once_option():
        common = MarkedFile(output_dir / "common.rs")
        common.ensure_generated()
        common.content = "\n".join(filter(None, [FILE_SIGNATURE + "\n", ledger.render()]))
        changes.append(common.write())
        root_mod.ensure_line("pub mod common;")

    for artifact in artifacts:
        root_mod.ensure_line(f"pub mod {artifact.table.module_name};")
    changes.append(root_mod.write())

    logger.info("%d file(s) modified", count_modified(changes))
    return changes


def count_modified(changes: List[FileChange]) -> int:
    """Number of files that were added or modified."""
    return sum(1 for change in changes if change.status != FileChangeStatus.UNCHANGED)
