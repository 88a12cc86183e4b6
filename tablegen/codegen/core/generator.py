"""
Base generator interface for all code generation targets.

Defines the contract that a target generator implements and the
exception hierarchy shared by the whole pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .schema import Table
from .templates import TemplateEngine, create_template_engine


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


@dataclass
class GeneratedArtifact:
    """Rendered output for a single table.

    Attributes:
        table: Table the code was generated for
        path: Target path, relative to the output directory
        fragments: Ordered text fragments making up the file
    """

    table: Table
    path: Path
    fragments: List[str] = field(default_factory=list)

    def add(self, fragment: Optional[str]) -> None:
        """Append a fragment, ignoring empty ones."""
        if fragment:
            self.fragments.append(fragment)

    @property
    def code(self) -> str:
        """Whole-file text, fragments separated by a blank line."""
        return "\n".join(fragment.rstrip("\n") + "\n" for fragment in self.fragments)


class FragmentKind(Enum):
    """Fragments that can be emitted once into the shared `common` module."""

    CONNECTION_TYPE = "connection_type"
    PAGINATION_RESULT = "pagination_result"
    NULLABLE_FILTER = "nullable_filter"


class CommonFragmentLedger:
    """
    Records shared fragments across the tables of one run.

    The first text recorded for a kind wins; later tables asking for the
    same kind are ignored.
    """

    def __init__(self):
        self._fragments: Dict[FragmentKind, str] = {}

    def record(self, kind: FragmentKind, text: str) -> bool:
        """Record a fragment, returning False if the kind was already recorded."""
        if kind in self._fragments:
            return False
        self._fragments[kind] = text
        return True

    def __contains__(self, kind: FragmentKind) -> bool:
        return kind in self._fragments

    def __len__(self) -> int:
        return len(self._fragments)

    def render(self) -> str:
        """All recorded fragments, in `FragmentKind` order."""
        return "\n".join(
            self._fragments[kind].rstrip("\n") + "\n"
            for kind in FragmentKind
            if kind in self._fragments
        )


class CodeGenerator(ABC):
    """Abstract base class for all code generators."""

    def __init__(self, config: Any):
        """Initialize generator with its configuration."""
        self.config = config
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        self._template_engine = create_template_engine(self.get_template_directory())

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the target language (e.g., 'rust')."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension for generated files (e.g., '.rs')."""
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Return None to use in-memory templates only.
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @abstractmethod
    def generate_table(self, table: Table, ledger: CommonFragmentLedger) -> GeneratedArtifact:
        """
        Generate the file content for a single table.

        Args:
            table: Parsed table
            ledger: Bookkeeping for fragments emitted once across tables

        Returns:
            The rendered artifact
        """
        pass

    def format_code(self, code: str) -> str:
        """
        Apply basic formatting to generated code.

        Strips trailing whitespace and collapses runs of blank lines.
        """
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 1:
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).rstrip("\n") + "\n"
