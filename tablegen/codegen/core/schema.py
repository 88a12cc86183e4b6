"""
Core schema representation for code generation.

The parser turns Diesel schema source into these structures; every
later stage of the pipeline reads them and never mutates them.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .naming import module_name_for_table, struct_name_for_table


@dataclass(frozen=True)
class SourceLocation:
    """Position in the schema source (1-indexed)."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Column:
    """Represents a single column of a table."""

    name: str
    sql_type: str  # Innermost type token as written, e.g. "Int4"
    base_type: str  # Rust base type, e.g. "i32" or "String"
    is_nullable: bool = False
    is_array: bool = False
    is_unsigned: bool = False
    column_name: str = ""  # Actual SQL column name, from #[sql_name]
    location: Optional[SourceLocation] = None

    def __post_init__(self):
        """Default the SQL column name to the Rust name."""
        if not self.column_name:
            object.__setattr__(self, "column_name", self.name)

    def is_autogenerated(self, autogenerated_columns: Iterable[str]) -> bool:
        """Check if this column is assigned by the database."""
        return self.name in autogenerated_columns


@dataclass(frozen=True)
class ForeignKey:
    """A `joinable!` relation: this table references `target_table` via `join_column`."""

    target_table: str
    join_column: str


@dataclass
class Table:
    """Represents a parsed `table!` definition."""

    name: str
    columns: List[Column] = field(default_factory=list)
    primary_key_columns: List[str] = field(default_factory=list)
    foreign_keys: List[ForeignKey] = field(default_factory=list)
    schema: Optional[str] = None
    location: Optional[SourceLocation] = None

    @property
    def struct_name(self) -> str:
        """Base struct name, like `Todo` for table `todos`."""
        return struct_name_for_table(self.name)

    @property
    def module_name(self) -> str:
        """Module (file) name for the generated code."""
        return module_name_for_table(self.name)

    def get_column(self, name: str) -> Optional[Column]:
        """Get column by name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def is_primary_key(self, column_name: str) -> bool:
        """Check whether a column is part of the primary key."""
        return column_name in self.primary_key_columns

    def primary_key_column_objects(self) -> List[Column]:
        """Primary key columns in key order."""
        return [
            column
            for name in self.primary_key_columns
            if (column := self.get_column(name)) is not None
        ]

