"""
Rust type construction for struct fields.

Turns parsed columns into Rust field types, applying the wrapping
rules in a fixed order: unsigned, array, nullable.
"""

from dataclasses import dataclass, replace

from ...core.schema import Column
from ...core.sql_types import unsigned_counterpart

_INTEGER_TYPES = {
    "i8", "u8", "i16", "u16", "i32", "u32", "i64", "u64", "i128", "u128", "isize", "usize",
}
_FLOAT_TYPES = {"f32", "f64"}


@dataclass(frozen=True)
class StructField:
    """A struct field before it is rendered."""

    name: str
    column_name: str
    base_type: str  # e.g. "String", "i32" or "u32"
    is_optional: bool = False
    is_vec: bool = False

    @classmethod
    def from_column(cls, column: Column) -> "StructField":
        """Build a field from a column, mapping unsigned integers."""
        base_type = column.base_type
        if column.is_unsigned:
            base_type = unsigned_counterpart(base_type) or base_type

        return cls(
            name=column.name,
            column_name=column.column_name,
            base_type=base_type,
            is_optional=column.is_nullable,
            is_vec=column.is_array,
        )

    def with_base_type(self, base_type: str) -> "StructField":
        return replace(self, base_type=base_type)

    def to_rust_type(self) -> str:
        """Assemble the field type, like `Option<Vec<Option<String>>>`."""
        rust_type = self.base_type

        # order matters!

        if self.is_vec:
            # array elements may always be NULL in the database
            rust_type = f"Vec<Option<{rust_type}>>"

        if self.is_optional:
            rust_type = f"Option<{rust_type}>"

        return rust_type

    def to_non_null_type(self) -> str:
        """The field type without the nullable layer."""
        return replace(self, is_optional=False).to_rust_type()


def default_for_type(rust_type: str) -> str:
    """Rust expression for the default value of a type."""
    if rust_type.startswith("Option<"):
        return "None"
    if rust_type.startswith("Vec<"):
        return "Vec::new()"
    if rust_type in _INTEGER_TYPES:
        return "0"
    if rust_type in _FLOAT_TYPES:
        return "0.0"
    if rust_type == "bool":
        return "false"
    if rust_type == "String":
        return "String::new()"
    if rust_type.startswith("&") and rust_type.endswith(" str"):
        return '""'
    if rust_type.startswith("&") and rust_type.endswith(" [u8]"):
        return "&[]"
    if rust_type.startswith("Cow<") and rust_type.endswith(" str>"):
        return "Cow::Owned(String::new())"
    if rust_type.startswith("Cow<") and rust_type.endswith(" [u8]>"):
        return "Cow::Owned(Vec::new())"
    return "Default::default()"
