"""
Diesel SQL type tokens and the Rust types they load into.

Keys are lowercase; lookups are case-insensitive so `Int4`, `int4` and
`INT4` resolve alike.
"""

from typing import Dict, Iterable, Optional

RUST_STRING = "String"
RUST_BYTES = "Vec<u8>"

DIESEL_TYPE_MAP: Dict[str, str] = {
    # Integers
    "tinyint": "i8",
    "int2": "i16",
    "smallint": "i16",
    "smallserial": "i16",
    "int4": "i32",
    "integer": "i32",
    "serial": "i32",
    "int8": "i64",
    "bigint": "i64",
    "bigserial": "i64",
    "oid": "u32",
    # Floating point and numeric
    "float4": "f32",
    "real": "f32",
    "float": "f32",
    "float8": "f64",
    "double": "f64",
    "numeric": "bigdecimal::BigDecimal",
    "decimal": "bigdecimal::BigDecimal",
    "money": "diesel::pg::data_types::PgMoney",
    # Text
    "text": RUST_STRING,
    "varchar": RUST_STRING,
    "char": RUST_STRING,
    "bpchar": RUST_STRING,
    "citext": RUST_STRING,
    "tinytext": RUST_STRING,
    "mediumtext": RUST_STRING,
    "longtext": RUST_STRING,
    # Binary
    "bytea": RUST_BYTES,
    "binary": RUST_BYTES,
    "varbinary": RUST_BYTES,
    "blob": RUST_BYTES,
    "tinyblob": RUST_BYTES,
    "mediumblob": RUST_BYTES,
    "longblob": RUST_BYTES,
    "bit": RUST_BYTES,
    # Boolean
    "bool": "bool",
    "boolean": "bool",
    # Date and time
    "date": "chrono::NaiveDate",
    "time": "chrono::NaiveTime",
    "timestamp": "chrono::NaiveDateTime",
    "datetime": "chrono::NaiveDateTime",
    "timestamptz": "chrono::DateTime<chrono::Utc>",
    "interval": "diesel::pg::data_types::PgInterval",
    # Misc
    "uuid": "uuid::Uuid",
    "json": "serde_json::Value",
    "jsonb": "serde_json::Value",
    "inet": "ipnetwork::IpNetwork",
    "cidr": "ipnetwork::IpNetwork",
}

# Wrapper tokens understood by the parser
NULLABLE = "nullable"
ARRAY = "array"
UNSIGNED = "unsigned"
WRAPPER_TYPES = {NULLABLE, ARRAY, UNSIGNED}

SIGNED_INTEGER_TYPES = {"i8", "i16", "i32", "i64", "i128", "isize"}


def resolve_sql_type(
    token: str,
    custom_types: Iterable[str] = (),
    schema_path: str = "crate::schema::",
) -> Optional[str]:
    """
    Map a Diesel SQL type token to its Rust type.

    Args:
        token: Innermost type name, without path qualifiers
        custom_types: Custom SQL types declared in `sql_types` or imported
        schema_path: Path prefix of the schema module

    Returns:
        The Rust type, or None for an unknown token
    """
    if token in custom_types:
        return f"{schema_path}sql_types::{token}"
    return DIESEL_TYPE_MAP.get(token.lower())


def unsigned_counterpart(rust_type: str) -> Optional[str]:
    """Unsigned type of the same width (`i32` -> `u32`), None if not a signed integer."""
    if rust_type in SIGNED_INTEGER_TYPES:
        return "u" + rust_type[1:]
    return None
