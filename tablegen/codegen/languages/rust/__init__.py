"""
Rust code generator module.

Generates Diesel model structs and CRUD functions from a parsed schema.
"""

from .generator import FILE_SIGNATURE, RustGenerator
from .structs import Derive, Struct, StructType, STRUCT_POLICIES
from .types import StructField, default_for_type

__all__ = [
    "FILE_SIGNATURE",
    "RustGenerator",
    "Derive",
    "Struct",
    "StructType",
    "STRUCT_POLICIES",
    "StructField",
    "default_for_type",
    "create_generator",
]


def create_generator(config=None):
    """
    Create a Rust generator.

    Args:
        config: GenerationConfig instance, defaults are used when omitted

    Returns:
        Configured RustGenerator instance
    """
    return RustGenerator(config)
