"""
Language-specific code generators.

This module contains generators for the supported target languages.
"""

from .rust import RustGenerator

__all__ = ["RustGenerator"]
