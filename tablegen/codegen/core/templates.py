"""
Template engine wrapper for code generation.

Provides a simple interface for Jinja2 template rendering
with common utilities for code generation.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import (
    DictLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
)
from jinja2 import TemplateError as JinjaTemplateError


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


class TemplateEngine:
    """Wrapper for Jinja2 template engine with code generation utilities."""

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize template engine.

        Args:
            template_dir: Directory containing template files
        """
        self.template_dir = template_dir
        self._env = None
        self._setup_environment()

    def _setup_environment(self):
        """Setup Jinja2 environment with code generation utilities."""
        if self.template_dir and self.template_dir.exists():
            loader = FileSystemLoader(str(self.template_dir))
        else:
            # Use in-memory templates
            loader = DictLoader({})

        # Generated Rust is full of `<`, `>` and `&`, never escape
        self._env = Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

        # Add custom filters for code generation
        self._env.filters["doc"] = self._doc_comment_filter

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of template file
            context: Variables to pass to template

        Returns:
            Rendered template content
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template {template_name}: {str(e)}") from e

    # Template filters for code generation

    def _doc_comment_filter(self, value: str, indent: int = 0) -> str:
        """Prefix every line with a Rust doc comment marker."""
        pad = " " * indent
        lines = str(value).split("\n")
        return "\n".join(f"{pad}/// {line}".rstrip() for line in lines)


def create_template_engine(template_dir: Optional[Path] = None) -> TemplateEngine:
    """Create a template engine, optionally backed by a template directory."""
    return TemplateEngine(template_dir)
