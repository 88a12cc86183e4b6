"""
Configuration management for code generation.

Handles the per-table option surface, merging of default and
table-specific overrides, and loading configuration from JSON files.
"""

import json
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Union

from .generator import GeneratorError


class ConfigError(GeneratorError):
    """Exception raised for configuration-related errors."""

    pass


class RepresentationKind(Enum):
    """How text and binary columns are held in Create/Update structs."""

    OWNED = "owned"  # String / Vec<u8>
    BORROWED = "borrowed"  # &'a str / &'a [u8]
    COW = "cow"  # Cow<'a, str> / Cow<'a, [u8]>


# Names accepted on the CLI and in config files
_KIND_ALIASES = {
    "string": RepresentationKind.OWNED,
    "vec": RepresentationKind.OWNED,
    "owned": RepresentationKind.OWNED,
    "str": RepresentationKind.BORROWED,
    "slice": RepresentationKind.BORROWED,
    "borrowed": RepresentationKind.BORROWED,
    "cow": RepresentationKind.COW,
}


@dataclass(frozen=True)
class TypeRepresentation:
    """A representation choice together with its lifetime annotation."""

    kind: RepresentationKind = RepresentationKind.OWNED
    lifetime: str = "'a"

    @property
    def requires_annotation(self) -> bool:
        """Whether the struct needs a lifetime parameter for this field."""
        return self.kind != RepresentationKind.OWNED

    @property
    def annotation(self) -> str:
        """Lifetime required by this representation, or an empty string."""
        return self.lifetime if self.requires_annotation else ""

    @property
    def uses_cow(self) -> bool:
        return self.kind == RepresentationKind.COW

    def render_string(self) -> str:
        """Rust type used for text columns."""
        if self.kind == RepresentationKind.BORROWED:
            return f"&{self.lifetime} str"
        if self.kind == RepresentationKind.COW:
            return f"Cow<{self.lifetime}, str>"
        return "String"

    def render_bytes(self) -> str:
        """Rust type used for binary columns."""
        if self.kind == RepresentationKind.BORROWED:
            return f"&{self.lifetime} [u8]"
        if self.kind == RepresentationKind.COW:
            return f"Cow<{self.lifetime}, [u8]>"
        return "Vec<u8>"

    @classmethod
    def parse(cls, value: Union[str, "TypeRepresentation"]) -> "TypeRepresentation":
        """Build a representation from a name like `string`, `str` or `cow`."""
        if isinstance(value, TypeRepresentation):
            return value
        kind = _KIND_ALIASES.get(str(value).lower())
        if kind is None:
            valid = ", ".join(sorted(_KIND_ALIASES))
            raise ConfigError(f"Invalid type representation `{value}`, expected one of: {valid}")
        return cls(kind)


OWNED = TypeRepresentation(RepresentationKind.OWNED)


@dataclass(frozen=True)
class TableOptions:
    """
    Options for one table, or the defaults for all tables.

    Every field is optional: `None` means "not specified here" so that a
    table-specific override can be merged over the defaults without
    dropping anything it does not mention.
    """

    readonly: Optional[bool] = None
    autogenerated_columns: Optional[FrozenSet[str]] = None
    create_str_type: Optional[TypeRepresentation] = None
    update_str_type: Optional[TypeRepresentation] = None
    create_bytes_type: Optional[TypeRepresentation] = None
    update_bytes_type: Optional[TypeRepresentation] = None
    serde: Optional[bool] = None
    fns: Optional[bool] = None
    use_async: Optional[bool] = None
    single_model_file: Optional[bool] = None
    tsync: Optional[bool] = None
    queryable_by_name: Optional[bool] = None
    advanced_queries: Optional[bool] = None

    def merge(self, other: Optional["TableOptions"]) -> "TableOptions":
        """Return a copy where every field `other` specifies overrides this one."""
        if other is None:
            return self
        overrides = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **overrides)

    def resolve(self) -> "ResolvedTableOptions":
        """Fill unspecified fields with the built-in defaults."""
        values = {}
        for f in fields(ResolvedTableOptions):
            value = getattr(self, f.name)
            if value is not None:
                values[f.name] = value
        return ResolvedTableOptions(**values)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableOptions":
        """Build options from a JSON-style dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown table option(s): {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            if key == "autogenerated_columns":
                if not _is_string_list(value):
                    raise ConfigError("autogenerated_columns must be a list of column names")
                values[key] = frozenset(value)
            elif key.endswith("_type"):
                values[key] = TypeRepresentation.parse(value)
            else:
                if not isinstance(value, bool):
                    raise ConfigError(f"Table option `{key}` must be a boolean, got {value!r}")
                values[key] = value
        return cls(**values)


@dataclass(frozen=True)
class ResolvedTableOptions:
    """Concrete options for one table, after merging and defaulting."""

    readonly: bool = False
    autogenerated_columns: FrozenSet[str] = frozenset()
    create_str_type: TypeRepresentation = OWNED
    update_str_type: TypeRepresentation = OWNED
    create_bytes_type: TypeRepresentation = OWNED
    update_bytes_type: TypeRepresentation = OWNED
    serde: bool = True
    fns: bool = True
    use_async: bool = False
    single_model_file: bool = False
    tsync: bool = False
    queryable_by_name: bool = True
    advanced_queries: bool = False


@dataclass
class GenerationConfig:
    """Configuration for a whole generation run."""

    connection_type: str = ""
    default_table_options: TableOptions = field(default_factory=TableOptions)
    table_options: Dict[str, TableOptions] = field(default_factory=dict)
    schema_path: str = "crate::schema::"
    model_path: str = "crate::models::"
    once_common_structs: bool = False
    once_connection_type: bool = False
    readonly_prefixes: List[str] = field(default_factory=list)
    readonly_suffixes: List[str] = field(default_factory=list)
    diesel_backend: str = "diesel::pg::Pg"
    default_impl: bool = False

    def table(self, name: str) -> ResolvedTableOptions:
        """
        Resolve the options for a table.

        Defaults are merged with the table's overrides; a table matching a
        readonly prefix or suffix is always readonly.
        """
        options = self.default_table_options.merge(self.table_options.get(name))

        if any(name.startswith(prefix) for prefix in self.readonly_prefixes) or any(
            name.endswith(suffix) for suffix in self.readonly_suffixes
        ):
            options = replace(options, readonly=True)

        return options.resolve()

    def any_once_option(self) -> bool:
        """Whether anything is emitted to the shared `common` module."""
        return self.once_common_structs or self.once_connection_type

    def validate(self) -> None:
        """
        Check the configuration for invalid values.

        Raises:
            ConfigError: On the first problem found
        """
        for f in fields(self):
            _check_value(f.name, getattr(self, f.name))

        for label, path in (("schema_path", self.schema_path), ("model_path", self.model_path)):
            if path and not path.endswith("::"):
                raise ConfigError(f"{label} must end with `::`, got `{path}`")

        needs_connection = self.default_table_options.resolve().fns or any(
            options.fns for options in self.table_options.values()
        )
        if needs_connection and not self.connection_type.strip():
            raise ConfigError(
                "connection_type is required when CRUD functions are generated"
            )

        for label, affixes in (
            ("readonly_prefixes", self.readonly_prefixes),
            ("readonly_suffixes", self.readonly_suffixes),
        ):
            if any(not affix for affix in affixes):
                raise ConfigError(f"{label} must not contain empty strings")


_STRING_KEYS = {"connection_type", "schema_path", "model_path", "diesel_backend"}
_BOOL_KEYS = {"once_common_structs", "once_connection_type", "default_impl"}
_LIST_KEYS = {"readonly_prefixes", "readonly_suffixes"}


def _is_string_list(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset)) and all(
        isinstance(item, str) for item in value
    )


def _check_value(key: str, value: Any) -> None:
    """Raise ConfigError if a top-level configuration value has the wrong type."""
    if key in _STRING_KEYS and not isinstance(value, str):
        raise ConfigError(f"`{key}` must be a string, got {value!r}")
    if key in _BOOL_KEYS and not isinstance(value, bool):
        raise ConfigError(f"`{key}` must be a boolean, got {value!r}")
    if key in _LIST_KEYS and not _is_string_list(value):
        raise ConfigError(f"`{key}` must be a list of strings, got {value!r}")
    if key == "default_table_options" and not isinstance(value, (dict, TableOptions)):
        raise ConfigError(f"`{key}` must be an object, got {value!r}")
    if key == "table_options" and not isinstance(value, dict):
        raise ConfigError(f"`{key}` must be an object mapping table names to options, got {value!r}")


def _table_options(name: str, options: Any) -> TableOptions:
    if isinstance(options, TableOptions):
        return options
    if not isinstance(options, dict):
        raise ConfigError(f"Options for table `{name}` must be an object, got {options!r}")
    return TableOptions.from_dict(options)


class ConfigManager:
    """Manages configuration loading and merging."""

    def get_config(
        self,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> GenerationConfig:
        """
        Get complete configuration.

        Args:
            custom_config: Custom configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration
        """
        base_config: Dict[str, Any] = {}

        # Load from file if provided
        if config_file:
            base_config.update(self._load_config_file(config_file))

        # Apply custom overrides
        if custom_config:
            for key, value in custom_config.items():
                if key == "default_table_options" and isinstance(value, dict):
                    merged = dict(base_config.get(key, {}))
                    merged.update(value)
                    base_config[key] = merged
                else:
                    base_config[key] = value

        return self._dict_to_config(base_config)

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {str(e)}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {str(e)}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        for key, value in config.items():
            _check_value(key, value)

        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GenerationConfig:
        """Convert dictionary to GenerationConfig instance."""
        known_fields = {f.name for f in fields(GenerationConfig)}
        unknown = set(config_dict) - known_fields
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(sorted(unknown))}")

        config_args = dict(config_dict)
        for key, value in config_args.items():
            _check_value(key, value)

        default_options = config_args.get("default_table_options")
        if isinstance(default_options, dict):
            config_args["default_table_options"] = TableOptions.from_dict(default_options)

        table_options = config_args.get("table_options")
        if table_options is not None:
            config_args["table_options"] = {
                name: _table_options(name, options) for name, options in table_options.items()
            }

        return GenerationConfig(**config_args)


# Global configuration manager instance
_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> GenerationConfig:
    """
    Convenience function to load configuration.

    Args:
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration
    """
    manager = get_config_manager()
    return manager.get_config(custom_config, config_file)

