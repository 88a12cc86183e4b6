"""
Struct variants generated for every table.

Each table yields up to three structs: the Read struct mirroring a row,
the Create struct used for inserts and the Update struct used as a
changeset. What goes into each is decided by a policy table keyed by
`StructType`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from ...core.config import ResolvedTableOptions, TypeRepresentation
from ...core.schema import Column, Table
from ...core.sql_types import RUST_BYTES, RUST_STRING
from ...core.templates import TemplateEngine
from ....logging_config import get_logger
from .types import StructField, default_for_type

logger = get_logger(__name__)


class Derive:
    """Derive names, in the spelling they are emitted with."""

    DEBUG = "Debug"
    CLONE = "Clone"
    DEFAULT = "Default"
    PARTIAL_EQ = "PartialEq"
    SERIALIZE = "Serialize"
    DESERIALIZE = "Deserialize"
    QUERYABLE = "diesel::Queryable"
    SELECTABLE = "diesel::Selectable"
    QUERYABLE_BY_NAME = "diesel::QueryableByName"
    INSERTABLE = "diesel::Insertable"
    AS_CHANGESET = "diesel::AsChangeset"
    IDENTIFIABLE = "diesel::Identifiable"
    ASSOCIATIONS = "diesel::Associations"


class StructType(Enum):
    """The struct variants generated per table."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"

    @property
    def policy(self) -> "StructPolicy":
        return STRUCT_POLICIES[self]

    def format(self, name: str) -> str:
        """Struct identifier for a base name, like `CreateTodo`."""
        return f"{self.policy.prefix}{name}{self.policy.suffix}"


@dataclass(frozen=True)
class RenderedField:
    """A field with its final Rust type."""

    name: str
    column_name: str
    rust_type: str
    annotation: str = ""
    uses_cow: bool = False

    @property
    def default_value(self) -> str:
        return default_for_type(self.rust_type)


def _read_columns(table: Table, column: Column, options: ResolvedTableOptions) -> bool:
    return True


def _create_columns(table: Table, column: Column, options: ResolvedTableOptions) -> bool:
    return not column.is_autogenerated(options.autogenerated_columns)


def _update_columns(table: Table, column: Column, options: ResolvedTableOptions) -> bool:
    return not table.is_primary_key(column.name)


def _read_capabilities(struct: "Struct") -> List[str]:
    derives = [Derive.QUERYABLE, Derive.SELECTABLE]
    if struct.options.queryable_by_name:
        derives.append(Derive.QUERYABLE_BY_NAME)
    derives.append(Derive.PARTIAL_EQ)

    if struct.table.foreign_keys:
        derives.extend([Derive.ASSOCIATIONS, Derive.IDENTIFIABLE])
    elif struct.table.primary_key_columns:
        derives.append(Derive.IDENTIFIABLE)
    return derives


def _create_capabilities(struct: "Struct") -> List[str]:
    return [Derive.INSERTABLE]


def _update_capabilities(struct: "Struct") -> List[str]:
    derives = []
    # a changeset made only of key columns has nothing to set
    if not all(struct.table.is_primary_key(f.name) for f in struct.fields):
        derives.extend([Derive.AS_CHANGESET, Derive.PARTIAL_EQ])
    derives.append(Derive.DEFAULT)
    return derives


@dataclass(frozen=True)
class StructPolicy:
    """How one struct variant is named, documented and derived."""

    prefix: str
    suffix: str
    doc: str
    include_column: Callable[[Table, Column, ResolvedTableOptions], bool]
    capabilities: Callable[["Struct"], List[str]]
    str_option: Optional[str] = None
    bytes_option: Optional[str] = None
    extra_option: bool = False


STRUCT_POLICIES: Dict[StructType, StructPolicy] = {
    StructType.READ: StructPolicy(
        prefix="",
        suffix="",
        doc="Struct representing a row in table `{table}`",
        include_column=_read_columns,
        capabilities=_read_capabilities,
    ),
    StructType.CREATE: StructPolicy(
        prefix="Create",
        suffix="",
        doc="Create Struct for a row in table `{table}` for [`{read}`]",
        include_column=_create_columns,
        capabilities=_create_capabilities,
        str_option="create_str_type",
        bytes_option="create_bytes_type",
    ),
    StructType.UPDATE: StructPolicy(
        prefix="Update",
        suffix="",
        doc="Update Struct for a row in table `{table}` for [`{read}`]",
        include_column=_update_columns,
        capabilities=_update_capabilities,
        str_option="update_str_type",
        bytes_option="update_bytes_type",
        extra_option=True,
    ),
}


class Struct:
    """One generated struct variant of a table."""

    def __init__(
        self,
        struct_type: StructType,
        table: Table,
        options: ResolvedTableOptions,
        engine: TemplateEngine,
    ):
        self.struct_type = struct_type
        self.table = table
        self.options = options
        self.engine = engine
        self.policy = struct_type.policy
        self.identifier = struct_type.format(table.struct_name)
        self.fields = self._build_fields()

    @property
    def has_fields(self) -> bool:
        return bool(self.fields)

    @property
    def uses_cow(self) -> bool:
        return any(f.uses_cow for f in self.fields)

    @property
    def lifetime(self) -> str:
        """Longest lifetime annotation among the fields; the first one wins a tie."""
        annotations = [f.annotation for f in self.fields if f.annotation]
        if not annotations:
            return ""
        return max(annotations, key=len)

    @property
    def generics(self) -> str:
        return f"<{self.lifetime}>" if self.lifetime else ""

    def _build_fields(self) -> List[RenderedField]:
        if self.options.readonly and self.struct_type != StructType.READ:
            return []

        rendered = []
        for column in self.table.columns:
            if not self.policy.include_column(self.table, column, self.options):
                continue
            rendered.append(self._render_field(StructField.from_column(column)))
        return rendered

    def _representation_for(self, base_type: str) -> Optional[TypeRepresentation]:
        if base_type == RUST_STRING and self.policy.str_option:
            return getattr(self.options, self.policy.str_option)
        if base_type == RUST_BYTES and self.policy.bytes_option:
            return getattr(self.options, self.policy.bytes_option)
        return None

    def _render_field(self, struct_field: StructField) -> RenderedField:
        annotation = ""
        uses_cow = False

        representation = self._representation_for(struct_field.base_type)
        if representation is not None:
            if struct_field.base_type == RUST_STRING:
                struct_field = struct_field.with_base_type(representation.render_string())
            else:
                struct_field = struct_field.with_base_type(representation.render_bytes())
            annotation = representation.annotation
            uses_cow = representation.uses_cow

        rust_type = struct_field.to_rust_type()
        if self.policy.extra_option:
            rust_type = f"Option<{rust_type}>"

        return RenderedField(
            name=struct_field.name,
            column_name=struct_field.column_name,
            rust_type=rust_type,
            annotation=annotation,
            uses_cow=uses_cow,
        )

    def derives(self) -> List[str]:
        """Derives in emission order."""
        derives = [Derive.DEBUG, Derive.CLONE]
        if self.options.serde:
            derives.extend([Derive.SERIALIZE, Derive.DESERIALIZE])
        derives.extend(self.policy.capabilities(self))
        return derives

    def diesel_attribute(self) -> str:
        """Contents of the `#[diesel(...)]` attribute."""
        parts = [f"table_name={self.table.name}"]

        if self.struct_type == StructType.READ:
            if self.table.primary_key_columns:
                parts.append(f"primary_key({','.join(self.table.primary_key_columns)})")
            for fk in self.table.foreign_keys:
                parent = StructType.READ.format(Table(fk.target_table).struct_name)
                parts.append(f"belongs_to({parent}, foreign_key={fk.join_column})")

        return ", ".join(parts)

    def render(self) -> Optional[str]:
        """Struct definition, or None if the struct is suppressed."""
        if not self.has_fields:
            logger.debug(f"Skipping empty {self.struct_type.value} struct for `{self.table.name}`")
            return None

        doc = self.policy.doc.format(table=self.table.name, read=self.table.struct_name)
        return self.engine.render_template(
            "struct.rs.j2",
            {
                "doc": doc,
                "tsync": self.options.tsync,
                "derives": self.derives(),
                "diesel_attribute": self.diesel_attribute(),
                "identifier": self.identifier,
                "generics": self.generics,
                "fields": self.fields,
            },
        )

    def render_default_impl(self) -> Optional[str]:
        """`impl Default` filling every field with its type's default."""
        if not self.has_fields:
            return None
        return self.engine.render_template(
            "default_impl.rs.j2",
            {
                "identifier": self.identifier,
                "generics": self.generics,
                "fields": self.fields,
            },
        )
