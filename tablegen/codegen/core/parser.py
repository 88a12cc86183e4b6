"""
Parser for Diesel `schema.rs` sources.

Reads `table!` definitions, `joinable!` relations and the custom
`sql_types` module, and produces an ordered list of `Table` objects.
Everything else in the file is skipped.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from ...logging_config import get_logger
from .generator import GeneratorError
from .schema import Column, ForeignKey, SourceLocation, Table
from .sql_types import (
    ARRAY,
    NULLABLE,
    UNSIGNED,
    WRAPPER_TYPES,
    resolve_sql_type,
    unsigned_counterpart,
)

logger = get_logger(__name__)


class ParseError(GeneratorError):
    """
    Raised when the schema source cannot be parsed.

    Examples:
    - Malformed table header or column declaration
    - Unknown SQL type token
    - Unterminated `table!` block
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_name: Optional[str] = None,
        table: Optional[str] = None,
        column: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.source_name = source_name
        self.table = table
        self.column = column
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message like `schema.rs:3:9: message (table `x`, column `y`)`."""
        prefix = self.source_name or "<schema>"
        if self.location:
            prefix = f"{prefix}:{self.location}"

        context = []
        if self.table:
            context.append(f"table `{self.table}`")
        if self.column:
            context.append(f"column `{self.column}`")

        message = f"{prefix}: {self.message}"
        if context:
            message += f" ({', '.join(context)})"
        return message


class TokenType(Enum):
    """Token types of the Rust subset found in schema files."""

    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"
    SYMBOL = "symbol"
    EOF = "end of input"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    location: SourceLocation

    def is_symbol(self, value: str) -> bool:
        return self.type == TokenType.SYMBOL and self.value == value

    def is_ident(self, value: Optional[str] = None) -> bool:
        if self.type != TokenType.IDENTIFIER:
            return False
        return value is None or self.value == value

    def describe(self) -> str:
        if self.type == TokenType.EOF:
            return "end of input"
        return f"`{self.value}`"


_TOKEN_PATTERN = re.compile(
    r"""
    (?P<whitespace>\s+)
    |(?P<block_comment>/\*.*?\*/)
    |(?P<unterminated_comment>/\*)
    |(?P<line_comment>//[^\n]*)
    |(?P<string>"(?:\\.|[^"\\])*")
    |(?P<identifier>(?:r\#)?[A-Za-z_][A-Za-z0-9_]*)
    |(?P<number>\d+)
    |(?P<symbol>->|::|[{}()\[\]<>,;:!\#=.*&'+-])
    |(?P<mismatch>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_CLOSING = {"{": "}", "(": ")", "[": "]"}


def tokenize(source: str, source_name: Optional[str] = None) -> List[Token]:
    """Split schema source into tokens, dropping whitespace and comments."""
    tokens: List[Token] = []
    line = 1
    line_start = 0

    for match in _TOKEN_PATTERN.finditer(source):
        kind = match.lastgroup
        text = match.group()
        location = SourceLocation(line, match.start() - line_start + 1)

        if kind == "unterminated_comment":
            raise ParseError("unterminated block comment", location, source_name)
        if kind == "mismatch":
            if text == '"':
                raise ParseError("unterminated string literal", location, source_name)
            raise ParseError(f"unexpected character `{text}`", location, source_name)

        if kind == "identifier":
            tokens.append(Token(TokenType.IDENTIFIER, text, location))
        elif kind == "string":
            tokens.append(Token(TokenType.STRING, text, location))
        elif kind == "number":
            tokens.append(Token(TokenType.NUMBER, text, location))
        elif kind == "symbol":
            tokens.append(Token(TokenType.SYMBOL, text, location))

        newlines = text.count("\n")
        if newlines:
            line += newlines
            line_start = match.start() + text.rindex("\n") + 1

    tokens.append(Token(TokenType.EOF, "", SourceLocation(line, len(source) - line_start + 1)))
    return tokens


@dataclass
class TypeExpr:
    """A parsed type like `Nullable<Array<Int4>>`."""

    name: str
    args: List["TypeExpr"] = field(default_factory=list)
    location: Optional[SourceLocation] = None


class SchemaParser:
    """Recursive-descent parser over the token stream of a schema file."""

    def __init__(
        self,
        source: str,
        schema_path: str = "crate::schema::",
        source_name: Optional[str] = None,
    ):
        self.source = source
        self.schema_path = schema_path
        self.source_name = source_name
        self.tokens: List[Token] = []
        self.pos = 0

        self.tables: List[Table] = []
        self.custom_types: Set[str] = set()
        self._joinables: List[Tuple[str, str, str, SourceLocation]] = []

    # Token helpers

    def _peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def _advance(self) -> Token:
        token = self._peek()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def _at_eof(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _error(self, message: str, token: Optional[Token] = None, **context) -> ParseError:
        location = (token or self._peek()).location
        return ParseError(message, location, self.source_name, **context)

    def _expect_symbol(self, value: str, what: str, **context) -> Token:
        token = self._peek()
        if not token.is_symbol(value):
            raise self._error(f"expected `{value}` {what}, found {token.describe()}", token, **context)
        return self._advance()

    def _expect_ident(self, what: str, **context) -> Token:
        token = self._peek()
        if token.type != TokenType.IDENTIFIER:
            raise self._error(f"expected {what}, found {token.describe()}", token, **context)
        return self._advance()

    def _skip_balanced(self) -> None:
        """Skip a bracketed group starting at the current opening bracket."""
        opening = self._advance()
        stack = [_CLOSING[opening.value]]
        while stack:
            token = self._advance()
            if token.type == TokenType.EOF:
                raise self._error(f"unterminated `{opening.value}` block", opening)
            if token.type != TokenType.SYMBOL:
                continue
            if token.value in _CLOSING:
                stack.append(_CLOSING[token.value])
            elif token.value == stack[-1]:
                stack.pop()
            elif token.value in _CLOSING.values():
                raise self._error(
                    f"mismatched `{token.value}`, expected `{stack[-1]}`", token
                )

    # Entry point

    def parse(self) -> List[Table]:
        """Parse the whole source and return tables in declaration order."""
        self.tokens = tokenize(self.source, self.source_name)
        self.pos = 0

        while not self._at_eof():
            token = self._peek()
            next_token = self._peek(1)

            if token.is_ident("table") and next_token.is_symbol("!"):
                self._parse_table_macro()
            elif token.is_ident("joinable") and next_token.is_symbol("!"):
                self._parse_joinable()
            elif token.is_ident("mod") and next_token.is_ident("sql_types"):
                self._parse_sql_types_module()
            elif token.type == TokenType.SYMBOL and token.value in _CLOSING:
                self._skip_balanced()
            elif token.type == TokenType.SYMBOL and token.value in _CLOSING.values():
                raise self._error(f"unexpected `{token.value}`", token)
            else:
                self._advance()

        self._attach_foreign_keys()
        logger.debug("Parsed %d table(s) from %s", len(self.tables), self.source_name or "<schema>")
        return self.tables

    # Top-level items

    def _parse_sql_types_module(self) -> None:
        """Collect `pub struct Name;` declarations from `mod sql_types { ... }`."""
        self._advance()  # mod
        self._advance()  # sql_types
        opening = self._expect_symbol("{", "after `mod sql_types`")
        depth = 1
        while depth:
            token = self._advance()
            if token.type == TokenType.EOF:
                raise self._error("unterminated `sql_types` module", opening)
            if token.is_symbol("{"):
                depth += 1
            elif token.is_symbol("}"):
                depth -= 1
            elif token.is_ident("struct"):
                name = self._expect_ident("custom type name")
                self.custom_types.add(name.value)

    def _parse_joinable(self) -> None:
        """Parse `joinable!(child -> parent (column));`."""
        start = self._advance()  # joinable
        self._advance()  # !
        self._expect_symbol("(", "after `joinable!`")
        child = self._expect_ident("child table name in `joinable!`")
        self._expect_symbol("->", "in `joinable!`")
        parent = self._expect_ident("parent table name in `joinable!`")
        self._expect_symbol("(", "before join column in `joinable!`")
        column = self._expect_ident("join column in `joinable!`")
        self._expect_symbol(")", "after join column in `joinable!`")
        self._expect_symbol(")", "to close `joinable!`")
        if self._peek().is_symbol(";"):
            self._advance()
        self._joinables.append((child.value, parent.value, column.value, start.location))

    def _attach_foreign_keys(self) -> None:
        tables = {table.name: table for table in self.tables}
        for child, parent, column, location in self._joinables:
            table = tables.get(child)
            if table is None:
                logger.warning(
                    "Ignoring joinable! at %s: table `%s` is not defined", location, child
                )
                continue
            table.foreign_keys.append(ForeignKey(target_table=parent, join_column=column))

    def _parse_table_macro(self) -> None:
        """Parse a `table! { ... }` invocation, which may hold several tables."""
        self._advance()  # table
        self._advance()  # !
        opening = self._peek()
        if not (opening.is_symbol("{") or opening.is_symbol("(")):
            raise self._error(f"expected `{{` after `table!`, found {opening.describe()}", opening)
        self._advance()
        closing = _CLOSING[opening.value]

        while True:
            token = self._peek()
            if token.type == TokenType.EOF:
                raise self._error("unterminated `table!` block", opening)
            if token.is_symbol(closing):
                self._advance()
                break
            if token.is_ident("use"):
                self._parse_use()
            elif token.is_symbol("#"):
                # table level attributes such as #[sql_name] do not affect generation
                self._parse_attribute()
            elif token.type == TokenType.IDENTIFIER:
                self._parse_table()
            else:
                raise self._error(f"unexpected {token.describe()} in `table!` block", token)

        if self._peek().is_symbol(";"):
            self._advance()

    def _parse_use(self) -> Set[str]:
        """Parse a `use` statement, returning the custom type names it imports."""
        start = self._advance()  # use
        path: List[str] = []
        names: Set[str] = set()
        while True:
            token = self._advance()
            if token.type == TokenType.EOF:
                raise self._error("unterminated `use` statement", start)
            if token.is_symbol(";"):
                break
            if token.type == TokenType.IDENTIFIER:
                path.append(token.value)

        # `use diesel::sql_types::*;` only brings diesel's own types in scope
        if not path or path[0] == "diesel":
            return names
        if path[0] in ("super", "crate", "self") and "sql_types" in path:
            names.update(name for name in path[path.index("sql_types") + 1 :])
        elif "sql_types" not in path:
            names.add(path[-1])
        self.custom_types.update(names)
        return names

    def _parse_attribute(self) -> Tuple[str, str]:
        """Parse `#[name = "value"]` or `#[name(...)]`, returning (name, value)."""
        self._advance()  # #
        opening = self._expect_symbol("[", "after `#`")
        name = self._expect_ident("attribute name")
        value = ""
        if self._peek().is_symbol("="):
            self._advance()
            literal = self._advance()
            if literal.type not in (TokenType.STRING, TokenType.NUMBER, TokenType.IDENTIFIER):
                raise self._error(f"expected attribute value, found {literal.describe()}", literal)
            value = literal.value.strip('"')
        elif self._peek().is_symbol("("):
            self._skip_balanced()
        if not self._peek().is_symbol("]"):
            raise self._error(f"unterminated attribute `{name.value}`", opening)
        self._advance()
        return name.value, value

    # Tables and columns

    def _parse_table(self) -> None:
        """Parse `[schema.]name [(pk, ...)] { columns }`."""
        name_token = self._expect_ident("table name")
        schema = None
        table_name = name_token.value
        if self._peek().is_symbol("."):
            self._advance()
            schema = table_name
            table_name = self._expect_ident("table name after schema").value

        explicit_keys: Optional[List[Token]] = None
        if self._peek().is_symbol("("):
            self._advance()
            explicit_keys = []
            while not self._peek().is_symbol(")"):
                explicit_keys.append(self._expect_ident("primary key column", table=table_name))
                if self._peek().is_symbol(","):
                    self._advance()
                elif not self._peek().is_symbol(")"):
                    raise self._error(
                        f"expected `,` or `)` in primary key list, found {self._peek().describe()}",
                        table=table_name,
                    )
            self._advance()

        opening = self._expect_symbol("{", "to open table body", table=table_name)
        columns = self._parse_columns(table_name, opening)

        column_names = {column.name for column in columns}
        if explicit_keys is None:
            primary_keys = ["id"] if "id" in column_names else []
        else:
            primary_keys = []
            for key in explicit_keys:
                if key.value not in column_names:
                    raise self._error(
                        f"primary key column `{key.value}` is not declared",
                        key,
                        table=table_name,
                    )
                primary_keys.append(key.value)

        if not primary_keys:
            logger.warning("Table `%s` has no primary key", table_name)

        self.tables.append(
            Table(
                name=table_name,
                columns=columns,
                primary_key_columns=primary_keys,
                schema=schema,
                location=name_token.location,
            )
        )

    def _parse_columns(self, table_name: str, opening: Token) -> List[Column]:
        columns: List[Column] = []
        seen: Set[str] = set()
        attrs: Dict[str, str] = {}

        while True:
            token = self._peek()
            if token.type == TokenType.EOF:
                raise self._error("unterminated table body", opening, table=table_name)
            if token.is_symbol("}"):
                self._advance()
                return columns
            if token.is_symbol("#"):
                name, value = self._parse_attribute()
                attrs[name] = value
                continue

            name_token = self._expect_ident("column name", table=table_name)
            column_name = name_token.value
            if column_name in seen:
                raise self._error(
                    "duplicate column", name_token, table=table_name, column=column_name
                )
            self._expect_symbol("->", "after column name", table=table_name, column=column_name)

            type_expr = self._parse_type_expr(table_name, column_name)
            columns.append(
                self._build_column(
                    column_name, type_expr, attrs, name_token, table_name
                )
            )
            seen.add(column_name)
            attrs = {}

            if self._peek().is_symbol(","):
                self._advance()
            elif not self._peek().is_symbol("}"):
                raise self._error(
                    f"expected `,` or `}}` after column, found {self._peek().describe()}",
                    table=table_name,
                    column=column_name,
                )

    def _parse_type_expr(self, table_name: str, column_name: str) -> TypeExpr:
        """Parse a possibly qualified, possibly generic type."""
        token = self._expect_ident("column type", table=table_name, column=column_name)
        name = token.value
        while self._peek().is_symbol("::"):
            self._advance()
            name = self._expect_ident("type name after `::`", table=table_name, column=column_name).value

        expr = TypeExpr(name=name, location=token.location)
        if self._peek().is_symbol("<"):
            self._advance()
            expr.args.append(self._parse_type_expr(table_name, column_name))
            while self._peek().is_symbol(","):
                self._advance()
                expr.args.append(self._parse_type_expr(table_name, column_name))
            self._expect_symbol(">", "to close type arguments", table=table_name, column=column_name)
        return expr

    def _build_column(
        self,
        name: str,
        type_expr: TypeExpr,
        attrs: Dict[str, str],
        name_token: Token,
        table_name: str,
    ) -> Column:
        is_nullable = False
        is_array = False
        is_unsigned = False

        # Peel wrappers; inside an array `Nullable` only describes the elements
        expr = type_expr
        while expr.name.lower() in WRAPPER_TYPES:
            wrapper = expr.name.lower()
            if len(expr.args) != 1:
                raise ParseError(
                    f"`{expr.name}` takes exactly one type argument",
                    expr.location,
                    self.source_name,
                    table=table_name,
                    column=name,
                )
            if wrapper == NULLABLE and not is_array:
                is_nullable = True
            elif wrapper == ARRAY:
                if is_array:
                    raise ParseError(
                        "nested arrays are not supported",
                        expr.location,
                        self.source_name,
                        table=table_name,
                        column=name,
                    )
                is_array = True
            elif wrapper == UNSIGNED:
                is_unsigned = True
            expr = expr.args[0]

        base_type = None
        if not expr.args:
            base_type = resolve_sql_type(
                expr.name, self.custom_types, self.schema_path
            )
        if base_type is None:
            raise ParseError(
                f"unknown type `{expr.name}`",
                expr.location,
                self.source_name,
                table=table_name,
                column=name,
            )
        if is_unsigned and unsigned_counterpart(base_type) is None:
            raise ParseError(
                f"`Unsigned` requires a signed integer type, got `{expr.name}`",
                expr.location,
                self.source_name,
                table=table_name,
                column=name,
            )

        return Column(
            name=name,
            sql_type=expr.name,
            base_type=base_type,
            is_nullable=is_nullable,
            is_array=is_array,
            is_unsigned=is_unsigned,
            column_name=attrs.get("sql_name", ""),
            location=name_token.location,
        )


def parse_schema(
    source: str,
    schema_path: str = "crate::schema::",
    source_name: Optional[str] = None,
) -> List[Table]:
    """
    Parse Diesel schema source into tables.

    Args:
        source: Content of a `schema.rs` file
        schema_path: Path prefix of the schema module, used for custom types
        source_name: File name shown in error messages

    Returns:
        Tables in declaration order

    Raises:
        ParseError: If the source is malformed
    """
    return SchemaParser(source, schema_path, source_name).parse()
