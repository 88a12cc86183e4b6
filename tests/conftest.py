"""
Shared fixtures for the tablegen test-suite.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from tablegen.codegen.core.config import GenerationConfig, TableOptions
from tablegen.codegen.core.parser import parse_schema
from tablegen.codegen.core.schema import Table
from tablegen.codegen.languages.rust import RustGenerator

CONNECTION_TYPE = "diesel::pg::PgConnection"

TODOS_SCHEMA = """
// @generated automatically by Diesel CLI.

diesel::table! {
    todos (id) {
        id -> Int4,
        text -> Text,
        done -> Nullable<Bool>,
    }
}
"""

BLOG_SCHEMA = """
diesel::table! {
    users (id) {
        id -> Int4,
        name -> Text,
        avatar -> Nullable<Bytea>,
    }
}

diesel::table! {
    posts (id) {
        id -> Int4,
        user_id -> Int4,
        title -> Varchar,
        tags -> Nullable<Array<Nullable<Text>>>,
    }
}

diesel::joinable!(posts -> users (user_id));

diesel::allow_tables_to_appear_in_same_query!(
    posts,
    users,
);
"""


def make_config(**table_options) -> GenerationConfig:
    """Config with a connection type and the given default table options."""
    return GenerationConfig(
        connection_type=CONNECTION_TYPE,
        default_table_options=TableOptions(**table_options),
    )


def parse_one(source: str) -> Table:
    tables = parse_schema(source)
    assert len(tables) == 1
    return tables[0]


@pytest.fixture
def config() -> GenerationConfig:
    return make_config()


@pytest.fixture
def todos_table() -> Table:
    return parse_one(TODOS_SCHEMA)


@pytest.fixture
def engine(config):
    return RustGenerator(config).template_engine


@pytest.fixture
def schema_file(tmp_path: Path) -> Path:
    path = tmp_path / "schema.rs"
    path.write_text(TODOS_SCHEMA, encoding="utf-8")
    return path


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "models"
