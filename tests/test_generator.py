"""
Generated code tests.
Covers: CRUD functions (readonly, composite keys, async, pagination,
filters), imports, shared fragments and fragment order of a table file.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from tablegen.codegen.core.config import (
    ConfigError,
    GenerationConfig,
    TableOptions,
    TypeRepresentation,
)
from tablegen.codegen.core.generator import CommonFragmentLedger, FragmentKind
from tablegen.codegen.files import generate_code
from tablegen.codegen.languages.rust import FILE_SIGNATURE, RustGenerator

from conftest import BLOG_SCHEMA, CONNECTION_TYPE, TODOS_SCHEMA, make_config, parse_one

COMPOSITE_SCHEMA = """
diesel::table! {
    memberships (user_id, group_id) {
        user_id -> Int4,
        group_id -> Int4,
        role -> Text,
    }
}
"""


def generate(source: str, config: GenerationConfig | None = None, ledger=None) -> str:
    ledger = ledger if ledger is not None else CommonFragmentLedger()
    generator = RustGenerator(config or make_config())
    return generator.generate_table(parse_one(source), ledger).code


class TestTodosFile:
    def test_header_and_imports(self) -> None:
        code = generate(TODOS_SCHEMA)
        assert code.startswith(
            f"{FILE_SIGNATURE}\n"
            "\n"
            "#[allow(unused)]\n"
            "use crate::diesel::*;\n"
            "use crate::schema::*;\n"
            "use serde::{Deserialize, Serialize};\n"
            "\n"
            f"pub type ConnectionType = {CONNECTION_TYPE};\n"
            "\n"
            "/// Struct representing a row in table `todos`\n"
        )

    def test_fragment_order(self) -> None:
        code = generate(TODOS_SCHEMA)
        markers = [
            "pub struct Todo {",
            "pub struct CreateTodo {",
            "pub struct UpdateTodo {",
            "pub struct PaginationResult<T> {",
            "impl Todo {",
        ]
        positions = [code.index(marker) for marker in markers]
        assert positions == sorted(positions)

    def test_struct_fields(self) -> None:
        code = generate(TODOS_SCHEMA)
        assert "pub struct UpdateTodo {\n    /// Field representing column `text`\n    pub text: Option<String>,\n" in code
        assert "    pub done: Option<Option<bool>>,\n}" in code

    def test_crud_functions(self) -> None:
        code = generate(TODOS_SCHEMA)
        assert (
            "    /// Insert a new row into `todos` with a given [`CreateTodo`]\n"
            "    pub fn create(db: &mut ConnectionType, item: &CreateTodo) -> diesel::QueryResult<Self> {\n"
            "        use crate::schema::todos::dsl::*;\n"
            "\n"
            "        diesel::insert_into(todos).values(item).get_result::<Self>(db)\n"
            "    }\n"
        ) in code
        assert "/// Get a row from `todos`, identified by the primary key\n" in code
        assert "pub fn read(db: &mut ConnectionType, param_id: i32) -> diesel::QueryResult<Self> {" in code
        assert "todos.filter(id.eq(param_id)).first::<Self>(db)\n" in code
        assert "pub fn update(db: &mut ConnectionType, param_id: i32, item: &UpdateTodo)" in code
        assert "diesel::update(todos.filter(id.eq(param_id))).set(item).get_result(db)\n" in code
        assert "pub fn delete(db: &mut ConnectionType, param_id: i32) -> diesel::QueryResult<usize> {" in code
        assert "diesel::delete(todos.filter(id.eq(param_id))).execute(db)\n" in code

    def test_pagination(self) -> None:
        code = generate(TODOS_SCHEMA)
        assert "pub fn paginate(db: &mut ConnectionType, page: i64, page_size: i64)" in code
        assert "let page = page.max(0);" in code
        assert "let page_size = page_size.max(1);" in code
        assert "let total_items = todos.count().get_result(db)?;" in code
        assert ".limit(page_size).offset(page * page_size).load::<Self>(db)?;" in code
        assert "num_pages: total_items / page_size + i64::from(total_items % page_size != 0)" in code
        assert "#[derive(Debug, serde::Serialize, Clone)]\npub struct PaginationResult<T> {" in code

    def test_formatting(self) -> None:
        code = generate(TODOS_SCHEMA)
        assert "\n\n\n" not in code
        assert code.endswith("}\n")
        assert all(line == line.rstrip() for line in code.splitlines())

    def test_generate_code_end_to_end(self) -> None:
        artifacts = generate_code(TODOS_SCHEMA, make_config())
        assert len(artifacts) == 1
        assert artifacts[0].path == Path("todos") / "generated.rs"
        assert artifacts[0].code == generate(TODOS_SCHEMA)


class TestFunctionVariants:
    def test_composite_keys(self) -> None:
        code = generate(COMPOSITE_SCHEMA)
        assert "pub fn read(db: &mut ConnectionType, param_user_id: i32, param_group_id: i32)" in code
        assert (
            "memberships.filter(user_id.eq(param_user_id)).filter(group_id.eq(param_group_id))"
            ".first::<Self>(db)"
        ) in code
        assert "identified by the primary keys" in code
        assert "#[diesel(table_name=memberships, primary_key(user_id,group_id))]" in code

    def test_readonly_prefix(self) -> None:
        config = GenerationConfig(connection_type=CONNECTION_TYPE, readonly_prefixes=["view_"])
        code = generate("diesel::table! { view_stats (id) { id -> Int4, total -> Int8, } }", config)
        assert "pub struct ViewStat {" in code
        assert "CreateViewStat" not in code
        assert "UpdateViewStat" not in code
        assert "fn create" not in code
        assert "fn update" not in code
        assert "fn delete" not in code
        assert "pub fn read(" in code
        assert "pub fn paginate(" in code

    def test_async(self) -> None:
        code = generate(TODOS_SCHEMA, make_config(use_async=True))
        assert "use diesel_async::RunQueryDsl;\n" in code
        assert "pub async fn create(" in code
        assert "get_result::<Self>(db).await\n" in code
        assert "first::<Self>(db).await\n" in code
        assert "let total_items = todos.count().get_result(db).await?;" in code
        assert "execute(db).await\n" in code
        assert " fn " not in code.replace("async fn ", "")

    def test_sync_has_no_async_import(self) -> None:
        assert "diesel_async" not in generate(TODOS_SCHEMA)

    def test_create_with_default_values(self) -> None:
        code = generate(
            "diesel::table! { counters (id) { id -> Int4, } }",
            make_config(autogenerated_columns=frozenset({"id"})),
        )
        assert "CreateCounter" not in code
        assert "UpdateCounter" not in code
        assert "pub fn create(db: &mut ConnectionType) -> diesel::QueryResult<Self> {" in code
        assert "diesel::insert_into(counters).default_values().get_result::<Self>(db)" in code
        assert "fn update" not in code
        assert "pub fn delete(" in code

    def test_zero_primary_keys(self) -> None:
        code = generate("diesel::table! { logs { message -> Text, } }")
        assert "pub fn create(" in code
        assert "pub fn paginate(" in code
        assert "fn read" not in code
        assert "fn update" not in code
        assert "fn delete" not in code
        assert "diesel::Identifiable" not in code

    def test_no_functions(self) -> None:
        code = generate(TODOS_SCHEMA, make_config(fns=False))
        assert "impl Todo" not in code
        assert "ConnectionType" not in code
        assert "PaginationResult" not in code
        assert "pub struct UpdateTodo {" in code

    def test_table_without_columns(self) -> None:
        code = generate("diesel::table! { markers { } }")
        assert "pub struct Marker" not in code
        assert "impl Marker" not in code
        assert "PaginationResult" not in code


class TestAdvancedQueries:
    def test_filter_struct_and_function(self) -> None:
        code = generate(TODOS_SCHEMA, make_config(advanced_queries=True))
        assert (
            "pub struct TodoFilter {\n"
            "    pub id: Option<i32>,\n"
            "    pub text: Option<String>,\n"
            "    pub done: NullableFilter<bool>,\n"
            "}"
        ) in code
        assert "pub enum NullableFilter<T> {" in code
        assert "pub fn filter<'a>(\n        filter: TodoFilter,\n    ) -> crate::schema::todos::BoxedQuery<'a, diesel::pg::Pg> {" in code
        assert "if let Some(value) = filter.text {" in code
        assert "NullableFilter::IsNull => query = query.filter(crate::schema::todos::done.is_null())," in code
        assert code.index("impl Todo {") < code.index("pub struct TodoFilter {")

    def test_paginate_takes_filter(self) -> None:
        code = generate(TODOS_SCHEMA, make_config(advanced_queries=True))
        assert "page_size: i64, filter: TodoFilter) -> diesel::QueryResult<PaginationResult<Self>>" in code
        assert "let total_items = Self::filter(filter.clone()).count().get_result(db)?;" in code

    def test_async_filter_is_awaited(self) -> None:
        code = generate(TODOS_SCHEMA, make_config(advanced_queries=True, use_async=True))
        assert "pub async fn filter<'a>(" in code
        assert "Self::filter(filter.clone()).await.count().get_result(db).await?;" in code

    def test_diesel_backend(self) -> None:
        config = make_config(advanced_queries=True)
        config.diesel_backend = "diesel::sqlite::Sqlite"
        assert "BoxedQuery<'a, diesel::sqlite::Sqlite>" in generate(TODOS_SCHEMA, config)


class TestImports:
    def test_foreign_key_import(self) -> None:
        artifacts = generate_code(BLOG_SCHEMA, make_config())
        users, posts = (artifact.code for artifact in artifacts)
        assert "use crate::models::users::User;\nuse serde::{Deserialize, Serialize};\n" in posts
        assert "use crate::models::" not in users
        assert "#[diesel(table_name=posts, primary_key(id), belongs_to(User, foreign_key=user_id))]" in posts

    def test_cow_import(self) -> None:
        config = make_config(update_str_type=TypeRepresentation.parse("cow"))
        code = generate(TODOS_SCHEMA, config)
        assert "use crate::schema::*;\nuse std::borrow::Cow;\n" in code
        assert "pub struct UpdateTodo<'a> {" in code

    def test_custom_paths(self) -> None:
        config = make_config()
        config.schema_path = "crate::db::schema::"
        code = generate(TODOS_SCHEMA, config)
        assert "use crate::db::schema::*;" in code
        assert "use crate::db::schema::todos::dsl::*;" in code

    def test_without_serde(self) -> None:
        code = generate(TODOS_SCHEMA, make_config(serde=False))
        assert "serde" not in code
        assert "#[derive(Debug, Clone)]\npub struct PaginationResult<T> {" in code

    def test_tsync_pagination_result(self) -> None:
        code = generate(TODOS_SCHEMA, make_config(tsync=True))
        assert "#[tsync::tsync]\n#[derive(Debug, serde::Serialize, Clone)]\npub struct PaginationResult<T> {" in code


class TestOnceOptions:
    def test_once_common_structs(self) -> None:
        config = GenerationConfig(
            connection_type=CONNECTION_TYPE,
            once_common_structs=True,
            default_table_options=TableOptions(advanced_queries=True),
        )
        ledger = CommonFragmentLedger()
        code = generate(TODOS_SCHEMA, config, ledger)
        assert "use crate::models::common::*;" in code
        assert "pub struct PaginationResult" not in code
        assert "pub enum NullableFilter" not in code
        assert "pub type ConnectionType" in code
        assert FragmentKind.PAGINATION_RESULT in ledger
        assert FragmentKind.NULLABLE_FILTER in ledger
        assert FragmentKind.CONNECTION_TYPE not in ledger

    def test_once_connection_type(self) -> None:
        config = GenerationConfig(connection_type=CONNECTION_TYPE, once_connection_type=True)
        ledger = CommonFragmentLedger()
        code = generate(TODOS_SCHEMA, config, ledger)
        assert "pub type ConnectionType" not in code
        assert "pub struct PaginationResult" in code
        assert ledger.render() == f"pub type ConnectionType = {CONNECTION_TYPE};\n"

    def test_ledger_first_writer_wins(self) -> None:
        ledger = CommonFragmentLedger()
        assert ledger.record(FragmentKind.NULLABLE_FILTER, "first\n")
        assert not ledger.record(FragmentKind.NULLABLE_FILTER, "second\n")
        ledger.record(FragmentKind.CONNECTION_TYPE, "alias\n")
        assert ledger.render() == "alias\n\nfirst\n"
        assert len(ledger) == 2


class TestDefaultImpl:
    def test_default_impls(self) -> None:
        config = make_config()
        config.default_impl = True
        code = generate(TODOS_SCHEMA, config)
        create_default = code.index("impl Default for CreateTodo {")
        assert code.index("pub struct CreateTodo {") < create_default < code.index("pub struct UpdateTodo {")
        assert code.index("impl Todo {") < code.index("impl Default for Todo {")
        assert code.rstrip().endswith("}")


class TestModules:
    def test_tables_sharing_a_module(self) -> None:
        source = """
        diesel::table! { user_roles (id) { id -> Int4, } }
        diesel::table! { userRoles (id) { id -> Int4, } }
        """
        with pytest.raises(ConfigError, match="both map to module `user_roles`"):
            generate_code(source, make_config())

    def test_single_model_file_path(self) -> None:
        artifacts = generate_code(TODOS_SCHEMA, make_config(single_model_file=True))
        assert artifacts[0].path == Path("todos.rs")

    def test_invalid_config_is_rejected(self) -> None:
        with pytest.raises(ConfigError):
            generate_code(TODOS_SCHEMA, GenerationConfig())
