"""
CLI tests.
Covers: option handling, printed change report and exit codes.
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from tablegen.cli import _build_custom_config, create_parser, main

from conftest import CONNECTION_TYPE


def run(*args: str) -> int:
    return main(list(args))


class TestMain:
    def test_generates_files(self, schema_file: Path, output_dir: Path, capsys) -> None:
        exit_code = run("-i", str(schema_file), "-o", str(output_dir), "-c", CONNECTION_TYPE)

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Added" in out
        assert "generated.rs" in out
        assert "Modified 3 files" in out
        assert (output_dir / "todos" / "generated.rs").exists()

    def test_second_run_reports_nothing_modified(self, schema_file: Path, output_dir: Path, capsys) -> None:
        args = ("-i", str(schema_file), "-o", str(output_dir), "-c", CONNECTION_TYPE)
        run(*args)
        capsys.readouterr()

        assert run(*args) == 0
        out = capsys.readouterr().out
        assert "Unchanged" in out
        assert "Modified 0 files" in out

    def test_flags_reach_the_generated_code(self, schema_file: Path, output_dir: Path) -> None:
        exit_code = run(
            "-i", str(schema_file),
            "-o", str(output_dir),
            "-c", CONNECTION_TYPE,
            "--async",
            "--no-serde",
            "--single-model-file",
            "-g", "id",
            "--create-str", "str",
        )

        code = (output_dir / "todos.rs").read_text(encoding="utf-8")
        assert exit_code == 0
        assert "pub async fn read(" in code
        assert "serde" not in code
        assert "pub struct CreateTodo<'a> {" in code
        assert "    pub id: i32," not in code.split("pub struct CreateTodo")[1].split("}")[0]

    def test_config_file(self, schema_file: Path, output_dir: Path, tmp_path: Path) -> None:
        config_file = tmp_path / "tablegen.json"
        config_file.write_text(
            json.dumps({"connection_type": CONNECTION_TYPE, "table_options": {"todos": {"readonly": True}}}),
            encoding="utf-8",
        )

        assert run("-i", str(schema_file), "-o", str(output_dir), "--config", str(config_file)) == 0
        code = (output_dir / "todos" / "generated.rs").read_text(encoding="utf-8")
        assert "CreateTodo" not in code

    def test_missing_connection_type(self, schema_file: Path, output_dir: Path, capsys) -> None:
        assert run("-i", str(schema_file), "-o", str(output_dir)) == 1
        assert "connection_type is required" in capsys.readouterr().err

    def test_no_crud_needs_no_connection_type(self, schema_file: Path, output_dir: Path) -> None:
        assert run("-i", str(schema_file), "-o", str(output_dir), "--no-crud") == 0

    def test_parse_error(self, tmp_path: Path, output_dir: Path, capsys) -> None:
        schema = tmp_path / "schema.rs"
        schema.write_text("diesel::table! { t (id) { id -> Mystery, } }", encoding="utf-8")

        assert run("-i", str(schema), "-o", str(output_dir), "-c", CONNECTION_TYPE) == 1
        assert "unknown type" in capsys.readouterr().err
        assert not output_dir.exists()


class TestArguments:
    def test_only_given_options_are_collected(self) -> None:
        args = create_parser().parse_args(["-i", "schema.rs", "-o", "models"])
        assert _build_custom_config(args) == {}

    def test_options_are_mapped(self) -> None:
        args = create_parser().parse_args(
            [
                "-i", "schema.rs",
                "-o", "models",
                "-c", CONNECTION_TYPE,
                "--no-crud",
                "--tsync",
                "--update-bytes", "cow",
                "--readonly-prefix", "view_",
                "--readonly-prefix", "report_",
                "--once-common-structs",
                "--model-path", "crate::db::models::",
            ]
        )
        assert _build_custom_config(args) == {
            "default_table_options": {"fns": False, "tsync": True, "update_bytes_type": "cow"},
            "connection_type": CONNECTION_TYPE,
            "once_common_structs": True,
            "readonly_prefixes": ["view_", "report_"],
            "model_path": "crate::db::models::",
        }

    def test_input_and_output_are_required(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args(["-i", "schema.rs"])
