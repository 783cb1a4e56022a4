"""Tests for options loading and jq-style lookups."""

from __future__ import annotations

import json
from pathlib import Path

from devsetup.core.errors import ErrorKind
from devsetup.core.options import DEFAULT_OPTIONS, DesiredState
from devsetup.core.resolver import OptionsResolver, PathQuery
from devsetup.output.console import MockConsole


def _write(path: Path, document: object) -> Path:
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestPathQuery:
    def test_nested_keys(self) -> None:
        doc = {"git": {"user": {"name": "Ada"}}}
        assert PathQuery().query(doc, ".git.user.name") == "Ada"

    def test_list_index(self) -> None:
        doc = {"languages": {"node": {"versions": [{"version": "18.16.1"}]}}}
        assert PathQuery().query(doc, ".languages.node.versions[0].version") == "18.16.1"

    def test_identity(self) -> None:
        doc = {"a": 1}
        assert PathQuery().query(doc, ".") == doc

    def test_missing_or_null_is_none(self) -> None:
        doc = {"a": None, "b": [1]}
        query = PathQuery()
        assert query.query(doc, ".a") is None
        assert query.query(doc, ".missing.deeper") is None
        assert query.query(doc, ".b[3]") is None

    def test_unsupported_syntax_is_none(self) -> None:
        assert PathQuery().query({"a": 1}, ".a | length") is None


class TestLoad:
    def test_missing_file_writes_defaults(self, tmp_path: Path) -> None:
        console = MockConsole()
        path = tmp_path / "config" / "dev_setup_options.json"

        state = OptionsResolver(console, PathQuery()).load(path)

        assert state == DesiredState.default()
        assert json.loads(path.read_text(encoding="utf-8")) == DEFAULT_OPTIONS
        assert console.find("Options file not found")
        assert console.find("Created default options file")

    def test_reads_existing_document(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "options.json", {"editors": {"install": False}})

        state = OptionsResolver(MockConsole(), PathQuery()).load(path)

        assert state.editors.install is False
        assert state.cli_tools.install is True

    def test_invalid_json_is_replaced_with_defaults(self, tmp_path: Path) -> None:
        console = MockConsole()
        path = tmp_path / "options.json"
        path.write_text("{not json", encoding="utf-8")
        resolver = OptionsResolver(console, PathQuery())

        state = resolver.load(path)

        assert state == DesiredState.default()
        assert resolver.last_error is not None
        assert resolver.last_error.kind is ErrorKind.CONFIG_INVALID
        assert json.loads(path.read_text(encoding="utf-8")) == DEFAULT_OPTIONS
        assert console.find("Invalid JSON in options file")

    def test_non_object_document_is_replaced(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "options.json", [1, 2, 3])
        resolver = OptionsResolver(MockConsole(), PathQuery())

        assert resolver.load(path) == DesiredState.default()
        assert resolver.last_error is not None

    def test_mistyped_value_warns_and_defaults(self, tmp_path: Path) -> None:
        console = MockConsole()
        path = _write(tmp_path / "options.json", {"terminal": {"install": "no"}})

        state = OptionsResolver(console, PathQuery()).load(path)

        assert state.terminal.install is True
        assert console.find(".terminal.install")

    def test_without_engine_uses_defaults(self, tmp_path: Path) -> None:
        console = MockConsole()
        path = _write(tmp_path / "options.json", {"cli_tools": {"install": False}})
        resolver = OptionsResolver(console, None)

        state = resolver.load(path)

        assert not resolver.engine_available
        assert state.cli_tools.install is True
        assert console.find("No JSON query engine available")


class TestGet:
    def test_returns_value(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "options.json", {"git": {"user": {"name": "Ada"}}})
        resolver = OptionsResolver(MockConsole(), PathQuery())
        resolver.load(path)

        assert resolver.get(".git.user.name", "nobody") == "Ada"

    def test_null_and_absent_take_default(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "options.json", {"git": {"user": None}})
        resolver = OptionsResolver(MockConsole(), PathQuery())
        resolver.load(path)

        assert resolver.get(".git.user.name", "nobody") == "nobody"
        assert resolver.get(".nothing", False) is False

    def test_without_engine_returns_default(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "options.json", {"git": {"user": {"name": "Ada"}}})
        resolver = OptionsResolver(MockConsole(), None)
        resolver.load(path)

        assert resolver.get(".git.user.name", "nobody") == "nobody"

    def test_before_load_returns_default(self) -> None:
        resolver = OptionsResolver(MockConsole(), PathQuery())
        assert resolver.get(".cli_tools.install", True) is True
        assert resolver.state == DesiredState.default()
