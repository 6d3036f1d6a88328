"""Unit tests for ContentCompiler."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from opwire.engine.core import CompilationError, FieldRule, Format
from opwire.engine.io import LocalPathResolver
from opwire.engine.runtime import ContentCompiler
from opwire.engine.runtime.compiler import render_query_value


class TestQueryCompilation:
    """Test query-string placement and encoding."""

    def test_one_term_per_list_value_in_order(self):
        fmt = Format(query=("ids", "limit"))
        content = ContentCompiler().compile(fmt, {"limit": 10, "ids": ["a", "b", "c"]})
        assert content.query == ["ids=a", "ids=b", "ids=c", "limit=10"]

    def test_plus_and_space_are_escaped(self):
        """A literal '+' must never reach the server as a space."""
        fmt = Format(query=("filter",))
        content = ContentCompiler().compile(fmt, {"filter": "name:'a+b c'"})
        assert content.query == ["filter=name:'a%2Bb%20c'"]

    def test_booleans_render_lowercase(self):
        assert render_query_value(True) == "true"
        assert render_query_value(False) == "false"

    def test_alias_used_on_wire(self):
        fmt = Format(query=("sort_by",), aliases={"sort_by": "sort"})
        content = ContentCompiler().compile(fmt, {"sort_by": "name.asc"})
        assert content.query == ["sort=name.asc"]

    def test_relative_time_rewritten(self):
        """'last 1 day' becomes an absolute timestamp within a second of now - 1 day."""
        fmt = Format(query=("since",))
        before = datetime.now(UTC).replace(microsecond=0) - timedelta(days=1)
        content = ContentCompiler().compile(fmt, {"since": "last 1 day"})
        after = datetime.now(UTC) - timedelta(days=1)

        (term,) = content.query
        stamp = datetime.strptime(term.split("=", 1)[1], "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=UTC)
        assert before - timedelta(seconds=1) <= stamp <= after


class TestBodyCompilation:
    """Test body placement."""

    def test_root_and_nested_targets(self):
        """Nested targets become a one-element array of objects."""
        fmt = Format(body={"root": ("comment",), "resources": ("value", "type")})
        content = ContentCompiler().compile(fmt, {"comment": "block", "value": "evil.example", "type": "domain"})
        assert content.body == {
            "comment": "block",
            "resources": [{"value": "evil.example", "type": "domain"}],
        }

    def test_raw_array_body(self):
        fmt = Format(body={"root": ("raw_array",)})
        content = ContentCompiler().compile(fmt, {"raw_array": [{"id": 1}, {"id": 2}]})
        assert content.body == [{"id": 1}, {"id": 2}]

    def test_relative_time_in_body_string(self):
        fmt = Format(body={"root": ("filter",)})
        content = ContentCompiler().compile(fmt, {"filter": "created:>'past 2 hours'"})
        assert "past" not in content.body["filter"]
        assert content.body["filter"].startswith("created:>'")
        assert content.body["filter"].endswith("Z'")

    def test_single_file_field_becomes_binary(self, tmp_path):
        upload = tmp_path / "sample.bin"
        upload.write_bytes(b"\x00\x01payload")
        fmt = Format(body={"root": ("file",)})

        content = ContentCompiler(LocalPathResolver()).compile(fmt, {"file": str(upload)})

        assert content.body == b"\x00\x01payload"
        assert content.is_binary

    def test_string_not_naming_a_file_stays_json(self, tmp_path):
        fmt = Format(body={"root": ("name",)})
        content = ContentCompiler(LocalPathResolver(str(tmp_path))).compile(fmt, {"name": "missing.txt"})
        assert content.body == {"name": "missing.txt"}


class TestFormdataAndOutfile:
    """Test multipart and download placement."""

    def test_file_content_inlined(self, tmp_path):
        script = tmp_path / "script.ps1"
        script.write_text("Get-Process", encoding="utf-8")
        fmt = Format(formdata=("name", "content"), file_content=("content",))

        content = ContentCompiler(LocalPathResolver(str(tmp_path))).compile(
            fmt, {"name": "procs", "content": "script.ps1"}
        )

        assert content.formdata == {"name": "procs", "content": "Get-Process"}

    def test_file_content_missing_file(self, tmp_path):
        fmt = Format(formdata=("content",), file_content=("content",))
        with pytest.raises(CompilationError) as exc_info:
            ContentCompiler(LocalPathResolver(str(tmp_path))).compile(fmt, {"content": "nope.txt"})
        assert exc_info.value.field == "content"

    def test_outfile_resolved_absolute(self, tmp_path):
        fmt = Format(query=("id",), outfile="path")
        content = ContentCompiler(LocalPathResolver(str(tmp_path))).compile(
            fmt, {"id": "abc", "path": "out/report.zip"}
        )
        assert content.outfile == str(tmp_path / "out" / "report.zip")


class TestAbsentFields:
    """Test that unpopulated fields never produce keys."""

    def test_never_emits_absent_keys(self):
        fmt = Format(
            query=("ids", "filter"),
            body={"root": ("comment",), "resources": ("value",)},
            formdata=("name",),
            outfile="path",
        )
        content = ContentCompiler().compile(fmt, {"ids": ["x"], "filter": None})

        assert content.query == ["ids=x"]
        assert content.body is None
        assert content.formdata is None
        assert content.outfile is None

    def test_empty_inputs_give_empty_content(self):
        content = ContentCompiler().compile(Format(query=("ids",)), {})
        assert content.is_empty

    def test_undeclared_inputs_ignored(self):
        content = ContentCompiler().compile(Format(query=("ids",)), {"unknown": 1})
        assert content.is_empty

    def test_rules_checked_before_compilation(self):
        fmt = Format(query=("ids",), rules={"ids": FieldRule(required=True)})
        with pytest.raises(CompilationError):
            ContentCompiler().compile(fmt, {})
