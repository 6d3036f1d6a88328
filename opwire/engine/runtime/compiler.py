"""Content compiler turning ``{Format, Inputs}`` into a Content bundle.

Architecture:
    The compiler walks the Format's pre-built binding table and places each
    populated input into its slot:
    - QUERY: one encoded ``wire=value`` term per value, in declared order
    - BODY: top-level under ``root``, otherwise grouped into a one-element
      array of objects under the nested key
    - FORMDATA: copied verbatim, file-content fields inlined as text
    - OUTFILE: resolved to an absolute path

Design Decisions:
    - Absent inputs never produce keys (no null padding)
    - An empty bundle is a valid result, not an error
    - Relative time rewriting is the only value transformation
    - A single body field naming an existing local file turns the body into
      a binary payload read from that file
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import quote

from ..core.enums import RAW_ARRAY, ROOT, Slot
from ..core.exceptions import CompilationError
from ..core.format import Format
from ..core.protocols import PathResolver
from ..io.paths import LocalPathResolver
from ..models import Content
from ..utils.relative_time import resolve_relative_time

logger = logging.getLogger(__name__)

# Characters left unescaped in query values; "+" is always escaped
_QUERY_SAFE = "!$'()*,;:@/?[]~"


def _as_values(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def render_query_value(value: Any) -> str:
    """Render one value for the query string."""
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = resolve_relative_time(str(value))
    return quote(text, safe=_QUERY_SAFE)


def _body_value(value: Any) -> Any:
    if isinstance(value, str):
        return resolve_relative_time(value)
    if isinstance(value, (list, tuple)):
        return [_body_value(item) for item in value]
    return value


class ContentCompiler:
    """Compiles caller inputs against a Format."""

    def __init__(self, path_resolver: PathResolver | None = None) -> None:
        self._paths = path_resolver or LocalPathResolver()

    def compile(self, fmt: Format, inputs: Mapping[str, Any]) -> Content:
        """Compile inputs into a Content bundle.

        Args:
            fmt: Field-mapping contract for the operation
            inputs: Caller-supplied logical fields (control flags removed)

        Returns:
            Content containing only populated, declared fields

        Raises:
            CompilationError: If inputs violate the Format's field rules or a
                file-content field names a missing file
        """
        fmt.validate(inputs)
        populated = {name: value for name, value in inputs.items() if value is not None}

        content = Content(
            query=self._compile_query(fmt, populated),
            body=self._compile_body(fmt, populated),
            formdata=self._compile_formdata(fmt, populated),
            outfile=self._compile_outfile(fmt, populated),
        )
        if content.is_empty:
            logger.debug("content_empty", extra={"fields": sorted(populated)})
        return content

    def _compile_query(self, fmt: Format, inputs: Mapping[str, Any]) -> list[str]:
        terms: list[str] = []
        for binding in fmt.bindings_for(Slot.QUERY):
            if binding.field not in inputs:
                continue
            for value in _as_values(inputs[binding.field]):
                terms.append(f"{binding.wire_name}={render_query_value(value)}")
        return terms

    def _compile_body(self, fmt: Format, inputs: Mapping[str, Any]) -> dict[str, Any] | list[Any] | bytes | None:
        bindings = [b for b in fmt.bindings_for(Slot.BODY) if b.field in inputs]
        if not bindings:
            return None

        if len(bindings) == 1:
            only = bindings[0]
            value = inputs[only.field]
            if only.field == RAW_ARRAY:
                return [_body_value(item) for item in _as_values(value)]
            if isinstance(value, (str, Path)) and self._paths.is_file(str(value)):
                path = self._paths.resolve(str(value))
                logger.debug("body_file_upload", extra={"path": path})
                with open(path, "rb") as handle:
                    return handle.read()

        body: dict[str, Any] = {}
        for binding in bindings:
            value = _body_value(inputs[binding.field])
            if binding.target == ROOT or binding.target is None:
                body[binding.wire_name] = value
            else:
                nested = body.setdefault(binding.target, [{}])
                nested[0][binding.wire_name] = value
        return body

    def _compile_formdata(self, fmt: Format, inputs: Mapping[str, Any]) -> dict[str, Any] | None:
        form: dict[str, Any] = {}
        for binding in fmt.bindings_for(Slot.FORMDATA):
            if binding.field not in inputs:
                continue
            value = inputs[binding.field]
            if binding.field in fmt.file_content:
                value = self._read_text(binding.field, value)
            form[binding.wire_name] = value
        return form or None

    def _compile_outfile(self, fmt: Format, inputs: Mapping[str, Any]) -> str | None:
        if fmt.outfile is None or fmt.outfile not in inputs:
            return None
        return self._paths.resolve(str(inputs[fmt.outfile]))

    def _read_text(self, name: str, value: Any) -> str:
        if not self._paths.is_file(str(value)):
            raise CompilationError(f"File for '{name}' not found: {value}", field=name)
        path = self._paths.resolve(str(value))
        with open(path, encoding="utf-8") as handle:
            return handle.read()
