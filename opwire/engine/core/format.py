"""Static field-mapping contract for one logical operation.

Architecture:
    A ``Format`` declares which logical input fields go on the query string,
    into the request body (top level or grouped under a nested key), into a
    multipart form, or name a local download destination. On construction it
    resolves every declaration into a table of ``FieldBinding`` entries keyed
    by logical field name, so the compiler never inspects the declaration
    collections at call time.

Design Decisions:
    - Frozen dataclass: a Format is defined once per operation and shared
    - Binding table built in __post_init__, not per call
    - Aliases decouple logical names from wire names
    - FieldRule carries the only validation the core performs
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .enums import RAW_ARRAY, ROOT, Slot
from .exceptions import CompilationError


@dataclass(frozen=True)
class FieldBinding:
    """Resolved placement of one logical field.

    Attributes:
        field: Logical field name as supplied by the caller
        slot: Target slot in the compiled content
        wire_name: Name used on the wire
        target: Body target object (``root`` or a nested key); None otherwise
    """

    field: str
    slot: Slot
    wire_name: str
    target: str | None = None


@dataclass(frozen=True)
class FieldRule:
    """Constraints checked before any content is produced."""

    required: bool = False
    allowed: tuple[Any, ...] | None = None
    pattern: str | None = None

    def check(self, name: str, value: Any) -> None:
        if value is None:
            if self.required:
                raise CompilationError(f"Missing required field '{name}'", field=name)
            return
        values = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
        for item in values:
            if self.allowed is not None and item not in self.allowed:
                raise CompilationError(
                    f"Value '{item}' for '{name}' is not one of {list(self.allowed)}",
                    field=name,
                )
            if self.pattern is not None and not re.fullmatch(self.pattern, str(item)):
                raise CompilationError(
                    f"Value '{item}' for '{name}' does not match '{self.pattern}'",
                    field=name,
                )


@dataclass(frozen=True)
class Format:
    """Field-mapping contract for one logical operation.

    Examples:
        >>> Format(
        ...     query=("ids", "filter", "limit", "offset"),
        ...     body={"root": ("comment",), "resources": ("value", "type")},
        ...     outfile="path",
        ... )
    """

    query: tuple[str, ...] = ()
    body: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    formdata: tuple[str, ...] = ()
    outfile: str | None = None
    file_content: tuple[str, ...] = ()
    aliases: Mapping[str, str] = field(default_factory=dict)
    rules: Mapping[str, FieldRule] = field(default_factory=dict)
    bindings: Mapping[str, tuple[FieldBinding, ...]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "query", tuple(self.query))
        object.__setattr__(self, "formdata", tuple(self.formdata))
        object.__setattr__(self, "file_content", tuple(self.file_content))
        object.__setattr__(
            self, "body", {target: tuple(names) for target, names in self.body.items()}
        )

        unknown = set(self.file_content) - set(self.formdata)
        if unknown:
            raise ValueError(f"file_content fields must also be formdata fields: {sorted(unknown)}")

        table: dict[str, list[FieldBinding]] = {}

        def bind(name: str, slot: Slot, target: str | None = None) -> None:
            wire = self.aliases.get(name, name)
            table.setdefault(name, []).append(FieldBinding(name, slot, wire, target))

        for name in self.query:
            bind(name, Slot.QUERY)
        for target, names in self.body.items():
            for name in names:
                bind(name, Slot.BODY, target)
        for name in self.formdata:
            bind(name, Slot.FORMDATA)
        if self.outfile is not None:
            bind(self.outfile, Slot.OUTFILE)

        object.__setattr__(
            self, "bindings", {name: tuple(items) for name, items in table.items()}
        )

    @property
    def fields(self) -> tuple[str, ...]:
        """All logical field names, in declaration order."""
        return tuple(self.bindings)

    @property
    def body_targets(self) -> tuple[str, ...]:
        return tuple(self.body)

    @property
    def has_raw_array(self) -> bool:
        return RAW_ARRAY in self.body.get(ROOT, ())

    def bindings_for(self, slot: Slot) -> Iterable[FieldBinding]:
        """Yield bindings for one slot, in declaration order."""
        for items in self.bindings.values():
            for binding in items:
                if binding.slot is slot:
                    yield binding

    def validate(self, inputs: Mapping[str, Any]) -> None:
        """Apply field rules to caller inputs.

        Raises:
            CompilationError: If a rule is violated
        """
        for name, rule in self.rules.items():
            rule.check(name, inputs.get(name))
