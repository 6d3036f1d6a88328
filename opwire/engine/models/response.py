"""Raw HTTP response as handed from the transport to the normalizer."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RawResponse:
    """Transport-neutral HTTP response.

    Attributes:
        status: HTTP status code
        headers: Response headers (lookups are case-insensitive via header())
        body: Raw body bytes; empty when streamed to an outfile
        url: Final request URL
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as UTF-8 JSON.

        Raises:
            ValueError: If the body is empty or not valid JSON
        """
        if not self.body:
            raise ValueError("Empty response body")
        return json.loads(self.body.decode("utf-8"))
