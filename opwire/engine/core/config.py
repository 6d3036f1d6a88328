"""Engine configuration.

All tunables that the compiler, planner, dispatcher and rate-limit guard
read live on one frozen model so a single instance can be shared by every
component of an engine.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import DEFAULT_READ_ONLY_METHODS

DEFAULT_HOST = "https://api.example.com"


class EngineConfig(BaseModel):
    """Configuration shared by all engine components."""

    host: str = Field(default=DEFAULT_HOST, min_length=1)
    timeout: float = Field(default=30.0, gt=0)
    max_batch_size: int = Field(default=500, ge=1)
    max_url_length: int = Field(default=65535, ge=256)
    token_path: str = "/oauth2/token"
    read_only_methods: frozenset[str] = DEFAULT_READ_ONLY_METHODS
    refresh_window: float = Field(default=60.0, ge=0)
    default_retry_after: float = Field(default=1.0, ge=0)
    user_agent: str = "opwire-engine/0.1.0"

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("host")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("read_only_methods")
    @classmethod
    def _upper_methods(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(method.upper() for method in value)

    def url_for(self, path: str) -> str:
        """Build an absolute URL from the configured host and a path suffix."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.host}{path}"

    def is_read_only(self, method: str) -> bool:
        return method.upper() in self.read_only_methods

    @classmethod
    def from_env(cls, prefix: str = "OPWIRE_", **overrides: object) -> EngineConfig:
        """Build a config from ``<prefix>HOST``, ``<prefix>TIMEOUT`` and
        ``<prefix>USER_AGENT`` environment variables.

        Explicit keyword overrides win over the environment.
        """
        values: dict[str, object] = {}
        host = os.environ.get(f"{prefix}HOST")
        if host:
            values["host"] = host
        timeout = os.environ.get(f"{prefix}TIMEOUT")
        if timeout:
            values["timeout"] = float(timeout)
        user_agent = os.environ.get(f"{prefix}USER_AGENT")
        if user_agent:
            values["user_agent"] = user_agent
        values.update(overrides)
        return cls(**values)
