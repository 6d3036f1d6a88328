"""Credential providers."""

from .token import OAuth2TokenProvider, StaticTokenProvider

__all__ = ["OAuth2TokenProvider", "StaticTokenProvider"]
