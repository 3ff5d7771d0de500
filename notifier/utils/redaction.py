"""Helpers that keep device tokens out of log output."""

from __future__ import annotations

TOKEN_PREVIEW_CHARS = 20


def token_preview(token: str | None) -> str:
  """Return a short, log-safe preview of a push token."""
  if not token:
    return "null"

  return f"{token[:TOKEN_PREVIEW_CHARS]}..."
