"""Strategies for the de-duplication key attached to broadcast Android envelopes.

The key tells the push service which pending messages may replace each other on
a device that is offline. How aggressively to collapse is a product decision, so
the strategy is selected by configuration:

* ``timestamp``: ``{prefix}_{category}_{epoch_ms}``. Every send gets its own key,
  so nothing is collapsed and the key only tags the send.
* ``category``: ``{prefix}_{category}``. A newer notification of the same
  category replaces an undelivered older one.
* ``none``: no key is attached.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol


class CollapseKeyStrategy(Protocol):
  """Produce the collapse key for a broadcast of ``category``."""

  def __call__(self, category: str) -> str | None:
    """Return the key, or None to send without one."""


class TimestampCollapseKey:
  def __init__(self, *, prefix: str, clock: Callable[[], float] = time.time) -> None:
    self._prefix = prefix
    self._clock = clock

  def __call__(self, category: str) -> str | None:
    return f"{self._prefix}_{category}_{int(self._clock() * 1000)}"


class CategoryCollapseKey:
  def __init__(self, *, prefix: str) -> None:
    self._prefix = prefix

  def __call__(self, category: str) -> str | None:
    return f"{self._prefix}_{category}"


class NoCollapseKey:
  def __call__(self, category: str) -> str | None:
    return None


def build_collapse_key_strategy(name: str, *, prefix: str) -> CollapseKeyStrategy:
  """Return the strategy registered under ``name``."""
  if name == "timestamp":
    return TimestampCollapseKey(prefix=prefix)
  if name == "category":
    return CategoryCollapseKey(prefix=prefix)
  if name == "none":
    return NoCollapseKey()
  raise ValueError(f"Unsupported collapse key strategy: {name}")
