"""Resolve recipient user ids into deliverable push tokens."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from starlette.concurrency import run_in_threadpool

from notifier.notifications.contracts import UserDirectory, UserRecord
from notifier.utils.redaction import token_preview

logger = logging.getLogger(__name__)

REASON_USER_NOT_FOUND = "user not found"
REASON_NO_TOKEN = "no push token"


@dataclass(frozen=True)
class UserLookup:
  """Result of one independent registry read."""

  user_id: str
  user: UserRecord | None = None
  error: str | None = None

  @property
  def token(self) -> str | None:
    if self.user is None:
      return None
    return self.user.push_token


@dataclass(frozen=True)
class TokenResolution:
  """Merged result of resolving a recipient set."""

  tokens: tuple[str, ...]
  unresolved: dict[str, str]


class TokenResolver:
  """Looks up push tokens with concurrent, individually isolated reads."""

  def __init__(self, *, directory: UserDirectory, max_concurrency: int = 10) -> None:
    self._directory = directory
    self._max_concurrency = max_concurrency

  async def lookup_user(self, user_id: str, *, semaphore: asyncio.Semaphore | None = None) -> UserLookup:
    """Read one user; failures are captured on the result instead of raised."""
    try:
      if semaphore is None:
        user = await run_in_threadpool(self._directory.get_user, user_id)
      else:
        async with semaphore:
          user = await run_in_threadpool(self._directory.get_user, user_id)
    except Exception as exc:  # noqa: BLE001
      # One bad read must not block delivery to the remaining recipients.
      logger.error("Error getting push token for user %s: %s", user_id, exc)
      return UserLookup(user_id=user_id, error=str(exc))

    return UserLookup(user_id=user_id, user=user)

  async def lookup_users(self, user_ids: Sequence[str]) -> list[UserLookup]:
    """Fan out one read per user and join them in input order."""
    semaphore = asyncio.Semaphore(self._max_concurrency)
    return list(await asyncio.gather(*(self.lookup_user(user_id, semaphore=semaphore) for user_id in user_ids)))

  async def resolve(self, user_ids: Sequence[str]) -> TokenResolution:
    """Return the deliverable tokens for ``user_ids`` and why the rest were dropped."""
    lookups = await self.lookup_users(user_ids)

    tokens: list[str] = []
    unresolved: dict[str, str] = {}
    for lookup in lookups:
      if lookup.error is not None:
        unresolved[lookup.user_id] = lookup.error
      elif lookup.user is None:
        logger.warning("User document %s does not exist", lookup.user_id)
        unresolved[lookup.user_id] = REASON_USER_NOT_FOUND
      elif lookup.token is None:
        logger.warning("User %s has no push token", lookup.user_id)
        unresolved[lookup.user_id] = REASON_NO_TOKEN
      else:
        logger.debug("Resolved push token for user %s token=%s", lookup.user_id, token_preview(lookup.token))
        tokens.append(lookup.token)

    # Two users sharing one device should still only get a single delivery.
    unique_tokens = tuple(dict.fromkeys(tokens))
    logger.info("Resolved %d push tokens for %d recipients (%d unresolved)", len(unique_tokens), len(user_ids), len(unresolved))
    return TokenResolution(tokens=unique_tokens, unresolved=unresolved)
