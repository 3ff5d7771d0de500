"""User registry readers."""

from __future__ import annotations

import logging

from notifier.notifications.contracts import UserDirectory, UserLookupError, UserRecord
from notifier.notifications.documents import user_from_document

logger = logging.getLogger(__name__)


class FirestoreUserDirectory(UserDirectory):
  """Point reads against the Firestore ``users`` collection."""

  def __init__(self, *, client, collection: str = "users") -> None:
    self._client = client
    self._collection = collection

  def get_user(self, user_id: str) -> UserRecord | None:
    """Read one user document; a missing document returns None."""
    try:
      snapshot = self._client.collection(self._collection).document(user_id).get()
    except Exception as exc:  # noqa: BLE001
      raise UserLookupError(f"Failed reading user {user_id}: {exc}") from exc

    if not snapshot.exists:
      return None

    return user_from_document(user_id, snapshot.to_dict() or {})


class NullUserDirectory(UserDirectory):
  """Registry used when Firestore is not configured; every user is unknown."""

  def get_user(self, user_id: str) -> UserRecord | None:
    logger.debug("User registry unavailable; treating user %s as missing", user_id)
    return None
