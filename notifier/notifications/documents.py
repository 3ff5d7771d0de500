"""Decode raw store documents into notification records.

Documents are written by the mobile client with camelCase field names:

* ``notifications/{id}``: ``userIds``, ``title``, ``content``, ``type`` and the
  optional correlation fields ``transactionId``, ``sellerId``, ``buyerId``,
  ``itemId`` and ``chatId``.
* ``users/{id}``: ``username`` and ``fcmToken``.
* ``chats/{id}``: ``userIds`` (``{"sender": ..., "receiver": ...}``) and
  ``messages`` (``[{"senderId", "type", "content"}]``).

A correlation field that is missing or ``null`` decodes to ``None``; an empty
string is kept as a present value.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from notifier.notifications.contracts import ChatParticipants, ChatRecord, Message, MessageKind, NotificationRecord, UserRecord


def notification_from_document(notification_id: str, data: Mapping[str, Any]) -> NotificationRecord:
  """Build a :class:`NotificationRecord` from a notification document."""
  return NotificationRecord(
    id=notification_id,
    recipient_ids=_unique_ids(data.get("userIds")),
    title=_text(data.get("title")),
    content=_text(data.get("content")),
    category=_text(data.get("type")),
    transaction_id=_optional_text(data.get("transactionId")),
    seller_id=_optional_text(data.get("sellerId")),
    buyer_id=_optional_text(data.get("buyerId")),
    item_id=_optional_text(data.get("itemId")),
    chat_id=_optional_text(data.get("chatId")),
  )


def user_from_document(user_id: str, data: Mapping[str, Any]) -> UserRecord:
  """Build a :class:`UserRecord` from a user document."""
  # An empty token cannot be delivered to, so it is the same as no token.
  token = _optional_text(data.get("fcmToken")) or None
  display_name = _optional_text(data.get("username")) or None
  return UserRecord(id=user_id, display_name=display_name, push_token=token)


def chat_from_document(chat_id: str, data: Mapping[str, Any]) -> ChatRecord:
  """Build a :class:`ChatRecord` snapshot from a chat document."""
  return ChatRecord(id=chat_id, participants=participants_from_document(data.get("userIds")), messages=messages_from_document(data))


def messages_from_document(data: Mapping[str, Any]) -> tuple[Message, ...]:
  """Decode the ``messages`` list of a chat document, ignoring malformed entries."""
  messages = data.get("messages") or []
  return tuple(message_from_document(raw) for raw in messages if isinstance(raw, Mapping))


def participants_from_document(raw: Any) -> ChatParticipants:
  """Decode the ``userIds`` participant map of a chat document."""
  if not isinstance(raw, Mapping):
    raise ValueError("Chat document is missing its participant map.")

  return ChatParticipants(initiator=_text(raw.get("sender")), counterparty=_text(raw.get("receiver")))


def message_from_document(raw: Mapping[str, Any]) -> Message:
  """Decode one chat message; any kind other than text is treated as an image."""
  kind = MessageKind.TEXT if raw.get("type") == MessageKind.TEXT.value else MessageKind.IMAGE
  return Message(sender_id=_text(raw.get("senderId")), kind=kind, body=_optional_text(raw.get("content")))


def _unique_ids(raw: Any) -> tuple[str, ...]:
  if not raw:
    return ()

  # Keep first-seen order so logs stay readable; the set semantics come from dropping repeats.
  return tuple(dict.fromkeys(str(value) for value in raw if value))


def _text(value: Any) -> str:
  if value is None:
    return ""
  return str(value)


def _optional_text(value: Any) -> str | None:
  if value is None:
    return None
  return str(value)
