"""Shape push payloads for broadcast notifications and chat messages.

Builders are pure functions of their input records, except for the broadcast
collapse key, which comes from the injected :class:`CollapseKeyStrategy`.
"""

from __future__ import annotations

from dataclasses import dataclass

from notifier.notifications.collapse_keys import CollapseKeyStrategy, NoCollapseKey
from notifier.notifications.contracts import CATEGORY_CHAT, AndroidEnvelope, ApnsEnvelope, Message, MessageKind, NotificationData, NotificationRecord, Payload, PlatformEnvelopes, UserRecord

CHAT_BODY_MAX_CHARS = 100
ELLIPSIS = "..."
DEFAULT_CHAT_TITLE = "New Message"
IMAGE_PLACEHOLDER = "Sent an image"
DEFAULT_CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"
DEFAULT_ANDROID_CHANNEL = "wesell_channel"


def truncate_message_body(text: str, limit: int = CHAT_BODY_MAX_CHARS) -> str:
  """Clip ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
  if len(text) <= limit:
    return text
  return text[:limit] + ELLIPSIS


def chat_message_body(message: Message) -> str:
  """Return the notification body shown for a chat message."""
  if message.kind is MessageKind.IMAGE:
    return IMAGE_PLACEHOLDER
  return truncate_message_body(message.body or "")


@dataclass(frozen=True)
class PayloadBuilder:
  """Builds :class:`Payload` objects with deployment specific constants."""

  android_channel_id: str = DEFAULT_ANDROID_CHANNEL
  click_action: str = DEFAULT_CLICK_ACTION
  broadcast_analytics_label: str | None = None
  collapse_key: CollapseKeyStrategy = NoCollapseKey()

  def envelopes(self, title: str, body: str, *, collapse_key: str | None = None) -> PlatformEnvelopes:
    """Derive both platform envelopes from the shared title and body."""
    return PlatformEnvelopes(android=AndroidEnvelope(channel_id=self.android_channel_id, collapse_key=collapse_key), apns=ApnsEnvelope(title=title, body=body))

  def chat_envelopes(self, title: str, body: str) -> PlatformEnvelopes:
    """Derive the lean envelopes used for chat pushes: priority, channel, sound and badge only."""
    android = AndroidEnvelope(channel_id=self.android_channel_id, ttl_seconds=None, sticky=None, local_only=None, default_vibrate_timings=None, visibility=None)
    apns = ApnsEnvelope(title=title, body=body, headers={}, content_available=None, mutable_content=None)
    return PlatformEnvelopes(android=android, apns=apns)

  def broadcast(self, record: NotificationRecord) -> Payload:
    """Build the shared payload for a broadcast notification."""
    data = NotificationData(
      type=record.category,
      click_action=self.click_action,
      notification_id=record.id,
      # Always sent; push data values must be strings.
      transaction_id=record.transaction_id or "",
      seller_id=record.seller_id,
      buyer_id=record.buyer_id,
      item_id=record.item_id,
      chat_id=record.chat_id,
    )
    envelopes = self.envelopes(record.title, record.content, collapse_key=self.collapse_key(record.category))
    return Payload(title=record.title, body=record.content, data=data, envelopes=envelopes, analytics_label=self.broadcast_analytics_label)

  def chat(self, chat_id: str, sender: UserRecord | None, message: Message) -> Payload:
    """Build the payload announcing ``message`` to the other participant."""
    title = (sender.display_name if sender else None) or DEFAULT_CHAT_TITLE
    body = chat_message_body(message)
    data = NotificationData(type=CATEGORY_CHAT, click_action=self.click_action, chat_id=chat_id, sender_id=message.sender_id)
    return Payload(title=title, body=body, data=data, envelopes=self.chat_envelopes(title, body))
