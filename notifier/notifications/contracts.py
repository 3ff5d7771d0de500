"""Contracts for notification dispatch: records, payloads, outcomes and collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

CATEGORY_PAYMENT = "payment"
CATEGORY_CHAT = "chat"
CATEGORY_SYSTEM = "system"


class MessageKind(str, Enum):
  """Kinds of chat message a sender can append."""

  TEXT = "text"
  IMAGE = "image"


@dataclass(frozen=True)
class NotificationRecord:
  """A notification document created by upstream business logic."""

  id: str
  recipient_ids: tuple[str, ...]
  title: str
  content: str
  category: str
  transaction_id: str | None = None
  seller_id: str | None = None
  buyer_id: str | None = None
  item_id: str | None = None
  chat_id: str | None = None


@dataclass(frozen=True)
class UserRecord:
  """The subset of a registry user the dispatcher reads."""

  id: str
  display_name: str | None
  push_token: str | None


@dataclass(frozen=True)
class ChatParticipants:
  """The two users taking part in a chat."""

  initiator: str
  counterparty: str

  def other_than(self, user_id: str) -> str | None:
    """Return the participant who is not ``user_id``, or None when ``user_id`` is not a participant."""
    if user_id == self.initiator:
      return self.counterparty
    if user_id == self.counterparty:
      return self.initiator
    return None


@dataclass(frozen=True)
class Message:
  """A single chat message."""

  sender_id: str
  kind: MessageKind
  body: str | None = None


@dataclass(frozen=True)
class ChatRecord:
  """A snapshot of a chat document."""

  id: str
  participants: ChatParticipants
  messages: tuple[Message, ...] = ()


@dataclass(frozen=True)
class MessageAppended:
  """Explicit event describing one message appended to a chat."""

  chat_id: str
  participants: ChatParticipants
  message: Message


@dataclass(frozen=True)
class NotificationData:
  """Data fields delivered alongside a push; ``None`` means the field is absent."""

  type: str
  click_action: str
  notification_id: str | None = None
  transaction_id: str | None = None
  seller_id: str | None = None
  buyer_id: str | None = None
  item_id: str | None = None
  chat_id: str | None = None
  sender_id: str | None = None

  def as_message_data(self) -> dict[str, str]:
    """Return the wire mapping, emitting only the fields that are present."""
    optional = {
      "transactionId": self.transaction_id,
      "notificationId": self.notification_id,
      "sellerId": self.seller_id,
      "buyerId": self.buyer_id,
      "itemId": self.item_id,
      "chatId": self.chat_id,
      "senderId": self.sender_id,
    }
    data = {"type": self.type, "click_action": self.click_action}
    data.update({key: value for key, value in optional.items() if value is not None})
    return data


@dataclass(frozen=True)
class AndroidEnvelope:
  """Android delivery options: immediate, high priority, on a fixed channel.

  Options set to ``None`` are left out of the request.
  """

  channel_id: str
  priority: str = "high"
  ttl_seconds: int | None = 0
  notification_priority: str = "high"
  default_sound: bool = True
  sticky: bool | None = False
  local_only: bool | None = False
  default_vibrate_timings: bool | None = True
  visibility: str | None = "public"
  collapse_key: str | None = None


@dataclass(frozen=True)
class ApnsEnvelope:
  """APNs delivery options: immediate alert with the default sound and a badge. ``None`` flags are omitted."""

  title: str
  body: str
  headers: dict[str, str] = field(default_factory=lambda: {"apns-priority": "10", "apns-push-type": "alert"})
  sound: str = "default"
  badge: int = 1
  content_available: bool | None = True
  mutable_content: bool | None = True


@dataclass(frozen=True)
class PlatformEnvelopes:
  android: AndroidEnvelope
  apns: ApnsEnvelope


@dataclass(frozen=True)
class Payload:
  """Platform independent push content plus its platform envelopes."""

  title: str
  body: str
  data: NotificationData
  envelopes: PlatformEnvelopes
  analytics_label: str | None = None


@dataclass(frozen=True)
class DeliveryResult:
  """Outcome of delivering to one token."""

  token: str
  success: bool
  error_reason: str | None = None


@dataclass(frozen=True)
class BatchOutcome:
  """Aggregated per-token outcomes of one delivery request."""

  success_count: int
  failure_count: int
  results: tuple[DeliveryResult, ...]

  @classmethod
  def from_results(cls, results: Sequence[DeliveryResult]) -> BatchOutcome:
    successes = sum(1 for result in results if result.success)
    return cls(success_count=successes, failure_count=len(results) - successes, results=tuple(results))

  def failures(self) -> list[DeliveryResult]:
    return [result for result in self.results if not result.success]


class DispatchStatus(str, Enum):
  """Terminal states of a dispatch."""

  SKIPPED = "skipped"
  RECONCILED = "reconciled"
  FAILED = "failed"


class SkipReason(str, Enum):
  """Why a dispatch ended without a delivery request."""

  NO_RECIPIENTS = "no_recipients"
  NO_TOKENS = "no_tokens"
  NO_NEW_MESSAGE = "no_new_message"
  SENDER_NOT_PARTICIPANT = "sender_not_participant"
  PARTICIPANT_MISSING = "participant_missing"
  NO_RECEIVER_TOKEN = "no_receiver_token"


@dataclass(frozen=True)
class DispatchOutcome:
  """Result returned by a dispatcher for one triggering event."""

  status: DispatchStatus
  reason: SkipReason | None = None
  batch: BatchOutcome | None = None
  error: str | None = None

  @classmethod
  def skipped(cls, reason: SkipReason) -> DispatchOutcome:
    return cls(status=DispatchStatus.SKIPPED, reason=reason)

  @classmethod
  def reconciled(cls, batch: BatchOutcome) -> DispatchOutcome:
    return cls(status=DispatchStatus.RECONCILED, batch=batch)

  @classmethod
  def failed(cls, error: str) -> DispatchOutcome:
    return cls(status=DispatchStatus.FAILED, error=error)


class NotificationError(Exception):
  """Base class for all notification dispatch failures."""


class UserLookupError(NotificationError):
  """Exception raised when a registry read for a single user fails."""


class PushTransportError(NotificationError):
  """Exception raised when a delivery request cannot be completed after retries."""

  def __init__(self, message: str, *, attempts: int = 1) -> None:
    super().__init__(message)
    self.attempts = attempts


class UserDirectory(Protocol):
  """Point-read contract for the user registry."""

  def get_user(self, user_id: str) -> UserRecord | None:
    """Return the user, or None when no such user exists. Raises on read failure."""


class PushGateway(Protocol):
  """Delivery contract for the push transport."""

  def send_multicast(self, tokens: Sequence[str], payload: Payload) -> BatchOutcome:
    """Deliver one payload to many tokens and return per-token outcomes."""

  def send(self, token: str, payload: Payload) -> DeliveryResult:
    """Deliver one payload to a single token."""
