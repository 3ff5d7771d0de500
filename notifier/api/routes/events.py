"""Ingress for document store events pushed by the hosting event system."""

from __future__ import annotations

import logging
import secrets
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from notifier.config import Settings, get_settings
from notifier.notifications.contracts import ChatRecord, DispatchOutcome, MessageAppended
from notifier.notifications.documents import chat_from_document, message_from_document, messages_from_document, notification_from_document, participants_from_document
from notifier.notifications.factory import Dispatchers
from notifier.utils.redaction import token_preview

router = APIRouter(prefix="/events", tags=["events"])
logger = logging.getLogger(__name__)


class NotificationCreatedEvent(BaseModel):
  notification_id: str = Field(min_length=1)
  document: dict[str, Any]


class ChatUpdatedEvent(BaseModel):
  chat_id: str = Field(min_length=1)
  before: dict[str, Any]
  after: dict[str, Any]


class ChatParticipantsBody(BaseModel):
  sender: str = Field(min_length=1)
  receiver: str = Field(min_length=1)


class ChatMessageBody(BaseModel):
  sender_id: str = Field(min_length=1, alias="senderId")
  type: str
  content: str | None = None
  model_config = ConfigDict(populate_by_name=True)


class MessageAppendedEvent(BaseModel):
  chat_id: str = Field(min_length=1)
  participants: ChatParticipantsBody
  message: ChatMessageBody


def verify_event_secret(settings: Annotated[Settings, Depends(get_settings)], authorization: str | None = Header(default=None), x_notifier_event_secret: str | None = Header(default=None)) -> None:
  """Reject event deliveries that do not carry the shared secret."""
  # Without a configured secret nobody may trigger pushes.
  if not settings.event_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Event authentication is not configured.")

  shared_secret_valid = secrets.compare_digest(x_notifier_event_secret or "", settings.event_secret)
  bearer_valid = secrets.compare_digest(authorization or "", f"Bearer {settings.event_secret}")
  if not shared_secret_valid and not bearer_valid:
    logger.warning("Unauthorized event delivery attempt")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid event secret.")


def get_dispatchers(request: Request) -> Dispatchers:
  return request.app.state.dispatchers


def serialize_outcome(outcome: DispatchOutcome) -> dict[str, Any]:
  """Return the JSON representation of a dispatch outcome; tokens are previewed only."""
  batch = outcome.batch
  return {
    "status": outcome.status.value,
    "reason": outcome.reason.value if outcome.reason else None,
    "error": outcome.error,
    "success_count": batch.success_count if batch else 0,
    "failure_count": batch.failure_count if batch else 0,
    "results": [{"token_preview": token_preview(result.token), "success": result.success, "error_reason": result.error_reason} for result in (batch.results if batch else ())],
  }


@router.post("/notifications/created", dependencies=[Depends(verify_event_secret)])
async def notification_created(event: NotificationCreatedEvent, dispatchers: Annotated[Dispatchers, Depends(get_dispatchers)]) -> dict[str, Any]:
  """Fan a newly created notification document out to its recipients."""
  record = notification_from_document(event.notification_id, event.document)
  outcome = await dispatchers.broadcast.dispatch(record)
  return serialize_outcome(outcome)


@router.post("/chats/updated", dependencies=[Depends(verify_event_secret)])
async def chat_updated(event: ChatUpdatedEvent, dispatchers: Annotated[Dispatchers, Depends(get_dispatchers)]) -> list[dict[str, Any]]:
  """Notify the receiver about messages appended between two chat snapshots."""
  try:
    after = chat_from_document(event.chat_id, event.after)
  except ValueError as exc:
    raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

  # Only the after snapshot's participants are read; the before snapshot contributes its messages.
  before = ChatRecord(id=event.chat_id, participants=after.participants, messages=messages_from_document(event.before))

  outcomes = await dispatchers.chat.dispatch_update(before, after)
  return [serialize_outcome(outcome) for outcome in outcomes]


@router.post("/chats/messages", dependencies=[Depends(verify_event_secret)])
async def chat_message_appended(event: MessageAppendedEvent, dispatchers: Annotated[Dispatchers, Depends(get_dispatchers)]) -> dict[str, Any]:
  """Notify the receiver about one explicitly appended chat message."""
  appended = MessageAppended(
    chat_id=event.chat_id,
    participants=participants_from_document(event.participants.model_dump()),
    message=message_from_document(event.message.model_dump(by_alias=True)),
  )
  outcome = await dispatchers.chat.dispatch_appended(appended)
  return serialize_outcome(outcome)
