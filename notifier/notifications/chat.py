"""Notify the other chat participant when a message is appended."""

from __future__ import annotations

import asyncio
import logging

from starlette.concurrency import run_in_threadpool

from notifier.notifications.contracts import BatchOutcome, ChatRecord, DispatchOutcome, DispatchStatus, Message, MessageAppended, PushGateway, PushTransportError, SkipReason
from notifier.notifications.payloads import PayloadBuilder
from notifier.notifications.token_resolver import TokenResolver
from notifier.utils.redaction import token_preview

logger = logging.getLogger(__name__)


def detect_appended_messages(before: ChatRecord, after: ChatRecord) -> list[Message]:
  """Return the messages appended between two snapshots of the same chat.

  Growth with ``before.messages`` as an untouched prefix yields exactly the new
  tail. When the prefix no longer matches (the sequence was rewritten or
  compacted) the new messages cannot be identified, so only the last message is
  returned.
  """
  known = len(before.messages)
  if len(after.messages) <= known:
    return []

  if after.messages[:known] == before.messages:
    return list(after.messages[known:])

  logger.warning("Chat %s message history was rewritten between snapshots (%d -> %d); notifying only the latest message", after.id, known, len(after.messages))
  return [after.messages[-1]]


class ChatDeltaDispatcher:
  """Sends one push to the receiving participant per appended message."""

  def __init__(self, *, resolver: TokenResolver, payloads: PayloadBuilder, gateway: PushGateway) -> None:
    self._resolver = resolver
    self._payloads = payloads
    self._gateway = gateway

  async def dispatch_update(self, before: ChatRecord, after: ChatRecord) -> list[DispatchOutcome]:
    """Handle a before/after update of a chat document.

    A transport fault on one message is recorded as a failed outcome so the
    remaining messages are still attempted. The fault is raised only when no
    message reached the gateway, so a redelivered update never repeats a push
    that was already sent.
    """
    appended = detect_appended_messages(before, after)
    if not appended:
      logger.debug("Chat %s update carried no new messages", after.id)
      return [DispatchOutcome.skipped(SkipReason.NO_NEW_MESSAGE)]

    outcomes = []
    first_fault: PushTransportError | None = None
    for message in appended:
      try:
        outcomes.append(await self.dispatch_appended(MessageAppended(chat_id=after.id, participants=after.participants, message=message)))
      except PushTransportError as exc:
        first_fault = first_fault or exc
        outcomes.append(DispatchOutcome.failed(str(exc)))

    if first_fault is not None and not any(outcome.status is DispatchStatus.RECONCILED for outcome in outcomes):
      raise first_fault

    return outcomes

  async def dispatch_appended(self, event: MessageAppended) -> DispatchOutcome:
    """Deliver a push announcing ``event.message`` to the participant who did not send it.

    A fault of the delivery request raises :class:`PushTransportError`, the same
    as for broadcasts.
    """
    sender_id = event.message.sender_id
    receiver_id = event.participants.other_than(sender_id)
    if receiver_id is None:
      logger.warning("Sender %s is not a participant of chat %s; skipping", sender_id, event.chat_id)
      return DispatchOutcome.skipped(SkipReason.SENDER_NOT_PARTICIPANT)

    # Both reads are independent; join them before deciding anything.
    sender_lookup, receiver_lookup = await asyncio.gather(self._resolver.lookup_user(sender_id), self._resolver.lookup_user(receiver_id))

    if sender_lookup.user is None or receiver_lookup.user is None:
      logger.info("Sender or receiver not found for chat %s (sender=%s receiver=%s)", event.chat_id, sender_id, receiver_id)
      return DispatchOutcome.skipped(SkipReason.PARTICIPANT_MISSING)

    token = receiver_lookup.token
    if token is None:
      logger.info("Receiver %s of chat %s has no push token", receiver_id, event.chat_id)
      return DispatchOutcome.skipped(SkipReason.NO_RECEIVER_TOKEN)

    payload = self._payloads.chat(event.chat_id, sender_lookup.user, event.message)

    try:
      result = await run_in_threadpool(self._gateway.send, token, payload)
    except PushTransportError as exc:
      logger.error("Error sending chat notification for chat %s: %s", event.chat_id, exc)
      raise

    if result.success:
      logger.info("Chat notification sent for chat %s to receiver %s", event.chat_id, receiver_id)
    else:
      logger.error("Failed to send chat notification for chat %s to token %s: %s", event.chat_id, token_preview(token), result.error_reason)

    return DispatchOutcome.reconciled(BatchOutcome.from_results([result]))
