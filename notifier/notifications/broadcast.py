"""Broadcast a newly created notification record to all of its recipients."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from notifier.notifications.contracts import DispatchOutcome, NotificationRecord, PushGateway, PushTransportError, SkipReason
from notifier.notifications.payloads import PayloadBuilder
from notifier.notifications.token_resolver import TokenResolver
from notifier.utils.redaction import token_preview

logger = logging.getLogger(__name__)


class BroadcastDispatcher:
  """Resolves recipients, sends one multicast request and reconciles per-token results."""

  def __init__(self, *, resolver: TokenResolver, payloads: PayloadBuilder, gateway: PushGateway) -> None:
    self._resolver = resolver
    self._payloads = payloads
    self._gateway = gateway

  async def dispatch(self, record: NotificationRecord) -> DispatchOutcome:
    """Handle the creation of ``record``.

    Returns a skipped outcome when there is nobody to deliver to. Individual
    token failures are reported on the returned batch; a fault of the delivery
    request itself raises :class:`PushTransportError` so the event host can retry.
    """
    logger.info("Dispatching notification %s category=%s recipients=%d", record.id, record.category, len(record.recipient_ids))
    if not record.recipient_ids:
      logger.info("Notification %s has no recipients; skipping", record.id)
      return DispatchOutcome.skipped(SkipReason.NO_RECIPIENTS)

    resolution = await self._resolver.resolve(record.recipient_ids)
    if not resolution.tokens:
      logger.info("No push tokens found for notification %s; skipping", record.id)
      return DispatchOutcome.skipped(SkipReason.NO_TOKENS)

    payload = self._payloads.broadcast(record)

    try:
      # The SDK call blocks until every token has a result.
      batch = await run_in_threadpool(self._gateway.send_multicast, resolution.tokens, payload)
    except PushTransportError as exc:
      logger.error("Error sending notification %s to %d devices: %s", record.id, len(resolution.tokens), exc)
      raise

    for result in batch.failures():
      logger.error("Failed to send notification %s to token %s: %s", record.id, token_preview(result.token), result.error_reason)

    logger.info("Notification %s delivered success=%d failure=%d", record.id, batch.success_count, batch.failure_count)
    return DispatchOutcome.reconciled(batch)
