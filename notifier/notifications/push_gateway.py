"""Push delivery implementations."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import TypeVar

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from notifier.notifications.contracts import BatchOutcome, DeliveryResult, Payload, PushGateway, PushTransportError
from notifier.utils.redaction import token_preview

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures of the request itself that are worth retrying.
_TRANSIENT_ERRORS = (firebase_exceptions.UnavailableError, firebase_exceptions.InternalError, firebase_exceptions.DeadlineExceededError, firebase_exceptions.UnknownError)

MISSING_RESPONSE_REASON = "missing delivery response"
MULTICAST_TOKEN_LIMIT = 500


def build_android_config(payload: Payload) -> messaging.AndroidConfig:
  envelope = payload.envelopes.android
  notification = messaging.AndroidNotification(
    channel_id=envelope.channel_id,
    priority=envelope.notification_priority,
    default_sound=envelope.default_sound,
    sticky=envelope.sticky,
    local_only=envelope.local_only,
    default_vibrate_timings=envelope.default_vibrate_timings,
    visibility=envelope.visibility,
  )
  return messaging.AndroidConfig(priority=envelope.priority, ttl=envelope.ttl_seconds, collapse_key=envelope.collapse_key, notification=notification)


def build_apns_config(payload: Payload) -> messaging.APNSConfig:
  envelope = payload.envelopes.apns
  aps = messaging.Aps(
    alert=messaging.ApsAlert(title=envelope.title, body=envelope.body),
    sound=envelope.sound,
    badge=envelope.badge,
    content_available=envelope.content_available,
    mutable_content=envelope.mutable_content,
  )
  return messaging.APNSConfig(headers=dict(envelope.headers) or None, payload=messaging.APNSPayload(aps=aps))


def build_multicast_message(tokens: Sequence[str], payload: Payload) -> messaging.MulticastMessage:
  """Translate a payload into the Admin SDK multicast message."""
  fcm_options = messaging.FCMOptions(analytics_label=payload.analytics_label) if payload.analytics_label else None
  return messaging.MulticastMessage(
    tokens=list(tokens),
    notification=messaging.Notification(title=payload.title, body=payload.body),
    data=payload.data.as_message_data(),
    android=build_android_config(payload),
    apns=build_apns_config(payload),
    fcm_options=fcm_options,
  )


def build_single_message(token: str, payload: Payload) -> messaging.Message:
  """Translate a payload into the Admin SDK single-target message."""
  fcm_options = messaging.FCMOptions(analytics_label=payload.analytics_label) if payload.analytics_label else None
  return messaging.Message(
    token=token,
    notification=messaging.Notification(title=payload.title, body=payload.body),
    data=payload.data.as_message_data(),
    android=build_android_config(payload),
    apns=build_apns_config(payload),
    fcm_options=fcm_options,
  )


def reconcile_batch_response(tokens: Sequence[str], response: messaging.BatchResponse) -> BatchOutcome:
  """Pair each token with its positional result from a multicast response."""
  responses = list(response.responses)
  results: list[DeliveryResult] = []
  for index, token in enumerate(tokens):
    if index >= len(responses):
      results.append(DeliveryResult(token=token, success=False, error_reason=MISSING_RESPONSE_REASON))
      continue

    item = responses[index]
    if item.success:
      results.append(DeliveryResult(token=token, success=True))
    else:
      results.append(DeliveryResult(token=token, success=False, error_reason=_describe_error(item.exception)))

  return BatchOutcome.from_results(results)


class FcmPushGateway(PushGateway):
  """Firebase Cloud Messaging backed gateway with bounded retries for transport faults."""

  def __init__(self, *, app=None, max_attempts: int = 3, backoff_seconds: Sequence[float] = (0.5, 1.0), dry_run: bool = False) -> None:
    self._app = app
    self._max_attempts = max_attempts
    self._backoff_seconds = tuple(backoff_seconds)
    self._dry_run = dry_run

  def send_multicast(self, tokens: Sequence[str], payload: Payload) -> BatchOutcome:
    """Send one payload to every token; per-token failures are returned, not raised."""
    results = []
    # FCM caps a multicast request at MULTICAST_TOKEN_LIMIT tokens.
    for start in range(0, len(tokens), MULTICAST_TOKEN_LIMIT):
      chunk = list(tokens[start : start + MULTICAST_TOKEN_LIMIT])
      message = build_multicast_message(chunk, payload)
      response = self._with_retries("multicast", lambda message=message: messaging.send_each_for_multicast(message, dry_run=self._dry_run, app=self._app))
      results.extend(reconcile_batch_response(chunk, response).results)

    return BatchOutcome.from_results(results)

  def send(self, token: str, payload: Payload) -> DeliveryResult:
    """Send one payload to one token."""
    message = build_single_message(token, payload)
    try:
      self._with_retries("single", lambda: messaging.send(message, dry_run=self._dry_run, app=self._app))
    except PushTransportError as exc:
      # A rejected token is an item failure; only transport faults leave this method.
      cause = exc.__cause__
      if isinstance(cause, firebase_exceptions.FirebaseError) and not isinstance(cause, _TRANSIENT_ERRORS):
        return DeliveryResult(token=token, success=False, error_reason=_describe_error(cause))
      raise

    return DeliveryResult(token=token, success=True)

  def _with_retries(self, operation: str, call: Callable[[], T]) -> T:
    for attempt in range(1, self._max_attempts + 1):
      try:
        return call()
      except _TRANSIENT_ERRORS as exc:
        if attempt < self._max_attempts:
          pause = self._pause_for(attempt)
          logger.warning("Transient push failure operation=%s attempt=%d/%d error=%s; retrying in %.2fs", operation, attempt, self._max_attempts, exc, pause)
          time.sleep(pause)
          continue

        raise PushTransportError(f"Push {operation} delivery failed after {attempt} attempts: {exc}", attempts=attempt) from exc
      except (firebase_exceptions.FirebaseError, ValueError) as exc:
        raise PushTransportError(f"Push {operation} delivery rejected: {exc}", attempts=attempt) from exc

    raise PushTransportError(f"Push {operation} delivery was not attempted", attempts=0)

  def _pause_for(self, attempt: int) -> float:
    if not self._backoff_seconds:
      return 0.0
    return self._backoff_seconds[min(attempt - 1, len(self._backoff_seconds) - 1)]


class NullPushGateway(PushGateway):
  """No-op gateway used when push delivery is disabled; nothing is delivered."""

  DISABLED_REASON = "push delivery disabled"

  def send_multicast(self, tokens: Sequence[str], payload: Payload) -> BatchOutcome:
    logger.debug("Push delivery disabled; dropping multicast to %d tokens", len(tokens))
    return BatchOutcome.from_results([DeliveryResult(token=token, success=False, error_reason=self.DISABLED_REASON) for token in tokens])

  def send(self, token: str, payload: Payload) -> DeliveryResult:
    logger.debug("Push delivery disabled; dropping push to token=%s", token_preview(token))
    return DeliveryResult(token=token, success=False, error_reason=self.DISABLED_REASON)


def _describe_error(exc: BaseException | None) -> str:
  if exc is None:
    return "unknown error"

  code = getattr(exc, "code", None)
  if code:
    return f"{code}: {exc}"
  return str(exc)
