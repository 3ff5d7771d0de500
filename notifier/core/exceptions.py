import logging
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from notifier.config import Settings
from notifier.notifications.contracts import PushTransportError


def _error_payload(detail: str, settings: Settings, *, error: str | None = None) -> dict[str, Any]:
  """Build error payloads with optional debug detail."""
  payload: dict[str, Any] = {"detail": detail}

  # Only attach diagnostic details when debug mode is enabled.
  if settings.debug and error is not None:
    payload["error"] = error

  return payload


async def push_transport_exception_handler(request: Request, exc: PushTransportError) -> JSONResponse:
  """Report delivery request faults as retryable so the event host redelivers the event."""
  from notifier.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("uvicorn.error")
  logger.error("Push transport failure path=%s attempts=%s error=%s", request.url.path, exc.attempts, exc)
  return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=_error_payload("Push delivery unavailable", settings, error=str(exc)))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Global exception handler to catch unhandled errors."""
  from notifier.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("uvicorn.error")
  logger.error("Global exception path=%s error_type=%s", request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", settings, error=str(exc)))
