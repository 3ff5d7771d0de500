import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from notifier.core.logging import initialize_logging
from notifier.notifications.factory import build_dispatchers


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and the dispatchers before the first event is accepted."""
  from notifier.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("notifier.core.lifespan")

  try:
    initialize_logging(settings)
  except RuntimeError:
    # Stdout logging still works; only the file handler is unavailable.
    logger.warning("Initial logging setup failed; continuing with default handlers.", exc_info=True)

  # Build collaborators once; Firebase is initialized as part of the wiring.
  app.state.dispatchers = build_dispatchers(settings)
  logger.info("Startup complete push_enabled=%s collapse_key_strategy=%s", settings.push_enabled, settings.collapse_key_strategy)

  yield
