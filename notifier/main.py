from __future__ import annotations

from fastapi import FastAPI

from notifier import __version__
from notifier.api.routes import events
from notifier.core.exceptions import global_exception_handler, push_transport_exception_handler
from notifier.core.lifespan import lifespan
from notifier.notifications.contracts import PushTransportError

app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(PushTransportError, push_transport_exception_handler)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(events.router, prefix="/internal", tags=["events"])
