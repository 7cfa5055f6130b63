import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from pings.config import get_settings
from pings.core.logging import initialize_logging
from pings.engine.service import build_ping_service
from pings.notifications.factory import build_push_collaborators


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Start the ping engine with the app and drain its workers on shutdown."""
  settings = get_settings()
  logger = logging.getLogger("pings.core.lifespan")

  initialize_logging(settings)
  logger.info("Starting ping service environment=%s provider=%s", settings.environment, settings.push_provider)

  # Fail fast: the routes are useless without a provider to manage topics against.
  client, sender = build_push_collaborators(settings)
  service = build_ping_service(settings, client=client, sender=sender)
  service.start(rotation_interval_seconds=settings.rotation_interval_seconds, rotation_jitter_seconds=settings.rotation_jitter_seconds, heartbeat_interval_seconds=settings.heartbeat_interval_seconds)
  app.state.ping_service = service
  logger.info("Startup complete.")

  try:
    yield
  finally:
    # Shutdown blocks for up to the grace period, so keep it off the event loop.
    await run_in_threadpool(service.stop, settings.shutdown_grace_seconds)
