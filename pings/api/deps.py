"""Shared FastAPI dependencies for the engine and admin auth."""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from pings.config import Settings, get_settings
from pings.engine.service import PingService

logger = logging.getLogger(__name__)


def get_ping_service(request: Request) -> PingService:
  """Return the engine started by the application lifespan."""
  service = getattr(request.app.state, "ping_service", None)
  if service is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Ping service is not running")
  return service


def require_admin(settings: Annotated[Settings, Depends(get_settings)], authorization: str | None = Header(default=None)) -> None:
  """Gate operational routes behind the shared admin secret."""
  # Secure-by-default: without a configured secret nobody may broadcast or rotate.
  if not settings.admin_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin authentication is not configured.")
  expected = f"Bearer {settings.admin_secret}"
  if not secrets.compare_digest((authorization or "").encode("utf-8"), expected.encode("utf-8")):
    logger.warning("Unauthorized access attempt to admin route")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid admin secret.")
