"""Device login and challenge refresh."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from pings.api.deps import get_ping_service
from pings.api.models import LoginRequest, LoginResponse, RefreshRequest
from pings.engine.errors import LoginRejectedError
from pings.engine.service import PingService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, service: Annotated[PingService, Depends(get_ping_service)]) -> LoginResponse:
  """Open a ping session and return its challenge token."""
  try:
    session = service.login(payload.username, payload.password, payload.device_id)
  except LoginRejectedError:
    # Same answer for every rejection so callers cannot probe which part was wrong.
    return LoginResponse.from_token(None)
  return LoginResponse.from_token(session.challenge_token)


@router.post("/refresh", response_model=LoginResponse)
async def refresh(payload: RefreshRequest, service: Annotated[PingService, Depends(get_ping_service)]) -> LoginResponse:
  """Renew a session; the token is echoed back only when it verified."""
  accepted = service.refresh(payload.username, payload.challenge)
  return LoginResponse.from_token(payload.challenge if accepted else None)
