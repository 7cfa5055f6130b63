"""Broadcast endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from pings.api.deps import get_ping_service, require_admin
from pings.api.models import PingRequest, StatusResponse
from pings.engine.errors import DeliveryFailedError, InvalidGroupError
from pings.engine.service import PingService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("", response_model=StatusResponse, response_model_exclude_none=True)
async def send_ping(payload: PingRequest, service: Annotated[PingService, Depends(get_ping_service)]) -> StatusResponse:
  """Send a ping to every device currently subscribed to the group."""
  try:
    # The provider call blocks, so keep it off the event loop.
    await run_in_threadpool(service.send, payload.text, payload.group)
  except InvalidGroupError:
    return StatusResponse(response="badGroup")
  except DeliveryFailedError as exc:
    return StatusResponse(response="failed", reason=exc.reason)
  return StatusResponse(response="sent")
