"""Operational routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from pings.api.deps import get_ping_service, require_admin
from pings.api.models import RotationResponse
from pings.engine.service import PingService

router = APIRouter(dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


@router.post("/rotate", response_model=RotationResponse)
async def force_rotate(service: Annotated[PingService, Depends(get_ping_service)]) -> RotationResponse:
  """Rotate all channel ids now. Returns once the map swap is done; migration continues in the background."""
  logger.info("Forced topic rotation requested")
  report = await run_in_threadpool(service.rotate)
  return RotationResponse(response="done", generation=report.generation, expired=len(report.expired), removals_scheduled=report.removals_scheduled, additions_scheduled=report.additions_scheduled)
