"""Factory helpers for push provider collaborators."""

from __future__ import annotations

import logging

from pings.config import Settings
from pings.core.firebase import initialize_firebase
from pings.notifications.contracts import BroadcastSender, PushChannelClient
from pings.notifications.fcm import FcmBroadcastSender, FcmChannelClient, FcmConfig
from pings.notifications.local import LocalBroadcastSender, LocalChannelClient

logger = logging.getLogger(__name__)


def build_push_collaborators(settings: Settings) -> tuple[PushChannelClient, BroadcastSender]:
  """Construct the channel client and broadcast sender for the configured provider."""
  # The local provider keeps memberships in memory for development and tests.
  if settings.push_provider == "local":
    logger.warning("Using in-memory push provider; pings will not leave this process.")
    return LocalChannelClient(), LocalBroadcastSender()

  if not initialize_firebase(settings):
    raise RuntimeError("Firebase must be initialized when the FCM push provider is enabled.")

  config = FcmConfig(iid_base_url=settings.iid_base_url, timeout_seconds=settings.provider_timeout_seconds)
  return FcmChannelClient(config=config), FcmBroadcastSender()
