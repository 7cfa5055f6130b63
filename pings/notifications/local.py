"""In-process channel client and sender used when FCM is not configured."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

from pings.notifications.contracts import BroadcastProviderError, BroadcastSender, PushChannelClient

logger = logging.getLogger(__name__)


class LocalChannelClient(PushChannelClient):
  """Keeps channel memberships in memory so the engine can run without a provider."""

  def __init__(self) -> None:
    self._lock = threading.Lock()
    self._memberships: dict[str, set[str]] = {}

  def add_members(self, device_ids: Sequence[str], channel_id: str) -> bool:
    with self._lock:
      for device_id in device_ids:
        self._memberships.setdefault(device_id, set()).add(channel_id)
    logger.debug("Local subscribe topic=%s devices=%d", channel_id, len(device_ids))
    return True

  def remove_members(self, device_ids: Sequence[str], channel_id: str) -> bool:
    with self._lock:
      for device_id in device_ids:
        self._memberships.get(device_id, set()).discard(channel_id)
    logger.debug("Local unsubscribe topic=%s devices=%d", channel_id, len(device_ids))
    return True

  def list_channels(self, device_id: str) -> set[str] | None:
    with self._lock:
      return set(self._memberships.get(device_id, set()))

  def members_of(self, channel_id: str) -> set[str]:
    """Return the devices currently subscribed to a channel."""
    with self._lock:
      return {device_id for device_id, channels in self._memberships.items() if channel_id in channels}


@dataclass(frozen=True)
class SentBroadcast:
  channel_id: str
  data: dict[str, str]


@dataclass
class LocalBroadcastSender(BroadcastSender):
  """Records broadcasts in memory instead of delivering them."""

  sent: list[SentBroadcast] = field(default_factory=list)
  failure_reason: str | None = None

  def send(self, channel_id: str, data: dict[str, str]) -> None:
    if self.failure_reason is not None:
      raise BroadcastProviderError(self.failure_reason)
    self.sent.append(SentBroadcast(channel_id=channel_id, data=dict(data)))
    logger.info("Local broadcast topic=%s group=%s", channel_id, data.get("group"))
