"""Contracts for the push provider collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol


class NotificationProviderError(Exception):
  """Base class for failures reported by the push provider."""


class ChannelProviderError(NotificationProviderError):
  """Exception raised when a channel membership call fails at the transport level."""


class BroadcastProviderError(NotificationProviderError):
  """Exception raised when the provider rejects or fails a broadcast send."""


class PushChannelClient(Protocol):
  """Membership management for provider-side broadcast channels.

  All operations are idempotent and report expected failures through their return value
  instead of raising.
  """

  def add_members(self, device_ids: Sequence[str], channel_id: str) -> bool:
    """Subscribe every device to the channel; return True only if all succeeded."""

  def remove_members(self, device_ids: Sequence[str], channel_id: str) -> bool:
    """Unsubscribe every device from the channel; return True only if all succeeded."""

  def list_channels(self, device_id: str) -> set[str] | None:
    """Return the channels the device is subscribed to, or None if the lookup failed."""


class BroadcastSender(Protocol):
  """Delivery contract for fanning a data message out to one channel."""

  def send(self, channel_id: str, data: dict[str, str]) -> None:
    """Send a high-priority data message; raise BroadcastProviderError on failure."""
