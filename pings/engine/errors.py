"""Exceptions raised by the ping engine."""

from __future__ import annotations


class PingError(Exception):
  """Base class for all ping engine failures."""


class InvalidGroupError(PingError):
  """Raised when a broadcast targets a group that is not registered."""

  def __init__(self, group: str) -> None:
    super().__init__(f"Invalid ping group: {group}")
    self.group = group


class LoginRejectedError(PingError):
  """Raised when a login is malformed or its credentials do not verify."""


class DeliveryFailedError(PingError):
  """Raised when the push provider refuses or fails a broadcast."""

  def __init__(self, reason: str) -> None:
    super().__init__(reason)
    self.reason = reason


class TopicMapError(PingError):
  """Raised when the topic map breaks its one-live-channel-per-group invariant."""
