"""Resolves a group to its current channel and sends one ping to it."""

from __future__ import annotations

import logging

from pings.engine.errors import DeliveryFailedError, InvalidGroupError, TopicMapError
from pings.engine.topics import TopicMap
from pings.notifications.contracts import BroadcastProviderError, BroadcastSender

logger = logging.getLogger(__name__)

PING_KEY_GROUP = "group"
PING_KEY_MESSAGE = "message"


class BroadcastDispatcher:
  """Direct, user-triggered sends. Never retried: a lost ping is tolerated."""

  def __init__(self, *, topics: TopicMap, sender: BroadcastSender) -> None:
    self._topics = topics
    self._sender = sender

  def send(self, text: str, group: str) -> str:
    """Send a ping and return the channel id it went to."""
    channel_id = self._topics.channel_for(group)
    if channel_id is None:
      raise InvalidGroupError(group)
    if not channel_id:
      raise TopicMapError(f"Group {group!r} has no live channel id")

    # The lock is released here; a concurrent rotation only means this ping used the previous id.
    try:
      self._sender.send(channel_id, {PING_KEY_GROUP: group, PING_KEY_MESSAGE: text})
    except BroadcastProviderError as exc:
      logger.warning("Ping to group=%s failed: %s", group, exc)
      raise DeliveryFailedError(str(exc)) from exc

    logger.info("Ping sent to group=%s", group)
    return channel_id
