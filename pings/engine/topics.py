"""Mapping from group names to their current rotating provider channel ids."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable

from pings.utils.ids import generate_nanoid

logger = logging.getLogger(__name__)

PLACEHOLDER_CHANNEL_ID = ""
DEFAULT_CHANNEL_ID_LENGTH = 24
# Ids from this many previous generations are never reissued.
_RECENT_GENERATIONS = 2


class TopicMap:
  """Group to channel id mapping guarded by the engine's single coarse lock.

  The lock is re-entrant and is shared with the session store, so a caller holding it
  can read and mutate both structures as one critical section.
  """

  def __init__(self, groups: Iterable[str], *, channel_id_length: int = DEFAULT_CHANNEL_ID_LENGTH, id_factory: Callable[[int], str] = generate_nanoid) -> None:
    self.lock = threading.RLock()
    self._channel_id_length = channel_id_length
    self._id_factory = id_factory
    self._channels: dict[str, str] = {}
    self._recent: deque[frozenset[str]] = deque(maxlen=_RECENT_GENERATIONS)
    self.generation = 0
    for group in groups:
      if not group:
        raise ValueError("group names must not be empty")
      self._channels.setdefault(group, PLACEHOLDER_CHANNEL_ID)

  def __contains__(self, group: object) -> bool:
    with self.lock:
      return group in self._channels

  def groups(self) -> tuple[str, ...]:
    with self.lock:
      return tuple(self._channels)

  def items(self) -> tuple[tuple[str, str], ...]:
    with self.lock:
      return tuple(self._channels.items())

  def channel_for(self, group: str) -> str | None:
    """Return the current channel id for a group, or None when the group is unknown."""
    with self.lock:
      return self._channels.get(group)

  def channels_for(self, groups: Iterable[str]) -> set[str]:
    """Resolve groups to live channel ids, skipping unknown groups and placeholders."""
    with self.lock:
      channels = {self._channels.get(group) for group in groups}
    return {channel for channel in channels if channel}

  def regenerate(self) -> dict[str, str]:
    """Draw a new channel id for every group and swap the whole map at once."""
    with self.lock:
      current = {channel for channel in self._channels.values() if channel}
      self._recent.append(frozenset(current))
      issued: set[str] = set()
      fresh: dict[str, str] = {}
      for group in self._channels:
        channel_id = self._draw(issued)
        issued.add(channel_id)
        fresh[group] = channel_id
      self._channels = fresh
      self.generation += 1
      return dict(fresh)

  def _draw(self, issued: set[str]) -> str:
    while True:
      candidate = self._id_factory(self._channel_id_length)
      if candidate in issued or any(candidate in previous for previous in self._recent):
        logger.warning("Discarding colliding channel id draw")
        continue
      return candidate
