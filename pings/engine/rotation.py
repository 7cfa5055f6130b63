"""Periodic regeneration of channel ids and migration of sessions onto them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pings.engine.scheduler import TaskScheduler
from pings.engine.sessions import SessionStore
from pings.engine.tasks import AddMembersTask, RemoveMembersTask
from pings.engine.topics import TopicMap
from pings.notifications.contracts import PushChannelClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationReport:
  """What one rotation changed and what it queued."""

  generation: int
  channels: dict[str, str] = field(default_factory=dict)
  expired: frozenset[str] = frozenset()
  removals_scheduled: int = 0
  additions_scheduled: int = 0


class TopicRotator:
  """Rotates every group to a fresh channel id as one critical section.

  Provider calls are never made here; they are queued on the scheduler so the lock is
  only held for in-memory work.
  """

  def __init__(self, *, topics: TopicMap, sessions: SessionStore, scheduler: TaskScheduler, client: PushChannelClient) -> None:
    self._topics = topics
    self._sessions = sessions
    self._scheduler = scheduler
    self._client = client

  def rotate(self) -> RotationReport:
    with self._topics.lock:
      logger.info("Rotating topics for %d groups", len(self._topics.groups()))
      everyone = self._sessions.all()

      # Unsubscribe every known session from the old ids, expired ones included.
      removals = 0
      if everyone:
        for _, old_channel_id in self._topics.items():
          if old_channel_id:
            self._scheduler.submit(RemoveMembersTask(sessions=everyone, channel_id=old_channel_id, client=self._client))
            removals += 1

      channels = self._topics.regenerate()
      for group, channel_id in channels.items():
        logger.debug("Group %s => %s", group, channel_id)

      # Expired sessions must not follow the groups onto the new ids.
      expired = self._sessions.sweep_expired()

      additions = 0
      for group, channel_id in channels.items():
        members = self._sessions.members_of(group)
        if members:
          self._scheduler.submit(AddMembersTask(sessions=members, channel_id=channel_id, client=self._client))
          additions += 1

      report = RotationReport(generation=self._topics.generation, channels=channels, expired=frozenset(expired), removals_scheduled=removals, additions_scheduled=additions)

    logger.info("Rotation %d complete: expired=%d removals=%d additions=%d", report.generation, len(report.expired), removals, additions)
    return report
