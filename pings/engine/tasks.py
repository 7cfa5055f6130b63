"""Background membership tasks executed on the scheduler."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pings.engine.retry import RetriableTask
from pings.engine.sessions import Session
from pings.engine.topics import TopicMap
from pings.notifications.contracts import PushChannelClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelChangeTask(RetriableTask):
  """Adds or removes a fixed set of sessions to/from one channel."""

  sessions: tuple[Session, ...]
  channel_id: str
  client: PushChannelClient = field(repr=False, compare=False)

  def __post_init__(self) -> None:
    super().__post_init__()
    if not self.channel_id:
      raise ValueError("channel_id must not be empty")

  @property
  def device_ids(self) -> list[str]:
    return [session.device_channel_id for session in self.sessions]


@dataclass(frozen=True)
class AddMembersTask(ChannelChangeTask):
  def attempt(self) -> bool:
    ok = self.client.add_members(self.device_ids, self.channel_id)
    if not ok:
      logger.info("Error when adding %d sessions to topic %s", len(self.sessions), self.channel_id)
    return ok


@dataclass(frozen=True)
class RemoveMembersTask(ChannelChangeTask):
  def attempt(self) -> bool:
    ok = self.client.remove_members(self.device_ids, self.channel_id)
    if not ok:
      logger.info("Error when removing %d sessions from topic %s", len(self.sessions), self.channel_id)
    return ok


@dataclass(frozen=True)
class ReconciliationPlan:
  to_add: frozenset[str]
  to_remove: frozenset[str]

  @property
  def empty(self) -> bool:
    return not self.to_add and not self.to_remove


def plan_reconciliation(desired: set[str], actual: set[str]) -> ReconciliationPlan:
  """Diff a device's actual channel membership against the desired one."""
  return ReconciliationPlan(to_add=frozenset(desired - actual), to_remove=frozenset(actual - desired))


@dataclass(frozen=True)
class ReconcileSessionTask(RetriableTask):
  """Brings one device's provider-side membership in line with its session.

  Each attempt recomputes the diff from a fresh provider listing, so calls that already
  succeeded on an earlier attempt drop out of the plan on their own.
  """

  session: Session
  topics: TopicMap = field(repr=False, compare=False)
  client: PushChannelClient = field(repr=False, compare=False)

  def attempt(self) -> bool:
    # Snapshot under the lock; it may go stale if a rotation interleaves.
    desired = self.topics.channels_for(self.session.groups)
    device_id = self.session.device_channel_id

    actual = self.client.list_channels(device_id)
    if actual is None:
      logger.info("Could not list topics for identity=%s (retrying)", self.session.identity)
      return False

    plan = plan_reconciliation(desired, actual)
    logger.debug("Reconciling identity=%s add=%s remove=%s", self.session.identity, sorted(plan.to_add), sorted(plan.to_remove))

    ok = True
    for channel_id in sorted(plan.to_remove):
      ok = self.client.remove_members([device_id], channel_id) and ok
    for channel_id in sorted(plan.to_add):
      ok = self.client.add_members([device_id], channel_id) and ok

    if not ok:
      logger.info("Error updating identity=%s (retrying)", self.session.identity)
    return ok
