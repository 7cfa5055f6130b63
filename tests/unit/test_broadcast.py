from __future__ import annotations

import pytest

from pings.engine.broadcast import BroadcastDispatcher
from pings.engine.errors import DeliveryFailedError, InvalidGroupError, TopicMapError
from pings.engine.topics import TopicMap
from pings.notifications.local import LocalBroadcastSender


@pytest.fixture
def topics() -> TopicMap:
  topics = TopicMap(["all", "caps"])
  topics.regenerate()
  return topics


def test_send_resolves_group_to_current_channel(topics, sender):
  dispatcher = BroadcastDispatcher(topics=topics, sender=sender)

  channel_id = dispatcher.send("hello", "caps")

  assert channel_id == topics.channel_for("caps")
  assert len(sender.sent) == 1
  assert sender.sent[0].channel_id == channel_id
  assert sender.sent[0].data == {"group": "caps", "message": "hello"}


def test_unknown_group_is_rejected_without_provider_call(topics, sender):
  dispatcher = BroadcastDispatcher(topics=topics, sender=sender)

  with pytest.raises(InvalidGroupError):
    dispatcher.send("hello", "unknowngroup")

  assert sender.sent == []


def test_provider_failure_surfaces_reason_and_is_not_retried(topics):
  sender = LocalBroadcastSender(failure_reason="Response error: UNAVAILABLE")
  dispatcher = BroadcastDispatcher(topics=topics, sender=sender)

  with pytest.raises(DeliveryFailedError) as excinfo:
    dispatcher.send("hello", "all")

  assert excinfo.value.reason == "Response error: UNAVAILABLE"
  assert sender.sent == []


def test_send_before_bootstrap_is_an_invariant_violation(sender):
  dispatcher = BroadcastDispatcher(topics=TopicMap(["all"]), sender=sender)

  with pytest.raises(TopicMapError):
    dispatcher.send("hello", "all")

  assert sender.sent == []
