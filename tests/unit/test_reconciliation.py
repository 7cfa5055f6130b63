from __future__ import annotations

import pytest

from pings.engine.sessions import SessionStore
from pings.engine.tasks import ReconcileSessionTask, plan_reconciliation
from pings.engine.topics import TopicMap


@pytest.fixture
def topics() -> TopicMap:
  topics = TopicMap(["all", "alice", "bob"])
  topics.regenerate()
  return topics


@pytest.fixture
def session(topics, clock):
  store = SessionStore(lock=topics.lock, clock=clock)
  return store.create_or_replace("alice", "dev123", ("alice", "all"))


def test_plan_diffs_desired_against_actual():
  plan = plan_reconciliation({"a", "b"}, {"b", "stale"})

  assert plan.to_add == {"a"}
  assert plan.to_remove == {"stale"}
  assert not plan.empty
  assert plan_reconciliation({"a"}, {"a"}).empty


def test_reconcile_subscribes_missing_and_drops_stale(topics, session, channel_client, inline_scheduler):
  channel_client.add_members(["dev123"], "old-topic")

  inline_scheduler.submit(ReconcileSessionTask(session=session, topics=topics, client=channel_client))

  assert channel_client.list_channels("dev123") == {topics.channel_for("alice"), topics.channel_for("all")}


def test_second_reconcile_issues_no_changes(topics, session, channel_client, inline_scheduler):
  task = ReconcileSessionTask(session=session, topics=topics, client=channel_client)
  inline_scheduler.submit(task)
  channel_client.calls.clear()

  inline_scheduler.submit(task)

  assert channel_client.calls == [("list", ("dev123",), "")]


def test_listing_failure_retries_whole_task_without_assuming_empty(topics, session, channel_client, inline_scheduler):
  channel_client.fail_lists = 1

  inline_scheduler.submit(ReconcileSessionTask(session=session, topics=topics, client=channel_client))

  assert channel_client.count("list") == 2
  # The failed attempt made no membership calls.
  assert channel_client.calls[0][0] == "list"
  assert channel_client.calls[1][0] == "list"
  assert channel_client.count("add") == 2
  assert inline_scheduler.delays == [2.0]


def test_partial_failure_retry_recomputes_diff(topics, session, channel_client, inline_scheduler):
  channel_client.fail_adds = 1

  inline_scheduler.submit(ReconcileSessionTask(session=session, topics=topics, client=channel_client))

  # First attempt: two adds, one failed. Retry only re-adds the one still missing.
  assert channel_client.count("add") == 3
  assert channel_client.list_channels("dev123") == {topics.channel_for("alice"), topics.channel_for("all")}


def test_persistent_failure_is_attempted_max_retries_plus_one_times(topics, session, channel_client, inline_scheduler):
  channel_client.fail_lists = 100

  inline_scheduler.submit(ReconcileSessionTask(session=session, topics=topics, client=channel_client))

  assert channel_client.count("list") == inline_scheduler.retry_policy.max_retries + 1
  assert channel_client.count("add") == 0


def test_reconcile_before_bootstrap_does_not_subscribe_placeholders(clock, channel_client, inline_scheduler):
  topics = TopicMap(["all", "alice"])
  session = SessionStore(lock=topics.lock, clock=clock).create_or_replace("alice", "dev123", ("alice", "all"))

  inline_scheduler.submit(ReconcileSessionTask(session=session, topics=topics, client=channel_client))

  assert channel_client.count("add") == 0
  assert channel_client.list_channels("dev123") == set()
