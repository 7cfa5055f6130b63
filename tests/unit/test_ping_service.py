from __future__ import annotations

import pytest

from pings.engine.errors import LoginRejectedError
from pings.engine.tasks import ReconcileSessionTask


def test_login_creates_session_and_queues_reconciliation(make_service, recording_scheduler):
  service = make_service(recording_scheduler)
  service.start(rotation_interval_seconds=86400)

  session = service.login("alice", "password", "dev123")

  assert session.groups == ("alice", "all")
  assert session.challenge_token
  assert service.sessions.get("alice") is session
  queued = recording_scheduler.of_type(ReconcileSessionTask)
  assert len(queued) == 1
  assert queued[0].session is session
  assert queued[0].retries == 0


@pytest.mark.parametrize(
  ("identity", "secret", "device"),
  [
    ("alice", "wrong", "dev123"),
    ("all", "password", "dev123"),
    ("mallory", "password", "dev123"),
    ("alice", "password", "  "),
    ("", "password", "dev123"),
  ],
)
def test_rejected_logins_leave_no_session(make_service, recording_scheduler, identity, secret, device):
  service = make_service(recording_scheduler)

  with pytest.raises(LoginRejectedError):
    service.login(identity, secret, device)

  assert len(service.sessions) == 0
  assert recording_scheduler.submitted == []


def test_refresh_with_wrong_token_keeps_session(make_service, recording_scheduler, clock):
  service = make_service(recording_scheduler)
  session = service.login("alice", "password", "dev123")
  before = session.last_refresh
  clock.advance(60)

  assert not service.refresh("alice", "bogus-token-value")
  assert session.last_refresh == before
  assert service.sessions.get("alice") is session

  assert service.refresh("alice", session.challenge_token)
  assert session.last_refresh == clock.now


def test_start_bootstraps_channels_and_schedules_periodic_jobs(make_service, inline_scheduler):
  service = make_service(inline_scheduler)

  service.start(rotation_interval_seconds=86400, heartbeat_interval_seconds=3600)

  assert all(channel for _, channel in service.topics.items())
  assert inline_scheduler.periodic == ["topic-rotation", "heartbeat-ping"]

  service.stop()
  assert inline_scheduler.stopped


def test_heartbeat_pings_the_universal_group(make_service, inline_scheduler, sender):
  service = make_service(inline_scheduler)
  service.start(rotation_interval_seconds=86400)

  service._send_heartbeat()

  assert sender.sent[-1].channel_id == service.topics.channel_for("all")
  assert sender.sent[-1].data["message"].startswith("Ping was sent at ")


def test_refresh_normalizes_identity_like_login(make_service, recording_scheduler):
  service = make_service(recording_scheduler)
  session = service.login(" alice ", "password", "dev123")

  assert session.identity == "alice"
  assert service.refresh(" alice", session.challenge_token)
  assert service.refresh("alice", session.challenge_token)
