from __future__ import annotations

import threading

import pytest

from pings.engine.sessions import SessionStore

TTL = 2 * 86400.0


@pytest.fixture
def store(clock) -> SessionStore:
  return SessionStore(lock=threading.RLock(), ttl_seconds=TTL, clock=clock)


def test_create_issues_alphanumeric_challenge_token(store, clock):
  session = store.create_or_replace("alice", "dev123", ("alice", "all"))

  assert session.groups == ("alice", "all")
  assert session.device_channel_id == "dev123"
  assert len(session.challenge_token) >= 16
  assert session.challenge_token.isalnum()
  assert session.last_refresh == clock.now
  assert store.get("alice") is session


def test_create_replaces_previous_session(store):
  first = store.create_or_replace("alice", "dev1", ("alice", "all"))
  second = store.create_or_replace("alice", "dev2", ("alice", "all"))

  assert store.get("alice") is second
  assert second.challenge_token != first.challenge_token
  assert len(store) == 1


def test_refresh_with_correct_token_updates_last_refresh(store, clock):
  session = store.create_or_replace("alice", "dev123", ("alice", "all"))
  clock.advance(3600)

  assert store.refresh("alice", session.challenge_token)
  assert session.last_refresh == clock.now


def test_refresh_with_wrong_token_is_rejected_without_side_effects(store, clock):
  session = store.create_or_replace("alice", "dev123", ("alice", "all"))
  before = session.last_refresh
  clock.advance(3600)

  assert not store.refresh("alice", "not-the-token")
  assert session.last_refresh == before
  assert "alice" in store


def test_refresh_unknown_identity_is_rejected(store):
  assert not store.refresh("nobody", "token")


def test_refresh_after_expiry_is_rejected(store, clock):
  session = store.create_or_replace("alice", "dev123", ("alice", "all"))
  clock.advance(TTL + 1)

  assert not store.refresh("alice", session.challenge_token)


def test_sweep_removes_only_expired_sessions(store, clock):
  store.create_or_replace("alice", "dev1", ("alice", "all"))
  clock.advance(TTL - 10)
  store.create_or_replace("bob", "dev2", ("bob", "all"))
  clock.advance(20)

  assert store.sweep_expired() == {"alice"}
  assert "alice" not in store
  assert "bob" in store


def test_session_exactly_at_ttl_is_not_expired(store, clock):
  store.create_or_replace("alice", "dev1", ("alice", "all"))
  clock.advance(TTL)

  assert store.sweep_expired() == set()


def test_members_of_filters_by_group(store):
  store.create_or_replace("alice", "dev1", ("alice", "all"))
  store.create_or_replace("bob", "dev2", ("bob", "all"))

  assert {s.identity for s in store.members_of("all")} == {"alice", "bob"}
  assert [s.identity for s in store.members_of("bob")] == ["bob"]
  assert store.members_of("ALL") == ()


def test_short_tokens_are_refused():
  with pytest.raises(ValueError):
    SessionStore(lock=threading.RLock(), token_length=8)
