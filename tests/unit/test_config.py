from __future__ import annotations

import pytest

from pings.config import get_settings


@pytest.fixture
def fresh_settings(monkeypatch):
  get_settings.cache_clear()
  yield monkeypatch
  get_settings.cache_clear()


def test_defaults(fresh_settings):
  for name in ("PINGS_GROUPS", "PINGS_SESSION_TTL_SECONDS", "PINGS_MAX_RETRIES", "PINGS_WORKER_COUNT"):
    fresh_settings.delenv(name, raising=False)

  settings = get_settings()

  assert settings.groups == ("all", "caps", "supers")
  assert settings.session_ttl_seconds == 172800
  assert settings.rotation_interval_seconds == 86400
  assert settings.channel_id_length == 24
  assert settings.max_retries == 3
  assert settings.retry_interval_seconds == 2
  assert settings.worker_count == 2
  assert settings.shutdown_grace_seconds == 2


def test_groups_always_include_all(fresh_settings):
  fresh_settings.setenv("PINGS_GROUPS", "caps, supers,caps,")

  assert get_settings().groups == ("all", "caps", "supers")


@pytest.mark.parametrize(
  ("name", "value"),
  [
    ("PINGS_SESSION_TTL_SECONDS", "3600"),
    ("PINGS_TOKEN_LENGTH", "8"),
    ("PINGS_WORKER_COUNT", "1"),
    ("PINGS_MAX_RETRIES", "-1"),
    ("PINGS_PUSH_PROVIDER", "apns"),
    ("PINGS_ROTATION_INTERVAL_SECONDS", "0"),
  ],
)
def test_invalid_values_are_rejected(fresh_settings, name, value):
  fresh_settings.setenv(name, value)

  with pytest.raises(ValueError):
    get_settings()


def test_fcm_provider_requires_project_id(fresh_settings):
  fresh_settings.setenv("PINGS_PUSH_PROVIDER", "fcm")
  fresh_settings.delenv("FIREBASE_PROJECT_ID", raising=False)

  with pytest.raises(ValueError, match="FIREBASE_PROJECT_ID"):
    get_settings()
