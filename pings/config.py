"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

_MIN_SESSION_TTL_SECONDS = 86400
_MIN_TOKEN_LENGTH = 16
_MIN_WORKER_COUNT = 2


@dataclass(frozen=True)
class Settings:
  """Typed settings for the ping broadcast service."""

  environment: str
  debug: bool
  log_dir: str | None
  log_max_bytes: int
  log_backup_count: int
  groups: tuple[str, ...]
  login_secret: str | None
  admin_secret: str | None
  session_ttl_seconds: float
  rotation_interval_seconds: float
  rotation_jitter_seconds: float
  channel_id_length: int
  token_length: int
  max_retries: int
  retry_interval_seconds: float
  worker_count: int
  shutdown_grace_seconds: float
  push_provider: str
  heartbeat_interval_seconds: float | None
  iid_base_url: str
  provider_timeout_seconds: float
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_groups(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("all", "caps", "supers")

  groups: list[str] = []
  for group in raw.split(","):
    name = group.strip()
    if name and name not in groups:
      groups.append(name)

  # The universal group is implied by every login, so it must always be registered.
  if "all" not in groups:
    groups.insert(0, "all")

  return tuple(groups)


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _parse_optional_seconds(raw: str | None) -> float | None:
  if raw is None or raw.strip() == "":
    return None

  value = float(raw)

  if value <= 0:
    raise ValueError("Optional interval seconds must be positive when provided.")

  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("PINGS_ENV", "development").lower()
  debug = _parse_bool(os.getenv("PINGS_DEBUG"))

  log_max_bytes = int(os.getenv("PINGS_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("PINGS_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("PINGS_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("PINGS_LOG_BACKUP_COUNT must be zero or a positive integer.")

  session_ttl_seconds = float(os.getenv("PINGS_SESSION_TTL_SECONDS", "172800"))
  if session_ttl_seconds < _MIN_SESSION_TTL_SECONDS:
    raise ValueError("PINGS_SESSION_TTL_SECONDS must be at least one day (86400).")

  rotation_interval_seconds = float(os.getenv("PINGS_ROTATION_INTERVAL_SECONDS", "86400"))
  if rotation_interval_seconds <= 0:
    raise ValueError("PINGS_ROTATION_INTERVAL_SECONDS must be positive.")

  rotation_jitter_seconds = float(os.getenv("PINGS_ROTATION_JITTER_SECONDS", "0"))
  if rotation_jitter_seconds < 0:
    raise ValueError("PINGS_ROTATION_JITTER_SECONDS must be zero or positive.")

  channel_id_length = int(os.getenv("PINGS_CHANNEL_ID_LENGTH", "24"))
  if channel_id_length <= 0:
    raise ValueError("PINGS_CHANNEL_ID_LENGTH must be a positive integer.")

  token_length = int(os.getenv("PINGS_TOKEN_LENGTH", "24"))
  if token_length < _MIN_TOKEN_LENGTH:
    raise ValueError("PINGS_TOKEN_LENGTH must be at least 16.")

  max_retries = int(os.getenv("PINGS_MAX_RETRIES", "3"))
  if max_retries < 0:
    raise ValueError("PINGS_MAX_RETRIES must be zero or a positive integer.")

  retry_interval_seconds = float(os.getenv("PINGS_RETRY_INTERVAL_SECONDS", "2"))
  if retry_interval_seconds < 0:
    raise ValueError("PINGS_RETRY_INTERVAL_SECONDS must be zero or positive.")

  worker_count = int(os.getenv("PINGS_WORKER_COUNT", "2"))
  if worker_count < _MIN_WORKER_COUNT:
    raise ValueError("PINGS_WORKER_COUNT must be at least 2.")

  shutdown_grace_seconds = float(os.getenv("PINGS_SHUTDOWN_GRACE_SECONDS", "2"))
  if shutdown_grace_seconds < 0:
    raise ValueError("PINGS_SHUTDOWN_GRACE_SECONDS must be zero or positive.")

  push_provider = (os.getenv("PINGS_PUSH_PROVIDER") or "fcm").strip().lower()
  if push_provider not in {"fcm", "local"}:
    raise ValueError("PINGS_PUSH_PROVIDER must be 'fcm' or 'local'.")

  provider_timeout_seconds = float(os.getenv("PINGS_PROVIDER_TIMEOUT_SECONDS", "5"))
  if provider_timeout_seconds <= 0:
    raise ValueError("PINGS_PROVIDER_TIMEOUT_SECONDS must be positive.")

  firebase_project_id = _optional_str(os.getenv("FIREBASE_PROJECT_ID"))
  # FCM topic management needs a Firebase project to resolve credentials against.
  if push_provider == "fcm" and not firebase_project_id:
    raise ValueError("FIREBASE_PROJECT_ID must be set when PINGS_PUSH_PROVIDER is 'fcm'.")

  return Settings(
    environment=environment,
    debug=debug,
    log_dir=_optional_str(os.getenv("PINGS_LOG_DIR")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    groups=_parse_groups(os.getenv("PINGS_GROUPS")),
    login_secret=_optional_str(os.getenv("PINGS_LOGIN_SECRET")),
    admin_secret=_optional_str(os.getenv("PINGS_ADMIN_SECRET")),
    session_ttl_seconds=session_ttl_seconds,
    rotation_interval_seconds=rotation_interval_seconds,
    rotation_jitter_seconds=rotation_jitter_seconds,
    channel_id_length=channel_id_length,
    token_length=token_length,
    max_retries=max_retries,
    retry_interval_seconds=retry_interval_seconds,
    worker_count=worker_count,
    shutdown_grace_seconds=shutdown_grace_seconds,
    push_provider=push_provider,
    heartbeat_interval_seconds=_parse_optional_seconds(os.getenv("PINGS_HEARTBEAT_INTERVAL_SECONDS")),
    iid_base_url=(os.getenv("PINGS_IID_BASE_URL") or "https://iid.googleapis.com").strip().rstrip("/"),
    provider_timeout_seconds=provider_timeout_seconds,
    firebase_project_id=firebase_project_id,
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
  )
