"""Volatile per-device ping sessions and the store that expires them."""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from pings.utils.ids import generate_nanoid

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SECONDS = 2 * 86400.0

Clock = Callable[[], float]


@dataclass(eq=False)
class Session:
  """A logged-in device: who it is, where to reach it, and what it should receive.

  Only `last_refresh` changes after creation, and only through a verified challenge.
  """

  identity: str
  device_channel_id: str
  groups: tuple[str, ...]
  challenge_token: str
  last_refresh: float = field(repr=False)

  def is_expired(self, now: float, ttl_seconds: float) -> bool:
    return now - self.last_refresh > ttl_seconds

  def wants(self, group: str) -> bool:
    return group in self.groups


class SessionStore:
  """Maps identities to sessions. Every access holds the shared coarse lock."""

  def __init__(self, *, lock: threading.RLock, ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS, token_length: int = 24, clock: Clock = time.monotonic) -> None:
    if token_length < 16:
      raise ValueError("token_length must be at least 16")
    self._lock = lock
    self._ttl_seconds = ttl_seconds
    self._token_length = token_length
    self._clock = clock
    self._sessions: dict[str, Session] = {}

  @property
  def ttl_seconds(self) -> float:
    return self._ttl_seconds

  def create_or_replace(self, identity: str, device_channel_id: str, groups: Sequence[str]) -> Session:
    """Issue a fresh session, discarding any previous one for the identity."""
    session = Session(identity=identity, device_channel_id=device_channel_id, groups=tuple(groups), challenge_token=generate_nanoid(self._token_length), last_refresh=self._clock())
    with self._lock:
      replaced = identity in self._sessions
      self._sessions[identity] = session
    logger.info("Session %s for identity=%s", "replaced" if replaced else "created", identity)
    return session

  def get(self, identity: str) -> Session | None:
    with self._lock:
      return self._sessions.get(identity)

  def refresh(self, identity: str, presented_token: str) -> bool:
    """Extend a live session whose challenge token matches.

    A mismatch leaves the session untouched so a bad challenge cannot log a victim out.
    """
    with self._lock:
      session = self._sessions.get(identity)
      if session is None:
        return False
      now = self._clock()
      if session.is_expired(now, self._ttl_seconds):
        return False
      if not secrets.compare_digest(session.challenge_token.encode("utf-8"), presented_token.encode("utf-8")):
        return False
      session.last_refresh = now
    logger.debug("Renewed session for identity=%s", identity)
    return True

  def sweep_expired(self) -> set[str]:
    """Remove and return every expired identity. Callers must already hold the lock."""
    with self._lock:
      now = self._clock()
      expired = {identity for identity, session in self._sessions.items() if session.is_expired(now, self._ttl_seconds)}
      for identity in expired:
        del self._sessions[identity]
    for identity in sorted(expired):
      logger.info("Expired session for identity=%s", identity)
    return expired

  def members_of(self, group: str) -> tuple[Session, ...]:
    """Return the sessions subscribed to a group (case sensitive, no expiry check)."""
    with self._lock:
      return tuple(session for session in self._sessions.values() if session.wants(group))

  def all(self) -> tuple[Session, ...]:
    with self._lock:
      return tuple(self._sessions.values())

  def __len__(self) -> int:
    with self._lock:
      return len(self._sessions)

  def __contains__(self, identity: object) -> bool:
    with self._lock:
      return identity in self._sessions
