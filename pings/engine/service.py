"""Engine facade tying sessions, topics, rotation, reconciliation and broadcast together."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from pings.config import Settings
from pings.engine.broadcast import BroadcastDispatcher
from pings.engine.credentials import CredentialVerifier, SharedSecretVerifier
from pings.engine.errors import LoginRejectedError
from pings.engine.retry import RetryPolicy
from pings.engine.rotation import RotationReport, TopicRotator
from pings.engine.scheduler import TaskScheduler, ThreadPoolScheduler
from pings.engine.sessions import Clock, Session, SessionStore
from pings.engine.tasks import ReconcileSessionTask
from pings.engine.topics import TopicMap
from pings.notifications.contracts import BroadcastSender, PushChannelClient

logger = logging.getLogger(__name__)

UNIVERSAL_GROUP = "all"


class PingService:
  """Owns the topic map and session store; everything else borrows them through here."""

  def __init__(self, *, topics: TopicMap, sessions: SessionStore, scheduler: TaskScheduler, client: PushChannelClient, sender: BroadcastSender, verifier: CredentialVerifier) -> None:
    self.topics = topics
    self.sessions = sessions
    self.scheduler = scheduler
    self.client = client
    self._verifier = verifier
    self._rotator = TopicRotator(topics=topics, sessions=sessions, scheduler=scheduler, client=client)
    self._dispatcher = BroadcastDispatcher(topics=topics, sender=sender)
    self._started = False

  def login(self, identity: str, presented_secret: str, device_channel_id: str) -> Session:
    """Open a session for a device and queue its subscription sync."""
    identity = identity.strip()
    device_channel_id = device_channel_id.strip()
    if not identity or not device_channel_id:
      raise LoginRejectedError("identity and device id are required")
    if identity == UNIVERSAL_GROUP:
      raise LoginRejectedError("reserved identity")
    if not self._verifier.verify(identity, presented_secret):
      logger.info("Rejected login for identity=%s: bad credentials", identity)
      raise LoginRejectedError("invalid credentials")
    # Each identity receives pings on its own group, which must be registered.
    if identity not in self.topics:
      logger.info("Rejected login for identity=%s: no matching group", identity)
      raise LoginRejectedError("unknown identity")

    session = self.sessions.create_or_replace(identity, device_channel_id, (identity, UNIVERSAL_GROUP))
    self.scheduler.submit(ReconcileSessionTask(session=session, topics=self.topics, client=self.client))
    logger.info("User %s logged in", identity)
    return session

  def refresh(self, identity: str, presented_token: str) -> bool:
    # Normalized the same way as login.
    identity = identity.strip()
    accepted = self.sessions.refresh(identity, presented_token)
    if not accepted:
      logger.info("Rejected challenge for identity=%s", identity)
    return accepted

  def rotate(self) -> RotationReport:
    """Rotate synchronously; subscription migration continues in the background."""
    return self._rotator.rotate()

  def send(self, text: str, group: str) -> str:
    return self._dispatcher.send(text, group)

  def start(self, *, rotation_interval_seconds: float, rotation_jitter_seconds: float = 0.0, heartbeat_interval_seconds: float | None = None) -> None:
    """Bootstrap channel ids and schedule the periodic jobs."""
    if self._started:
      return
    # Placeholders are replaced before the first request can resolve a group.
    self.rotate()
    self.scheduler.every(rotation_interval_seconds, self.rotate, name="topic-rotation", jitter_seconds=rotation_jitter_seconds)
    if heartbeat_interval_seconds:
      self.scheduler.every(heartbeat_interval_seconds, self._send_heartbeat, name="heartbeat-ping")
    self._started = True
    logger.info("Ping engine started with groups=%s", ", ".join(self.topics.groups()))

  def stop(self, grace_seconds: float = 2.0) -> None:
    self.scheduler.shutdown(grace_seconds)
    close = getattr(self.client, "close", None)
    if callable(close):
      close()
    self._started = False
    logger.info("Ping engine stopped")

  def _send_heartbeat(self) -> None:
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    self.send(f"Ping was sent at {now}", UNIVERSAL_GROUP)


def build_ping_service(settings: Settings, *, client: PushChannelClient, sender: BroadcastSender, scheduler: TaskScheduler | None = None, verifier: CredentialVerifier | None = None, clock: Clock = time.monotonic) -> PingService:
  """Wire the engine from settings and provider collaborators."""
  topics = TopicMap(settings.groups, channel_id_length=settings.channel_id_length)
  sessions = SessionStore(lock=topics.lock, ttl_seconds=settings.session_ttl_seconds, token_length=settings.token_length, clock=clock)
  if scheduler is None:
    scheduler = ThreadPoolScheduler(workers=settings.worker_count, retry_policy=RetryPolicy(max_retries=settings.max_retries, interval_seconds=settings.retry_interval_seconds))
  return PingService(topics=topics, sessions=sessions, scheduler=scheduler, client=client, sender=sender, verifier=verifier or SharedSecretVerifier(settings.login_secret))
