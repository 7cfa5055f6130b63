"""Test configuration: in-memory provider, inline schedulers and a controllable clock."""

from __future__ import annotations

import os

os.environ.setdefault("PINGS_PUSH_PROVIDER", "local")
os.environ.setdefault("PINGS_GROUPS", "all,alice,bob,carol,caps")
os.environ.setdefault("PINGS_LOGIN_SECRET", "password")
os.environ.setdefault("PINGS_ADMIN_SECRET", "admin-secret")

from collections.abc import Callable  # noqa: E402
from collections.abc import Sequence  # noqa: E402

import pytest  # noqa: E402

from pings.config import Settings, get_settings  # noqa: E402
from pings.engine.retry import RetriableTask, RetryPolicy  # noqa: E402
from pings.engine.scheduler import TaskScheduler  # noqa: E402
from pings.engine.service import PingService, build_ping_service  # noqa: E402
from pings.notifications.local import LocalBroadcastSender, LocalChannelClient  # noqa: E402


class InlineScheduler(TaskScheduler):
  """Runs submitted work on the calling thread; delayed work runs immediately too."""

  def __init__(self, *, retry_policy: RetryPolicy | None = None) -> None:
    super().__init__(retry_policy=retry_policy or RetryPolicy(max_retries=3, interval_seconds=2.0))
    self.delays: list[float] = []
    self.periodic: list[str] = []
    self.stopped = False

  def every(self, interval_seconds: float, func: Callable[[], object], *, name: str, initial_delay_seconds: float | None = None, jitter_seconds: float = 0.0) -> None:
    self.periodic.append(name)

  def shutdown(self, grace_seconds: float = 2.0) -> None:
    self.stopped = True

  def _dispatch(self, func: Callable[[], object]) -> None:
    func()

  def _dispatch_later(self, func: Callable[[], object], delay_seconds: float) -> None:
    self.delays.append(delay_seconds)
    func()


class RecordingScheduler(InlineScheduler):
  """Captures submitted tasks without running them."""

  def __init__(self) -> None:
    super().__init__()
    self.submitted: list[RetriableTask] = []

  def submit(self, task: RetriableTask) -> None:
    self.submitted.append(task)

  def of_type(self, task_type: type) -> list:
    return [task for task in self.submitted if isinstance(task, task_type)]


class FakeClock:
  def __init__(self, start: float = 1000.0) -> None:
    self.now = start

  def __call__(self) -> float:
    return self.now

  def advance(self, seconds: float) -> None:
    self.now += seconds


class FlakyChannelClient(LocalChannelClient):
  """Local client whose calls can be forced to fail a number of times."""

  def __init__(self) -> None:
    super().__init__()
    self.fail_adds = 0
    self.fail_removes = 0
    self.fail_lists = 0
    self.calls: list[tuple[str, tuple[str, ...], str]] = []

  def add_members(self, device_ids: Sequence[str], channel_id: str) -> bool:
    self.calls.append(("add", tuple(device_ids), channel_id))
    if self.fail_adds:
      self.fail_adds -= 1
      return False
    return super().add_members(device_ids, channel_id)

  def remove_members(self, device_ids: Sequence[str], channel_id: str) -> bool:
    self.calls.append(("remove", tuple(device_ids), channel_id))
    if self.fail_removes:
      self.fail_removes -= 1
      return False
    return super().remove_members(device_ids, channel_id)

  def list_channels(self, device_id: str) -> set[str] | None:
    self.calls.append(("list", (device_id,), ""))
    if self.fail_lists:
      self.fail_lists -= 1
      return None
    return super().list_channels(device_id)

  def count(self, kind: str) -> int:
    return sum(1 for call in self.calls if call[0] == kind)


@pytest.fixture
def settings() -> Settings:
  return get_settings()


@pytest.fixture
def clock() -> FakeClock:
  return FakeClock()


@pytest.fixture
def channel_client() -> FlakyChannelClient:
  return FlakyChannelClient()


@pytest.fixture
def sender() -> LocalBroadcastSender:
  return LocalBroadcastSender()


@pytest.fixture
def inline_scheduler() -> InlineScheduler:
  return InlineScheduler()


@pytest.fixture
def recording_scheduler() -> RecordingScheduler:
  return RecordingScheduler()


@pytest.fixture
def make_service(settings, channel_client, sender, clock) -> Callable[..., PingService]:
  def _make(scheduler: TaskScheduler) -> PingService:
    return build_ping_service(settings, client=channel_client, sender=sender, scheduler=scheduler, clock=clock)

  return _make
