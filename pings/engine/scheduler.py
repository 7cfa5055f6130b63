"""Bounded worker pool with delayed and periodic execution for engine tasks."""

from __future__ import annotations

import heapq
import itertools
import logging
import random
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from pings.engine.retry import RetriableTask, RetryPolicy

logger = logging.getLogger(__name__)


class TaskScheduler:
  """Runs retriable tasks and owns the retry-or-drop decision.

  Subclasses decide how work is dispatched; this base class decides what happens after
  an attempt finishes.
  """

  def __init__(self, *, retry_policy: RetryPolicy) -> None:
    self.retry_policy = retry_policy

  def submit(self, task: RetriableTask) -> None:
    """Queue a task for immediate execution."""
    self._dispatch(lambda: self.execute(task))

  def submit_later(self, task: RetriableTask, delay_seconds: float) -> None:
    """Queue a task to run after a delay."""
    self._dispatch_later(lambda: self.execute(task), delay_seconds)

  def every(self, interval_seconds: float, func: Callable[[], object], *, name: str, initial_delay_seconds: float | None = None, jitter_seconds: float = 0.0) -> None:
    """Run a plain callable periodically until shutdown."""
    if interval_seconds <= 0:
      raise ValueError("interval_seconds must be positive")

    def _next_delay() -> float:
      return interval_seconds + (random.uniform(0.0, jitter_seconds) if jitter_seconds > 0 else 0.0)

    def _tick() -> None:
      try:
        func()
      except Exception:  # noqa: BLE001
        # A failed run must not cancel the schedule.
        logger.error("Periodic job %s failed", name, exc_info=True)
      self._dispatch_later(_tick, _next_delay())

    first = _next_delay() if initial_delay_seconds is None else initial_delay_seconds
    self._dispatch_later(_tick, first)
    logger.info("Periodic job %s scheduled every %.0fs (jitter %.0fs)", name, interval_seconds, jitter_seconds)

  def execute(self, task: RetriableTask) -> bool:
    """Attempt a task once and re-submit a fresh copy if it failed and may retry."""
    try:
      ok = task.attempt()
    except Exception:  # noqa: BLE001
      # Provider errors are translated at the task boundary; anything else is still only a failed attempt.
      logger.error("Task %s raised on attempt %d", task.name, task.retries + 1, exc_info=True)
      ok = False

    if ok:
      if task.retries:
        logger.info("Task %s succeeded after %d retries", task.name, task.retries)
      return True

    if self.retry_policy.should_retry(task):
      retry = task.next_attempt()
      delay = self.retry_policy.delay_for(retry)
      logger.info("Task %s failed (attempt %d); retrying in %.1fs", task.name, task.retries + 1, delay)
      self.submit_later(retry, delay)
    else:
      logger.warning("Task %s failed after %d attempts; dropping", task.name, task.retries + 1)
    return False

  def shutdown(self, grace_seconds: float = 2.0) -> None:
    """Stop accepting work and drain what is pending within the grace period."""

  def _dispatch(self, func: Callable[[], object]) -> None:
    raise NotImplementedError

  def _dispatch_later(self, func: Callable[[], object], delay_seconds: float) -> None:
    raise NotImplementedError


class ThreadPoolScheduler(TaskScheduler):
  """Fixed worker pool fed by a delay queue thread."""

  def __init__(self, *, workers: int, retry_policy: RetryPolicy) -> None:
    super().__init__(retry_policy=retry_policy)
    if workers < 2:
      raise ValueError("workers must be at least 2")
    self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pings-worker")
    self._delayed: list[tuple[float, int, Callable[[], object]]] = []
    self._sequence = itertools.count()
    self._condition = threading.Condition()
    self._stopping = False
    self._timer_thread = threading.Thread(target=self._run_timer, name="pings-scheduler", daemon=True)
    self._timer_thread.start()

  def _dispatch(self, func: Callable[[], object]) -> None:
    with self._condition:
      if self._stopping:
        logger.debug("Scheduler stopping; discarding submitted work")
        return
    self._submit_to_pool(func)

  def _dispatch_later(self, func: Callable[[], object], delay_seconds: float) -> None:
    due = time.monotonic() + max(0.0, delay_seconds)
    with self._condition:
      if self._stopping:
        logger.debug("Scheduler stopping; discarding delayed work")
        return
      heapq.heappush(self._delayed, (due, next(self._sequence), func))
      self._condition.notify()

  def _submit_to_pool(self, func: Callable[[], object]) -> None:
    try:
      self._executor.submit(func)
    except RuntimeError:
      # Lost the race with shutdown.
      logger.debug("Executor already shut down; discarding submitted work")

  def _run_timer(self) -> None:
    while True:
      with self._condition:
        while True:
          now = time.monotonic()
          if self._delayed and self._delayed[0][0] <= now:
            break
          # Exit once the work kept for the grace period is out.
          if self._stopping and not self._delayed:
            return
          self._condition.wait(self._delayed[0][0] - now if self._delayed else None)
        _, _, func = heapq.heappop(self._delayed)
      # Queued work runs even while stopping.
      self._submit_to_pool(func)

  def shutdown(self, grace_seconds: float = 2.0) -> None:
    """Run delayed work falling due within the grace period, drain the pool, then force-stop.

    The grace period is a single deadline shared by the timer and the worker drain.
    """
    deadline = time.monotonic() + max(0.0, grace_seconds)
    with self._condition:
      self._stopping = True
      kept = [entry for entry in self._delayed if entry[0] <= deadline]
      dropped = len(self._delayed) - len(kept)
      heapq.heapify(kept)
      self._delayed = kept
      self._condition.notify_all()
    if dropped:
      logger.info("Discarded %d delayed tasks due after the shutdown grace period", dropped)

    self._timer_thread.join(timeout=max(0.0, deadline - time.monotonic()))
    if self._timer_thread.is_alive():
      with self._condition:
        late = len(self._delayed)
        self._delayed.clear()
        self._condition.notify_all()
      if late:
        logger.warning("Discarded %d delayed tasks still pending at the shutdown deadline", late)

    drained = threading.Event()

    def _drain() -> None:
      self._executor.shutdown(wait=True)
      drained.set()

    threading.Thread(target=_drain, name="pings-drain", daemon=True).start()
    if not drained.wait(timeout=max(0.0, deadline - time.monotonic())):
      logger.warning("Worker pool did not drain within %.1fs; cancelling queued work", grace_seconds)
      self._executor.shutdown(wait=False, cancel_futures=True)
