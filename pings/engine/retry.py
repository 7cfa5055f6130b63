"""Immutable retriable work items and the policy that bounds them."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
  """How many times a failed task is re-submitted and how long to wait first."""

  max_retries: int = 3
  interval_seconds: float = 2.0

  def __post_init__(self) -> None:
    if self.max_retries < 0:
      raise ValueError("max_retries must be zero or positive")
    if self.interval_seconds < 0:
      raise ValueError("interval_seconds must be zero or positive")

  def should_retry(self, task: RetriableTask) -> bool:
    return task.retries < self.max_retries

  def delay_for(self, task: RetriableTask) -> float:
    """Linear backoff: the n-th retry waits n intervals."""
    return self.interval_seconds * task.retries


@dataclass(frozen=True)
class RetriableTask:
  """A unit of background work that can be re-submitted with an incremented counter.

  Tasks are value objects. A retry is a new instance carrying the same payload, so the
  original attempt and its retry never share mutable state.
  """

  retries: int = dataclasses.field(default=0, kw_only=True)

  def __post_init__(self) -> None:
    if self.retries < 0:
      raise ValueError("retries must be zero or positive")

  @property
  def name(self) -> str:
    return type(self).__name__

  def attempt(self) -> bool:
    """Run the work once; return True on success."""
    raise NotImplementedError

  def next_attempt(self) -> RetriableTask:
    return dataclasses.replace(self, retries=self.retries + 1)
