"""Identifier utilities."""

from __future__ import annotations

import secrets
import string
import uuid

ALPHANUMERIC = string.digits + string.ascii_uppercase + string.ascii_lowercase


def generate_request_id() -> str:
  """Return a new request correlation identifier."""
  return str(uuid.uuid4())


def generate_nanoid(size: int = 24) -> str:
  """Return a random alphanumeric id drawn from the 62-symbol alphabet."""
  if size <= 0:
    raise ValueError("size must be positive")
  return "".join(secrets.choice(ALPHANUMERIC) for _ in range(size))
