"""Login credential checks.

Real identity verification is outside this service; logins are gated by one shared
secret so that only provisioned clients can open a session.
"""

from __future__ import annotations

import secrets
from typing import Protocol


class CredentialVerifier(Protocol):
  def verify(self, identity: str, presented_secret: str) -> bool:
    """Return True when the secret is acceptable for the identity."""


class SharedSecretVerifier(CredentialVerifier):
  """Accepts any identity presenting the configured secret. Denies all when unset."""

  def __init__(self, secret: str | None) -> None:
    self._secret = secret

  def verify(self, identity: str, presented_secret: str) -> bool:
    if not self._secret:
      return False
    return secrets.compare_digest(presented_secret.encode("utf-8"), self._secret.encode("utf-8"))
