from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr

MAX_PING_TEXT_CHARS = 2048


class LoginRequest(BaseModel):
  """Credentials plus the device's FCM registration token."""

  username: StrictStr = Field(min_length=1, max_length=128)
  password: StrictStr = Field(min_length=1, max_length=256)
  # FCM registration tokens only use this alphabet.
  device_id: StrictStr = Field(min_length=1, max_length=4096, pattern=r"^[A-Za-z0-9_:\-]+$", alias="deviceID")
  model_config = ConfigDict(extra="forbid", populate_by_name=True)


class RefreshRequest(BaseModel):
  """Periodic challenge proving the device still holds its session token."""

  username: StrictStr = Field(min_length=1, max_length=128)
  challenge: StrictStr = Field(min_length=1, max_length=256)
  model_config = ConfigDict(extra="forbid")


class LoginResponse(BaseModel):
  """Challenge token on success; empty and invalid otherwise."""

  challenge: str = ""
  valid: bool = False

  @classmethod
  def from_token(cls, token: str | None) -> LoginResponse:
    return cls(challenge=token or "", valid=bool(token))


class PingRequest(BaseModel):
  """A ping to broadcast to one group."""

  text: StrictStr = Field(min_length=2, max_length=MAX_PING_TEXT_CHARS)
  group: StrictStr = Field(default="all", min_length=1, max_length=128)
  model_config = ConfigDict(extra="forbid")


class StatusResponse(BaseModel):
  """Outcome of a ping or operational command."""

  response: str
  reason: str | None = None


class RotationResponse(StatusResponse):
  generation: int
  expired: int
  removals_scheduled: int
  additions_scheduled: int
