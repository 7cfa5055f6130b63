"""Firebase Cloud Messaging backed channel client and broadcast sender."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from http import HTTPStatus
from urllib.parse import quote

import firebase_admin
import httpx
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from pings.notifications.contracts import BroadcastProviderError, BroadcastSender, ChannelProviderError, PushChannelClient

logger = logging.getLogger(__name__)

# FCM rejects topic management batches larger than this.
_MAX_TOKENS_PER_BATCH = 1000


@dataclass(frozen=True)
class FcmConfig:
  """Configuration for FCM topic management and Instance ID lookups."""

  iid_base_url: str = "https://iid.googleapis.com"
  timeout_seconds: float = 5.0


def _default_access_token() -> str:
  """Mint an OAuth2 access token from the initialized Firebase app credential."""
  credential = firebase_admin.get_app().credential
  return credential.get_access_token().access_token


def _chunks(items: Sequence[str], size: int) -> list[list[str]]:
  return [list(items[index : index + size]) for index in range(0, len(items), size)]


class FcmChannelClient(PushChannelClient):
  """Topic membership management through the Firebase Admin SDK."""

  def __init__(self, *, config: FcmConfig, http_client: httpx.Client | None = None, access_token_provider: Callable[[], str] | None = None) -> None:
    self._config = config
    self._http = http_client or httpx.Client(timeout=config.timeout_seconds, trust_env=False)
    self._access_token_provider = access_token_provider or _default_access_token

  def add_members(self, device_ids: Sequence[str], channel_id: str) -> bool:
    """Subscribe devices to a topic in provider-sized batches."""
    return self._manage(messaging.subscribe_to_topic, "subscribe", device_ids, channel_id)

  def remove_members(self, device_ids: Sequence[str], channel_id: str) -> bool:
    """Unsubscribe devices from a topic in provider-sized batches."""
    return self._manage(messaging.unsubscribe_from_topic, "unsubscribe", device_ids, channel_id)

  def list_channels(self, device_id: str) -> set[str] | None:
    """Look up the topics a registration token is subscribed to via the Instance ID API."""
    try:
      return self._fetch_topics(device_id)
    except ChannelProviderError as exc:
      logger.info("Topic lookup failed for device: %s", exc)
      return None

  def close(self) -> None:
    self._http.close()

  def _manage(self, operation: Callable[..., messaging.TopicManagementResponse], verb: str, device_ids: Sequence[str], channel_id: str) -> bool:
    if not channel_id:
      raise ValueError("channel_id must not be empty")
    if not device_ids:
      return True

    ok = True
    for batch in _chunks(device_ids, _MAX_TOKENS_PER_BATCH):
      try:
        response = operation(batch, channel_id)
      except (firebase_exceptions.FirebaseError, ValueError) as exc:
        logger.info("Topic %s failed topic=%s devices=%d: %s", verb, channel_id, len(batch), exc)
        ok = False
        continue

      # Per-token errors are reported in the body rather than raised.
      if response.failure_count:
        reasons = sorted({error.reason for error in response.errors})
        logger.info("Topic %s partially failed topic=%s failures=%d reasons=%s", verb, channel_id, response.failure_count, reasons)
        ok = False

    return ok

  def _fetch_topics(self, device_id: str) -> set[str]:
    # Registration tokens come from clients; keep them inside one path segment.
    url = f"{self._config.iid_base_url}/iid/info/{quote(device_id, safe='')}"
    try:
      headers = {"authorization": f"Bearer {self._access_token_provider()}", "access_token_auth": "true"}
      response = self._http.get(url, params={"details": "true"}, headers=headers)
    except httpx.RequestError as exc:
      raise ChannelProviderError(f"Instance ID request failed: {exc}") from exc
    except Exception as exc:  # noqa: BLE001
      # Credential refresh failures surface from google-auth with their own types.
      raise ChannelProviderError(f"Instance ID credentials unavailable: {type(exc).__name__}") from exc

    if response.status_code != HTTPStatus.OK:
      raise ChannelProviderError(f"Instance ID lookup returned status={response.status_code}")

    try:
      body = response.json()
    except ValueError as exc:
      raise ChannelProviderError("Instance ID lookup returned malformed JSON") from exc
    if not isinstance(body, dict):
      raise ChannelProviderError("Instance ID lookup returned a non-object body")

    # Devices with no subscriptions omit the "rel" block entirely.
    topics = (body.get("rel") or {}).get("topics") or {}
    return set(topics.keys())


class FcmBroadcastSender(BroadcastSender):
  """Sends high-priority data messages to an FCM topic."""

  def send(self, channel_id: str, data: dict[str, str]) -> None:
    """Send one data message, waking the device on both Android and APNs."""
    message = messaging.Message(
      topic=channel_id,
      data=data,
      android=messaging.AndroidConfig(priority="high"),
      apns=messaging.APNSConfig(headers={"apns-priority": "10"}, payload=messaging.APNSPayload(aps=messaging.Aps(content_available=True))),
    )
    try:
      message_id = messaging.send(message)
    except firebase_exceptions.FirebaseError as exc:
      raise BroadcastProviderError(f"Response error: {exc.code}") from exc
    except ValueError as exc:
      raise BroadcastProviderError(f"Rejected message: {exc}") from exc

    logger.debug("Broadcast accepted topic=%s message_id=%s", channel_id, message_id)
