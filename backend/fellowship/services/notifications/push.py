"""
Send push notifications via the Expo push service.

ExpoPushClient posts one batch (<= 100 messages) and returns its tickets.
PushDispatcher splits messages into batches, retries transport failures
(timeout, connection error, 5xx) with linear backoff, and reads the tickets:
DeviceNotRegistered tokens are handed to a callback that disables them.
Neither class raises past dispatch(); callers always get a DispatchResult.
"""
import logging
import time
from typing import Any, Callable, Iterator

import httpx

from fellowship.config import settings
from fellowship.core.constants import (
    BATCH_GATEWAY_ERROR,
    BATCH_NETWORK_ERROR,
    PUSH_BADGE,
    PUSH_SOUND,
    TICKET_DEVICE_NOT_REGISTERED,
    TICKET_INVALID_CREDENTIALS,
    TICKET_MESSAGE_TOO_BIG,
    TICKET_MISSING,
)
from fellowship.core.errors import PushGatewayError, PushTransportError
from fellowship.services.notifications.types import DispatchResult, PushContent, TokenTarget

logger = logging.getLogger(__name__)


def build_push_messages(content: PushContent, targets: list[TokenTarget]) -> list[dict[str, Any]]:
    """One Expo message per token, all carrying the same title/body/data."""
    return [
        {
            "to": t.token,
            "title": content.title,
            "body": content.body,
            "data": content.data,
            "sound": PUSH_SOUND,
            "badge": PUSH_BADGE,
        }
        for t in targets
    ]


def chunk(items: list, size: int) -> Iterator[list]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


class ExpoPushClient:
    """Expo push send endpoint: lowest level, sends one batch only."""

    def __init__(
        self,
        url: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url or settings.expo_push_url
        self._access_token = settings.expo_access_token if access_token is None else access_token
        self._timeout = settings.push_timeout_seconds if timeout is None else timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def send_batch(self, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        POST the batch; return tickets in request order.
        Raises PushTransportError (retryable) or PushGatewayError (not retryable).
        """
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.post(self._url, json=messages, headers=self._headers())
        except httpx.TimeoutException as e:
            raise PushTransportError(f"Expo request timed out: {e}") from e
        except httpx.TransportError as e:
            raise PushTransportError(f"Expo request failed: {e}") from e
        except httpx.HTTPError as e:
            # e.g. DecodingError on a corrupt gzip body; resending will not help
            raise PushGatewayError(f"Expo response could not be read: {e}") from e
        if resp.status_code >= 500:
            raise PushTransportError(f"Expo returned {resp.status_code}")
        if not resp.is_success:
            raise PushGatewayError(f"Expo returned {resp.status_code}: {resp.text[:500]}")
        try:
            body = resp.json()
        except ValueError as e:
            raise PushGatewayError("Expo returned a non-JSON body") from e
        # Expo wraps tickets in {"data": [...]}; accept a bare array too
        tickets = body.get("data") if isinstance(body, dict) else body
        if not isinstance(tickets, list):
            raise PushGatewayError(f"Expo response has no ticket list: {str(body)[:200]}")
        return tickets


class PushDispatcher:
    """Batches, retries and ticket handling for one dispatch."""

    def __init__(
        self,
        client: ExpoPushClient | None = None,
        on_device_not_registered: Callable[[str], Any] | None = None,
        *,
        batch_size: int | None = None,
        max_attempts: int | None = None,
        retry_delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client or ExpoPushClient()
        self._on_device_not_registered = on_device_not_registered
        self.batch_size = batch_size or settings.push_batch_size
        self.max_attempts = max_attempts or settings.push_max_attempts
        self.retry_delay_seconds = (
            settings.push_retry_delay_seconds if retry_delay_seconds is None else retry_delay_seconds
        )
        self._sleep = sleep

    def dispatch(self, messages: list[dict[str, Any]]) -> DispatchResult:
        result = DispatchResult(tokens=len(messages))
        if not messages:
            return result
        batches = list(chunk(messages, self.batch_size))
        for index, batch in enumerate(batches, start=1):
            sent_before, failed_before = result.sent, result.failed
            try:
                tickets = self._send_with_retry(batch, index, len(batches), result)
                if tickets is None:
                    continue
                self._read_tickets(batch, tickets, result)
            except Exception as e:
                logger.exception("Batch %s/%s failed unexpectedly", index, len(batches))
                # a half-read batch counts as wholly failed
                result.sent, result.failed = sent_before, failed_before
                self._fail_batch(batch, index, BATCH_GATEWAY_ERROR, str(e), result)
                continue
            logger.debug("Batch %s/%s: %s tickets", index, len(batches), len(tickets))
        logger.info("Push summary: %s/%s sent, %s failed", result.sent, len(messages), result.failed)
        return result

    def _send_with_retry(
        self, batch: list[dict[str, Any]], index: int, total: int, result: DispatchResult
    ) -> list[dict[str, Any]] | None:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self._client.send_batch(batch)
            except PushTransportError as e:
                logger.warning("Attempt %s/%s failed for batch %s/%s: %s", attempt, self.max_attempts, index, total, e)
                if attempt < self.max_attempts:
                    self._sleep(self.retry_delay_seconds * attempt)
                    continue
                self._fail_batch(batch, index, BATCH_NETWORK_ERROR, str(e), result)
            except PushGatewayError as e:
                logger.error("Expo rejected batch %s/%s: %s", index, total, e)
                self._fail_batch(batch, index, BATCH_GATEWAY_ERROR, str(e), result)
                return None
        return None

    @staticmethod
    def _fail_batch(batch: list, index: int, code: str, message: str, result: DispatchResult) -> None:
        result.failed += len(batch)
        result.errors.append({"batch": index, "error": code, "message": message, "messagesAffected": len(batch)})

    def _read_tickets(self, batch: list[dict[str, Any]], tickets: list[Any], result: DispatchResult) -> None:
        for i, message in enumerate(batch):
            ticket = tickets[i] if i < len(tickets) else None
            if isinstance(ticket, dict) and ticket.get("status") == "ok":
                result.sent += 1
                continue
            result.failed += 1
            token = message.get("to")
            if not isinstance(ticket, dict):
                logger.warning("No ticket for push to %s", token)
                result.errors.append({"token": token, "error": TICKET_MISSING, "message": "No ticket returned"})
                continue
            details = d if isinstance(d := ticket.get("details"), dict) else {}
            code = details.get("error")
            text = ticket.get("message") or details.get("message") or "Unknown error"
            result.errors.append({"token": token, "error": code, "message": text, "title": message.get("title")})
            self._handle_ticket_error(token, code, text, message)

    def _handle_ticket_error(self, token: str, code: str | None, text: str, message: dict[str, Any]) -> None:
        if code == TICKET_DEVICE_NOT_REGISTERED:
            logger.info("Expo says %s is not registered; disabling", token)
            if self._on_device_not_registered is not None:
                try:
                    self._on_device_not_registered(token)
                except Exception as e:
                    logger.error("Disabling token %s failed: %s", token, e, exc_info=True)
        elif code == TICKET_INVALID_CREDENTIALS:
            logger.critical("Expo rejected our push credentials (%s); check EXPO_ACCESS_TOKEN / FCM / APNs setup", text)
        elif code == TICKET_MESSAGE_TOO_BIG:
            logger.error("Push payload too big, dropped: title=%r data=%s", message.get("title"), message.get("data"))
        else:
            logger.warning("Push error for %s: %s - %s", token, code, text)
