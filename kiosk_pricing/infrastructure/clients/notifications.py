"""Notification webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict

import httpx

from kiosk_pricing.config import settings
from kiosk_pricing.domain.exceptions import NotificationDeliveryError
from kiosk_pricing.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram


class NotificationClient:
    """Client for pushing customer notifications (reminders, recorded transactions) to the backend"""

    def __init__(
        self,
        webhook_url: str | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.max_retries = max_retries if max_retries is not None else settings.webhook_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    async def send_event(self, payload: Dict[str, Any]) -> None:
        """
        Deliver one notification event.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt-1) -> 1s, 2s, 4s, 8s with the default base
        - Retries on 5xx responses and network failures
        - 4xx responses are not retried
        - Tracks latency histogram and failure counter

        Raises:
            NotificationDeliveryError: on a 4xx response or after the final failed attempt
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500:
                        raise NotificationDeliveryError(
                            f"Notification webhook rejected the event with {e.response.status_code}"
                        ) from e

                    if attempt >= self.max_retries:
                        raise NotificationDeliveryError(
                            f"Notification webhook failed after {attempt} attempts: {e}"
                        ) from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)


async def deliver_quietly(client: NotificationClient, payload: Dict[str, Any]) -> None:
    """Background-task wrapper: a failed notification is logged, never surfaced to the caller"""
    try:
        await client.send_event(payload)
    except NotificationDeliveryError as e:
        logging.error(f"Notification delivery failed: {e}", extra={"event": payload.get("event"), "step": "notify"})
