"""Scheduler webhook client with exponential backoff retry logic"""

import httpx
import asyncio
import logging
from typing import Dict, Any, Optional
from hockey_gateway.config import settings
from hockey_gateway.domain.exceptions import SchedulerWebhookError
from hockey_gateway.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

logger = logging.getLogger(__name__)


class SchedulerClient:
    """Client for handing new payment plans to the installment scheduler"""

    def __init__(
        self,
        webhook_url: str | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url or settings.scheduler_webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    async def send_plan_created(self, payload: Dict[str, Any]) -> None:
        """
        Send PAYMENT_PLAN_CREATED event to the scheduler with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on 5xx errors and network failures, not on 4xx
        - Tracks latency histogram and failure counter

        Raises:
            SchedulerWebhookError: After max_retries failed attempts or a 4xx
        """
        attempt = 0
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return

                except httpx.HTTPStatusError as e:
                    attempt += 1
                    webhook_failure_counter.inc()
                    if e.response.status_code < 500:
                        raise SchedulerWebhookError(
                            f"Scheduler rejected event: {e.response.status_code}"
                        ) from e
                    if attempt >= self.max_retries:
                        raise SchedulerWebhookError(
                            f"Scheduler unavailable after {attempt} attempts"
                        ) from e

                except httpx.RequestError as e:
                    attempt += 1
                    webhook_failure_counter.inc()
                    if attempt >= self.max_retries:
                        raise SchedulerWebhookError(
                            f"Scheduler unreachable after {attempt} attempts"
                        ) from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                logger.warning(
                    "Scheduler webhook failed, retrying",
                    extra={"attempt": attempt, "backoff_seconds": backoff, "url": self.webhook_url},
                )
                await asyncio.sleep(backoff)
