"""Outbound push webhook for notifications."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import status

from src.core.config import settings

logger = logging.getLogger(__name__)


class PushGateway:
    """Posts notification payloads to ``PUSH_WEBHOOK_URL``.

    Delivery is best effort: transport errors and non-2xx answers are logged
    and reported as ``False``, never raised.
    """

    def __init__(
        self,
        url: str,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.timeout = timeout if timeout is not None else settings.push_timeout_seconds
        self._client = client

    async def send(self, user_id: str, payload: dict[str, Any]) -> bool:
        body = {"user_id": user_id, **payload}
        created_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self.timeout)
            created_client = True
        try:
            response = await client.post(self.url, json=body)
        except httpx.HTTPError as exc:
            logger.warning("Push delivery to %s failed: %s", self.url, exc)
            return False
        finally:
            if created_client:
                await client.aclose()

        if not (status.HTTP_200_OK <= response.status_code < status.HTTP_300_MULTIPLE_CHOICES):
            logger.warning("Push webhook answered %s for user %s", response.status_code, user_id)
            return False
        return True


def build_push_gateway() -> PushGateway | None:
    if not settings.push_webhook_url:
        return None
    return PushGateway(settings.push_webhook_url)
