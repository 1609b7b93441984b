"""Buttondown API client — subscriber upsert, draft creation, draft send."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.buttondown.com/v1"


class DeliveryError(Exception):
    """Buttondown rejected a request or is not configured."""


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    message: str
    email_id: str = ""


def _error_detail(response: httpx.Response) -> str:
    """Best available description of a failed response: JSON, then text, then status."""
    try:
        data = response.json()
    except (json.JSONDecodeError, ValueError):
        return response.text or f"Status: {response.status_code} {response.reason_phrase}"
    if isinstance(data, (dict, list)):
        return json.dumps(data)
    return str(data) if data else f"Status: {response.status_code} {response.reason_phrase}"


class ButtondownClient:
    """Sends the digest to a single recipient through Buttondown."""

    def __init__(
        self,
        api_key: str,
        recipient: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._recipient = recipient
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._recipient)

    async def _post(self, path: str, payload: dict[str, Any], headers: dict[str, str] | None = None) -> httpx.Response:
        if not self._api_key:
            raise DeliveryError("BUTTONDOWN_API_KEY is not set")
        request_headers = {"Authorization": f"Token {self._api_key}"}
        request_headers.update(headers or {})

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(f"{self._api_url}{path}", json=payload, headers=request_headers)

        if response.is_error:
            detail = _error_detail(response)
            logger.warning(
                "buttondown request failed",
                extra={"path": path, "status_code": response.status_code, "detail": detail[:500]},
            )
            raise DeliveryError(f"Buttondown API error: {detail}")
        return response

    async def create_subscriber(self, email: str) -> dict[str, Any]:
        """Create the subscriber, or overwrite it if it already exists."""
        logger.debug("creating subscriber", extra={"email": email})
        response = await self._post(
            "/subscribers",
            {"email_address": email, "type": "regular"},
            headers={"X-Buttondown-Collision-Behavior": "overwrite"},
        )
        return response.json()

    async def create_draft(self, subject: str, html_body: str, recipient: str | None = None) -> dict[str, Any]:
        response = await self._post(
            "/emails",
            {
                "subject": subject,
                "body": html_body,
                "status": "draft",
                "recipient": recipient or self._recipient,
            },
        )
        draft = response.json()
        logger.debug("draft created", extra={"email_id": draft.get("id", "")})
        return draft

    async def send_draft(self, email_id: str, recipient: str | None = None) -> DeliveryResult:
        # The send endpoint answers with an empty body on success.
        await self._post(
            f"/emails/{email_id}/send-draft",
            {"recipients": [recipient or self._recipient]},
        )
        return DeliveryResult(success=True, message="Email sent successfully", email_id=email_id)

    async def send_email(self, subject: str, html_body: str) -> DeliveryResult:
        """Upsert the recipient, create a draft and send it."""
        if not self._recipient:
            raise DeliveryError("no digest recipient configured")
        await self.create_subscriber(self._recipient)
        draft = await self.create_draft(subject, html_body)
        email_id = draft.get("id")
        if not email_id:
            raise DeliveryError("Buttondown draft response had no id")
        result = await self.send_draft(email_id)
        logger.info("digest email sent", extra={"email_id": email_id, "subject": subject})
        return result
