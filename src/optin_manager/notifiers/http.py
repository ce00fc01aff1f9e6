"""HttpNotifier — hands confirmation requests to a mail-delivery API."""

from __future__ import annotations

import logging
import os
import uuid

import httpx

from optin_manager.exceptions import DeliveryError
from optin_manager.notifiers.base import (
    DEFAULT_CONFIRM_URL_TEMPLATE,
    DEFAULT_SENDER,
    Notifier,
    build_confirmation_request,
)
from optin_manager.subscription import Subscription

logger = logging.getLogger(__name__)


class HttpNotifier(Notifier):
    """Posts each confirmation request to ``{api_url}/v1/messages``.

    Sending is attempted exactly once; any failure surfaces as
    :class:`DeliveryError` so the caller can undo its work.

    Parameters:
        api_url: Mail API base URL.  Falls back to the MAILER_URL env var.
        api_token: Bearer token for the mail API.  Falls back to the
            MAILER_API_TOKEN env var.
        confirm_url_template: Link template containing ``{token}``.
        sender: From-address of the confirmation message.
        timeout: HTTP request timeout in seconds.  Defaults to 30.

    Example:
        >>> notifier = HttpNotifier(
        ...     api_url="https://mail.example.com",
        ...     api_token="mk_xxx",
        ...     confirm_url_template="https://example.com/subscriptions/{token}/confirm",
        ... )
    """

    def __init__(
        self,
        *,
        api_url: str | None = None,
        api_token: str | None = None,
        confirm_url_template: str = DEFAULT_CONFIRM_URL_TEMPLATE,
        sender: str = DEFAULT_SENDER,
        timeout: float = 30.0,
    ) -> None:
        resolved_url = api_url or os.getenv("MAILER_URL", "")
        self._api_url = resolved_url.rstrip("/") if resolved_url else ""
        self._api_token = api_token or os.getenv("MAILER_API_TOKEN", "")
        self._confirm_url_template = confirm_url_template
        self._sender = sender
        self._timeout = timeout

    async def send_confirmation_request(self, subscription: Subscription) -> None:
        recipient = subscription.email

        if not self._api_url:
            raise DeliveryError(
                "Mail API URL not configured (set api_url or MAILER_URL env var)",
                recipient,
            )
        if not self._api_token:
            raise DeliveryError(
                "Mail API token not configured (set api_token or MAILER_API_TOKEN env var)",
                recipient,
            )

        message = build_confirmation_request(
            subscription, self._confirm_url_template, self._sender
        )

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self._api_url}/v1/messages",
                    json={
                        "from": message.sender,
                        "to": message.recipient,
                        "subject": message.subject,
                        "text": message.body,
                    },
                    headers={
                        "Authorization": f"Bearer {self._api_token}",
                        "Idempotency-Key": str(uuid.uuid4()),
                    },
                    timeout=self._timeout,
                )
        except httpx.TimeoutException as exc:
            raise DeliveryError(
                f"Mail API timed out after {self._timeout} seconds", recipient
            ) from exc
        except httpx.ConnectError as exc:
            raise DeliveryError("Could not connect to mail API", recipient) from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Mail API error: {exc}", recipient) from exc

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Mail API rejected confirmation request for %s: HTTP %s",
                recipient,
                response.status_code,
            )
            raise DeliveryError(
                f"Mail delivery failed: HTTP {response.status_code}", recipient
            )

        logger.info("Confirmation request sent to %s", recipient)
