"""OutboxNotifier — records messages instead of sending them."""

from __future__ import annotations

from optin_manager.notifiers.base import (
    DEFAULT_CONFIRM_URL_TEMPLATE,
    DEFAULT_SENDER,
    ConfirmationRequest,
    Notifier,
    build_confirmation_request,
)
from optin_manager.subscription import Subscription


class OutboxNotifier(Notifier):
    """Appends every rendered request to ``outbox``.  Never fails.

    Useful in development and tests, where ``outbox`` plays the part of
    a delivered-mail list.
    """

    def __init__(
        self,
        *,
        confirm_url_template: str = DEFAULT_CONFIRM_URL_TEMPLATE,
        sender: str = DEFAULT_SENDER,
    ) -> None:
        self._confirm_url_template = confirm_url_template
        self._sender = sender
        self.outbox: list[ConfirmationRequest] = []

    async def send_confirmation_request(self, subscription: Subscription) -> None:
        self.outbox.append(
            build_confirmation_request(subscription, self._confirm_url_template, self._sender)
        )
