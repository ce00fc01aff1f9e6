"""Notifier ABC and the confirmation-request message."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from optin_manager.subscription import Subscription, identifier_of

DEFAULT_CONFIRM_URL_TEMPLATE = "http://localhost:3000/subscriptions/{token}/confirm"
DEFAULT_SENDER = "no-reply@localhost"
DEFAULT_SUBJECT = "Please confirm your subscription"

_BODY = """Hello,

Someone (hopefully you) asked to subscribe {email} starting {start_on}.
To confirm, follow this link:

    {url}

If you did not ask for this, ignore this message and nothing will be sent.
"""


@dataclass(frozen=True)
class ConfirmationRequest:
    """Rendered confirmation-request message, ready for a transport."""

    recipient: str
    sender: str
    subject: str
    body: str
    confirmation_url: str


def build_confirmation_request(
    subscription: Subscription,
    confirm_url_template: str = DEFAULT_CONFIRM_URL_TEMPLATE,
    sender: str = DEFAULT_SENDER,
) -> ConfirmationRequest:
    """Render the message asking the owner of ``subscription.email`` to confirm.

    ``confirm_url_template`` must contain a ``{token}`` placeholder, filled
    with the subscription's public identifier.
    """
    url = confirm_url_template.format(token=identifier_of(subscription))
    start_on = subscription.start_on.isoformat() if subscription.start_on else "today"
    return ConfirmationRequest(
        recipient=subscription.email,
        sender=sender,
        subject=DEFAULT_SUBJECT,
        body=_BODY.format(email=subscription.email, start_on=start_on, url=url),
        confirmation_url=url,
    )


class Notifier(ABC):
    """Sends confirmation requests.  Implementations may fail.

    Failures should be raised as
    :class:`~optin_manager.exceptions.DeliveryError`; whatever is raised is
    propagated to the caller of the creating operation unchanged.
    """

    @abstractmethod
    async def send_confirmation_request(self, subscription: Subscription) -> None:
        """Deliver the confirmation request for *subscription*."""
        ...
