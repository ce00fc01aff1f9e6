"""Subscription — the double-opt-in record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

EMAIL_MAX_LENGTH = 100
TOKEN_MAX_LENGTH = 100


@dataclass
class Subscription:
    """A single email subscription awaiting or holding confirmation.

    Attributes:
        email:              Address the confirmation request is sent to.
                            Unique across all subscriptions.
        confirmation_token: Secret sent in the confirmation link.  Unique,
                            and the record's public identifier.
        confirmed:          ``True`` once the link has been followed.  Only
                            ever moves from ``False`` to ``True``.
        start_on:           Date the subscription starts.
        id:                 Assigned by the store on insert.
        created_at:         Stamped by the store on insert.
    """

    email: str
    confirmation_token: str
    confirmed: bool = False
    start_on: date | None = None
    id: int | None = None
    created_at: datetime | None = None

    def to_param(self) -> str:
        """Return the identifier used when building links to this record."""
        return self.confirmation_token


def identifier_of(subscription: Subscription) -> str:
    """Return the externally visible identifier of *subscription*."""
    return subscription.to_param()
