"""optin_manager — double-opt-in email subscriptions.

A subscription is created unconfirmed, a confirmation link carrying a
secret token is mailed, and the subscription becomes confirmed once the
link is followed.  A subscription exists only if its mail was sent.
"""

from optin_manager.exceptions import (
    DeliveryError,
    NotFoundError,
    StoreError,
    SubscriptionError,
    UniquenessError,
    ValidationError,
)
from optin_manager.service import CONFIRMATION_GRACE_PERIOD, ConfirmationService
from optin_manager.subscription import Subscription, identifier_of

__all__ = [
    "CONFIRMATION_GRACE_PERIOD",
    "ConfirmationService",
    "DeliveryError",
    "NotFoundError",
    "StoreError",
    "Subscription",
    "SubscriptionError",
    "UniquenessError",
    "ValidationError",
    "identifier_of",
]
