"""Transports for confirmation-request messages."""

from optin_manager.notifiers.base import (
    ConfirmationRequest,
    Notifier,
    build_confirmation_request,
)
from optin_manager.notifiers.http import HttpNotifier
from optin_manager.notifiers.outbox import OutboxNotifier

__all__ = [
    "ConfirmationRequest",
    "HttpNotifier",
    "Notifier",
    "OutboxNotifier",
    "build_confirmation_request",
]
