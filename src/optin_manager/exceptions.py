"""Custom exceptions for the optin_manager package."""

from __future__ import annotations


class SubscriptionError(Exception):
    """Base exception for all subscription-related errors."""


class ValidationError(SubscriptionError):
    """Raised when a subscription cannot be created from the given input.

    ``fields`` maps each failing field name to its error messages.
    """

    def __init__(self, fields: dict[str, list[str]]) -> None:
        self.fields = fields
        details = "; ".join(
            f"{name} {', '.join(messages)}" for name, messages in sorted(fields.items())
        )
        super().__init__(f"Validation failed: {details}")


class NotFoundError(SubscriptionError):
    """Raised when no subscription matches a confirmation token."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__("No subscription matches the given confirmation token")


class DeliveryError(SubscriptionError):
    """Raised when a confirmation request could not be delivered."""

    def __init__(self, message: str, recipient: str = "") -> None:
        self.recipient = recipient
        super().__init__(message)


class StoreError(SubscriptionError):
    """Raised when a store operation fails."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        self.detail = detail
        msg = f"Store error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class UniquenessError(StoreError):
    """Raised by a store when a unique column already holds the value."""

    def __init__(self, operation: str, field: str) -> None:
        self.field = field
        super().__init__(operation, f"{field} has already been taken")
