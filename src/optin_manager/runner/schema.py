# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Data transfer objects for runner input/output.

These Pydantic models define the JSON contract of
``python -m optin_manager.runner``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from optin_manager.notifiers.base import DEFAULT_CONFIRM_URL_TEMPLATE, DEFAULT_SENDER
from optin_manager.subscription import Subscription


class StoreConfigSchema(BaseModel):
    """Store configuration.

    Attributes:
        type: Store type ("memory" or "sqlite")
        path: Path to SQLite database file (for sqlite type)
    """

    type: Literal["memory", "sqlite"] = "memory"
    path: str = ""


class NotifierConfigSchema(BaseModel):
    """Notifier configuration.

    Attributes:
        type: Notifier type ("outbox" or "http")
        api_url: Mail API base URL (for http type, falls back to MAILER_URL)
        api_token: Mail API token (for http type, falls back to MAILER_API_TOKEN)
        confirm_url_template: Confirmation link template containing ``{token}``
        sender: From-address of confirmation messages
        timeout: HTTP timeout in seconds
    """

    type: Literal["outbox", "http"] = "outbox"
    api_url: str | None = None
    api_token: str | None = None
    confirm_url_template: str = DEFAULT_CONFIRM_URL_TEMPLATE
    sender: str = DEFAULT_SENDER
    timeout: float = 30.0


class RunnerInput(BaseModel):
    """Complete input read from stdin.

    Attributes:
        action: "create", "confirm" or "overdue"
        email: Address to subscribe (create)
        start_on: Optional start date (create)
        token: Confirmation token (confirm)
        now: Reference time for the overdue query (overdue)
        grace_period_seconds: Overdue threshold, three days by default
        store: Store configuration
        notifier: Notifier configuration
    """

    action: Literal["create", "confirm", "overdue"]
    email: str | None = None
    start_on: str | None = None
    token: str | None = None
    now: datetime | None = None
    grace_period_seconds: float = 3 * 24 * 60 * 60
    store: StoreConfigSchema = Field(default_factory=StoreConfigSchema)
    notifier: NotifierConfigSchema = Field(default_factory=NotifierConfigSchema)


class SubscriptionSchema(BaseModel):
    """Public view of a subscription.

    ``id`` is the confirmation token, matching what links are built from;
    the store's internal id is not exposed.
    """

    id: str
    email: str
    confirmed: bool
    start_on: date | None
    created_at: datetime | None

    @classmethod
    def from_subscription(cls, subscription: Subscription) -> SubscriptionSchema:
        return cls(
            id=subscription.to_param(),
            email=subscription.email,
            confirmed=subscription.confirmed,
            start_on=subscription.start_on,
            created_at=subscription.created_at,
        )


class RunnerOutput(BaseModel):
    """Complete output written to stdout.

    The runner always outputs valid JSON matching this schema,
    even on errors.

    Attributes:
        success: Whether the action completed successfully
        result: Subscription or list of subscriptions (on success)
        error: Error message (on failure)
        error_type: Error class name (on failure)
        fields: Failing fields (on validation failure)
    """

    success: bool
    result: Any = None
    error: str = ""
    error_type: str = ""
    fields: dict[str, list[str]] = Field(default_factory=dict)
