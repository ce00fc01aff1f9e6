"""ConfirmationService — the double-opt-in workflow."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from optin_manager._internal.clock import Clock, SystemClock
from optin_manager._internal.tokens import SecureTokenGenerator, TokenGenerator
from optin_manager.exceptions import (
    NotFoundError,
    StoreError,
    UniquenessError,
    ValidationError,
)
from optin_manager.subscription import (
    EMAIL_MAX_LENGTH,
    TOKEN_MAX_LENGTH,
    Subscription,
    identifier_of,
)

if TYPE_CHECKING:
    from optin_manager.notifiers.base import Notifier
    from optin_manager.stores.base import SubscriptionStore

logger = logging.getLogger(__name__)

CONFIRMATION_GRACE_PERIOD = timedelta(days=3)

_BLANK = "can't be blank"
_TAKEN = "has already been taken"


def _too_long(limit: int) -> str:
    return f"is too long (maximum is {limit} characters)"


def _coerce_date(value: date | str | None) -> date | None:
    """Accept a date, a datetime or an ISO ``YYYY-MM-DD`` string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


class ConfirmationService:
    """Creates subscriptions, requests their confirmation and confirms them.

    Creation and notification are made to behave atomically: a
    subscription is kept if and only if its confirmation request was sent.
    Since the store and the mail transport cannot share a transaction, a
    failed send is compensated by deleting the record just inserted.

    Parameters:
        store:           Persistence backend; the arbiter of uniqueness.
        notifier:        Transport for confirmation requests.
        clock:           Injectable clock for testing.
        token_generator: Source of confirmation tokens.
        grace_period:    Age after which an unconfirmed subscription is
                         overdue.  Defaults to three days.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        notifier: Notifier,
        *,
        clock: Clock | None = None,
        token_generator: TokenGenerator | None = None,
        grace_period: timedelta = CONFIRMATION_GRACE_PERIOD,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock or SystemClock()
        self._tokens = token_generator or SecureTokenGenerator()
        self.grace_period = grace_period

    # ── creation ─────────────────────────────────────────────

    async def create_and_request_confirmation(
        self,
        email: str | None,
        start_on: date | str | None = None,
    ) -> Subscription:
        """Create an unconfirmed subscription and send its confirmation request.

        Raises:
            ValidationError: Input is missing, malformed or already taken.
                Nothing is persisted and nothing is sent.
            StoreError: The store failed for another reason.
            Exception: Whatever the notifier raised, unchanged, after the
                new record has been removed again.
        """
        errors: dict[str, list[str]] = {}

        try:
            start = _coerce_date(start_on)
        except (TypeError, ValueError):
            errors.setdefault("start_on", []).append("is not a valid date")
            start = None
        else:
            if start is None:
                start = self._clock.today()

        candidate = Subscription(
            email=(email or "").strip(),
            confirmation_token=self._tokens.generate(),
            confirmed=False,
            start_on=start,
        )
        await self._validate(candidate, errors)
        if errors:
            raise ValidationError(errors)

        try:
            subscription = await self._store.insert(candidate)
        except UniquenessError as exc:
            raise ValidationError({exc.field: [_TAKEN]}) from exc

        try:
            await self._notifier.send_confirmation_request(subscription)
        except BaseException:
            # Includes cancellation: an unsent subscription must not survive.
            logger.warning(
                "Confirmation request for subscription %s failed; removing it",
                subscription.id,
            )
            if subscription.id is None:
                raise StoreError("delete", "inserted subscription has no id")
            await self._store.delete(subscription.id)
            raise

        logger.info("Subscription %s created for %s", subscription.id, subscription.email)
        return subscription

    async def _validate(self, candidate: Subscription, errors: dict[str, list[str]]) -> None:
        if not candidate.email:
            errors.setdefault("email", []).append(_BLANK)
        elif len(candidate.email) > EMAIL_MAX_LENGTH:
            errors.setdefault("email", []).append(_too_long(EMAIL_MAX_LENGTH))
        elif await self._store.exists(email=candidate.email):
            errors.setdefault("email", []).append(_TAKEN)

        token = candidate.confirmation_token
        if not token:
            errors.setdefault("confirmation_token", []).append(_BLANK)
        elif len(token) > TOKEN_MAX_LENGTH:
            errors.setdefault("confirmation_token", []).append(_too_long(TOKEN_MAX_LENGTH))
        elif await self._store.exists(token=token):
            errors.setdefault("confirmation_token", []).append(_TAKEN)

        if candidate.start_on is None and "start_on" not in errors:
            errors["start_on"] = [_BLANK]

    # ── confirmation ─────────────────────────────────────────

    async def confirm(self, token: str) -> Subscription:
        """Mark the subscription holding *token* as confirmed.

        Confirming an already confirmed subscription returns it unchanged.

        Raises:
            NotFoundError: No subscription holds *token*.
        """
        subscription = await self._store.find_by_token(token)
        if subscription is None:
            raise NotFoundError(token)

        if subscription.confirmed:
            logger.debug("Subscription %s already confirmed", subscription.id)
            return subscription

        confirmed = await self._store.update(replace(subscription, confirmed=True))
        logger.info("Subscription %s confirmed", confirmed.id)
        return confirmed

    # ── queries ──────────────────────────────────────────────

    async def confirmation_overdue(self, now: datetime | None = None) -> list[Subscription]:
        """Return unconfirmed subscriptions older than the grace period.

        A subscription exactly ``grace_period`` old is not yet overdue.  A
        naive *now* is taken to be UTC, the zone stores stamp ``created_at`` in.
        """
        now = now or self._clock.now()
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        cutoff = now - self.grace_period

        def is_overdue(subscription: Subscription) -> bool:
            if subscription.confirmed or subscription.created_at is None:
                return False
            return subscription.created_at < cutoff

        overdue = await self._store.find_all_where(is_overdue)
        logger.debug("%d subscription(s) overdue for confirmation", len(overdue))
        return overdue

    @staticmethod
    def identifier_of(subscription: Subscription) -> str:
        """Return the public identifier of *subscription* (its token)."""
        return identifier_of(subscription)
