"""InMemorySubscriptionStore — dict-backed storage for development and testing."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from itertools import count

from optin_manager._internal.clock import Clock, SystemClock
from optin_manager.exceptions import StoreError, UniquenessError
from optin_manager.stores.base import Predicate, SubscriptionStore
from optin_manager.subscription import Subscription


class InMemorySubscriptionStore(SubscriptionStore):
    """In-memory store keyed by id.  Data is lost on process exit.

    Parameters:
        clock: Supplies ``created_at`` for inserted records.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._rows: dict[int, Subscription] = {}
        self._ids = count(1)
        self._lock = asyncio.Lock()

    async def insert(self, subscription: Subscription) -> Subscription:
        self._check_not_null(subscription)
        async with self._lock:
            for row in self._rows.values():
                if row.email == subscription.email:
                    raise UniquenessError("insert", "email")
                if row.confirmation_token == subscription.confirmation_token:
                    raise UniquenessError("insert", "confirmation_token")
            row = replace(
                subscription,
                id=next(self._ids),
                created_at=subscription.created_at or self._clock.now(),
            )
            self._rows[row.id] = row
        return replace(row)

    async def find_by_token(self, token: str) -> Subscription | None:
        for row in self._rows.values():
            if row.confirmation_token == token:
                return replace(row)
        return None

    async def find_by_email(self, email: str) -> Subscription | None:
        for row in self._rows.values():
            if row.email == email:
                return replace(row)
        return None

    async def update(self, subscription: Subscription) -> Subscription:
        async with self._lock:
            current = self._rows.get(subscription.id) if subscription.id is not None else None
            if current is None:
                raise StoreError("update", f"no subscription with id {subscription.id}")
            for row in self._rows.values():
                if row.id != current.id and row.email == subscription.email:
                    raise UniquenessError("update", "email")
            current.email = subscription.email
            current.start_on = subscription.start_on or current.start_on
            current.confirmed = current.confirmed or subscription.confirmed
        return replace(current)

    async def delete(self, subscription_id: int) -> None:
        self._rows.pop(subscription_id, None)

    async def find_all_where(self, predicate: Predicate) -> list[Subscription]:
        return [replace(row) for row in self._rows.values() if predicate(row)]

    async def exists(self, *, email: str | None = None, token: str | None = None) -> bool:
        for row in self._rows.values():
            if email is not None and row.email != email:
                continue
            if token is not None and row.confirmation_token != token:
                continue
            return True
        return False
