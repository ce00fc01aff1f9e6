"""Store protocol — constraint-enforcing persistence for subscriptions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from optin_manager.exceptions import StoreError
from optin_manager.subscription import Subscription

Predicate = Callable[[Subscription], bool]


class SubscriptionStore(ABC):
    """Abstract base for all storage backends.

    Every backend must enforce the same constraints:

    * ``email`` and ``confirmation_token`` are unique — a conflicting
      ``insert`` raises :class:`~optin_manager.exceptions.UniquenessError`.
    * ``email``, ``confirmation_token`` and ``start_on`` are required.
    * ``confirmed`` defaults to ``False`` and is never reverted by ``update``.

    Records handed out are copies; mutating them has no effect until they
    are passed back to ``update``.
    """

    @abstractmethod
    async def insert(self, subscription: Subscription) -> Subscription:
        """Persist a new record and return it with ``id`` and ``created_at`` set."""
        ...

    @abstractmethod
    async def find_by_token(self, token: str) -> Subscription | None:
        """Return the record holding *token*, or ``None``."""
        ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Subscription | None:
        """Return the record for *email*, or ``None``."""
        ...

    @abstractmethod
    async def update(self, subscription: Subscription) -> Subscription:
        """Write the mutable fields of an existing record and return it."""
        ...

    @abstractmethod
    async def delete(self, subscription_id: int) -> None:
        """Delete a record.  No-op if the id does not exist."""
        ...

    @abstractmethod
    async def find_all_where(self, predicate: Predicate) -> list[Subscription]:
        """Return every record for which *predicate* is true."""
        ...

    @abstractmethod
    async def exists(self, *, email: str | None = None, token: str | None = None) -> bool:
        """Return ``True`` if a record matches every given filter.

        With no filters, return ``True`` if any record exists at all.
        """
        ...

    async def close(self) -> None:
        """Release any held resources.  The default does nothing."""
        return None

    # ── shared checks ────────────────────────────────────────

    @staticmethod
    def _check_not_null(subscription: Subscription) -> None:
        for column in ("email", "confirmation_token", "start_on"):
            if getattr(subscription, column) is None:
                raise StoreError("insert", f"{column} may not be null")
