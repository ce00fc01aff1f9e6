"""Storage backends for subscription persistence."""

from optin_manager.stores.base import SubscriptionStore
from optin_manager.stores.memory import InMemorySubscriptionStore
from optin_manager.stores.sqlite import SQLiteSubscriptionStore

__all__ = ["InMemorySubscriptionStore", "SQLiteSubscriptionStore", "SubscriptionStore"]
