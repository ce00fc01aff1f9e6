"""
optin_manager — Hello World

A subscription exists only once its confirmation request was sent,
and counts only once the link in that request was followed.
"""

import asyncio
from datetime import timedelta

from optin_manager import ConfirmationService, DeliveryError, ValidationError
from optin_manager.notifiers import Notifier, OutboxNotifier
from optin_manager.stores import InMemorySubscriptionStore


class BrokenNotifier(Notifier):
    async def send_confirmation_request(self, subscription) -> None:
        raise DeliveryError("Bad news, delivery failed!", subscription.email)


async def main():
    # ──────────────────────────────────────
    #  1. Wire the service
    # ──────────────────────────────────────
    store = InMemorySubscriptionStore()
    notifier = OutboxNotifier(confirm_url_template="https://example.tld/subscriptions/{token}/confirm")
    service = ConfirmationService(store, notifier)

    # ──────────────────────────────────────
    #  2. Subscribe and confirm
    # ──────────────────────────────────────
    print("=== Subscribe ===\n")

    subscription = await service.create_and_request_confirmation("alice@acme.com", "2015-01-31")
    print(f"  Created:  {subscription.email}  confirmed={subscription.confirmed}")
    print(f"  Mailed:   {notifier.outbox[-1].confirmation_url}")

    confirmed = await service.confirm(service.identifier_of(subscription))
    print(f"  Confirmed: {confirmed.confirmed}")

    # Following the link twice is fine
    await service.confirm(service.identifier_of(subscription))

    # ──────────────────────────────────────
    #  3. Rejected input
    # ──────────────────────────────────────
    print("\n=== Duplicate email ===\n")

    try:
        await service.create_and_request_confirmation("alice@acme.com")
    except ValidationError as e:
        print(f"  [REJECTED] {e.fields}")

    # ──────────────────────────────────────
    #  4. Failed delivery leaves nothing behind
    # ──────────────────────────────────────
    print("\n=== Mail transport down ===\n")

    broken = ConfirmationService(store, BrokenNotifier())
    try:
        await broken.create_and_request_confirmation("bob@acme.com")
    except DeliveryError as e:
        print(f"  [FAILED] {e}")
    print(f"  bob@acme.com stored: {await store.exists(email='bob@acme.com')}")

    # ──────────────────────────────────────
    #  5. Overdue confirmations
    # ──────────────────────────────────────
    print("\n=== Overdue ===\n")

    await service.create_and_request_confirmation("carol@acme.com")
    later = subscription.created_at + timedelta(days=4)
    overdue = await service.confirmation_overdue(later)
    print(f"  Overdue in four days: {[s.email for s in overdue]}")


if __name__ == "__main__":
    asyncio.run(main())
