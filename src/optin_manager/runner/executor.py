# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Executor for running a single subscription action.

Orchestrates the full execution flow:
1. Create store and notifier from configuration
2. Build the ConfirmationService
3. Dispatch the requested action
4. Return structured result
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from optin_manager.exceptions import ValidationError
from optin_manager.notifiers import HttpNotifier, Notifier, OutboxNotifier
from optin_manager.service import ConfirmationService
from optin_manager.stores import (
    InMemorySubscriptionStore,
    SQLiteSubscriptionStore,
    SubscriptionStore,
)
from optin_manager.subscription import Subscription

from .schema import (
    NotifierConfigSchema,
    RunnerInput,
    RunnerOutput,
    StoreConfigSchema,
    SubscriptionSchema,
)


class ExecutionError(Exception):
    """Raised when the runner input cannot be executed."""

    pass


class Executor:
    """Executes one action against a configured ConfirmationService.

    Pass a store or notifier to the constructor to override creation
    from configuration.

    Example:
        executor = Executor()
        output = await executor.execute(input_data)

        # For testing with an in-memory store:
        executor = Executor(store=InMemorySubscriptionStore())
    """

    def __init__(
        self,
        store: SubscriptionStore | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._injected_store = store
        self._injected_notifier = notifier

    async def execute(self, input_data: RunnerInput) -> RunnerOutput:
        """Execute the requested action.

        This method catches all exceptions and returns them as
        RunnerOutput errors, ensuring valid JSON is always returned.
        """
        try:
            return await self._execute_internal(input_data)
        except ValidationError as e:
            return RunnerOutput(
                success=False,
                error=str(e),
                error_type="ValidationError",
                fields=e.fields,
            )
        except Exception as e:
            return RunnerOutput(
                success=False,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _execute_internal(self, input_data: RunnerInput) -> RunnerOutput:
        """Internal execution logic.

        Separated from execute() to allow exception propagation
        for testing while execute() catches all errors.
        """
        store = self._injected_store or self._create_store(input_data.store)
        owns_store = self._injected_store is None

        try:
            service = ConfirmationService(
                store,
                self._injected_notifier or self._create_notifier(input_data.notifier),
                grace_period=timedelta(seconds=input_data.grace_period_seconds),
            )
            result = await self._dispatch(service, input_data)
            return RunnerOutput(success=True, result=result)
        finally:
            if owns_store:
                await store.close()

    async def _dispatch(self, service: ConfirmationService, input_data: RunnerInput) -> Any:
        if input_data.action == "create":
            created = await service.create_and_request_confirmation(
                input_data.email, input_data.start_on
            )
            return self._dump(created)

        if input_data.action == "confirm":
            if not input_data.token:
                raise ExecutionError("confirm requires 'token'")
            return self._dump(await service.confirm(input_data.token))

        overdue = await service.confirmation_overdue(input_data.now)
        return [self._dump(s) for s in overdue]

    @staticmethod
    def _dump(subscription: Subscription) -> dict[str, Any]:
        return SubscriptionSchema.from_subscription(subscription).model_dump(mode="json")

    def _create_store(self, config: StoreConfigSchema) -> SubscriptionStore:
        if config.type == "sqlite":
            if not config.path:
                raise ExecutionError("SQLite store requires 'path' configuration")
            return SQLiteSubscriptionStore(config.path)
        return InMemorySubscriptionStore()

    def _create_notifier(self, config: NotifierConfigSchema) -> Notifier:
        if config.type == "http":
            return HttpNotifier(
                api_url=config.api_url,
                api_token=config.api_token,
                confirm_url_template=config.confirm_url_template,
                sender=config.sender,
                timeout=config.timeout,
            )
        return OutboxNotifier(
            confirm_url_template=config.confirm_url_template,
            sender=config.sender,
        )
