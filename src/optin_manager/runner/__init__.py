# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Runner submodule for executing subscription actions from JSON.

Usage:
    python -m optin_manager.runner < input.json

Exports:
    Executor: Builds a ConfirmationService and runs one action
    RunnerInput: Input schema
    RunnerOutput: Output schema
"""

from .executor import ExecutionError, Executor
from .schema import (
    NotifierConfigSchema,
    RunnerInput,
    RunnerOutput,
    StoreConfigSchema,
    SubscriptionSchema,
)

__all__ = [
    "ExecutionError",
    "Executor",
    "NotifierConfigSchema",
    "RunnerInput",
    "RunnerOutput",
    "StoreConfigSchema",
    "SubscriptionSchema",
]
