"""
Persistence harness package.

This package provides a lifecycle harness for database-backed integration
tests on SQLAlchemy: a persistence factory per test, a reusable persistence
context for the test body, and checks that tests do not leak transactions or
contexts.
"""

from persistence_harness.config import HarnessConfig
from persistence_harness.context import PersistenceContext
from persistence_harness.exceptions import (
    ConfigurationError,
    HarnessError,
    LeakedTransactionError,
)
from persistence_harness.factory import PersistenceFactory, create_factory
from persistence_harness.harness import LifecycleState, Outcome, TestLifecycleHarness
from persistence_harness.hooks import HarnessHooks


__all__ = [
    "ConfigurationError",
    "HarnessConfig",
    "HarnessError",
    "HarnessHooks",
    "LeakedTransactionError",
    "LifecycleState",
    "Outcome",
    "PersistenceContext",
    "PersistenceFactory",
    "TestLifecycleHarness",
    "create_factory",
]

__version__ = "1.0.0"
