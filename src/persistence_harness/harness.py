"""
Lifecycle harness for database-backed integration tests.

The harness creates a persistence factory before a test, hands the test body a
persistence context, and releases everything afterwards. It also enforces
test hygiene: a test may not return with an active transaction, and a context
left open by the test is closed for it (with a warning).

The harness holds mutable per-test state (the factory and the current
context) and is meant to be driven from a single thread, one test at a time.
"""

import enum
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Optional

from returns.pipeline import is_successful
from returns.result import Failure, Result, Success

from persistence_harness import settings
from persistence_harness.config import ConfigurationMap, HarnessConfig, load_base_properties
from persistence_harness.context import PersistenceContext
from persistence_harness.dialects import resolve_dialect
from persistence_harness.exceptions import FactoryClosedError, LeakedTransactionError
from persistence_harness.factory import PersistenceFactory, class_identifier, create_factory
from persistence_harness.hooks import Dialect, HarnessHooks


logger = logging.getLogger(__name__)

TestBody = Callable[["TestLifecycleHarness"], Any]


class Outcome(enum.Enum):
    """Outcome of a test that did not fail."""

    PASSED = "passed"
    SKIPPED = "skipped"


class LifecycleState(enum.Enum):
    """Lifecycle state of a single test invocation."""

    NOT_STARTED = "not_started"
    SKIPPED = "skipped"
    SETTING_UP = "setting_up"
    RUNNING = "running"
    TEARING_DOWN = "tearing_down"
    FINISHED = "finished"


class TestLifecycleHarness:
    """
    Drives setup, body and teardown of one database-backed test.

    Example:
        hooks = HarnessHooks(annotated_classes=[Author, Book])
        harness = TestLifecycleHarness(hooks)

        def body(harness):
            context = harness.get_or_create_context()
            context.transaction.begin()
            context.persist(Author(name="Ada"))
            context.transaction.commit()
            context.close()

        harness.run_bare(body)
    """

    __test__ = False

    def __init__(
        self,
        hooks: HarnessHooks,
        config: Optional[HarnessConfig] = None,
        factory_builder: Callable[[ConfigurationMap], PersistenceFactory] = create_factory,
        dialect_resolver: Callable[[Mapping], Dialect] = resolve_dialect,
    ):
        """
        Initialize the harness.

        Args:
            hooks: Extension points supplied by the concrete test
            config: Environment configuration (loaded from the environment if None)
            factory_builder: Function creating a factory from a configuration map
            dialect_resolver: Function resolving the dialect from base properties
        """
        self.hooks = hooks
        self.config = config if config is not None else HarnessConfig.from_env()
        self._factory_builder = factory_builder
        self._dialect_resolver = dialect_resolver

        self.factory: Optional[PersistenceFactory] = None
        self.context: Optional[PersistenceContext] = None
        self.dialect: Optional[Dialect] = None
        self.state = LifecycleState.NOT_STARTED

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def build_config(self) -> ConfigurationMap:
        """
        Assemble the configuration map for this test.

        Returns:
            Base properties with schema create-drop forced, the mapped classes,
            one entry per cached class and cached collection, and the legacy
            mapping descriptors when there are any

        Raises:
            ConfigurationError: If the properties file exists but cannot be loaded
        """
        config_map = load_base_properties(self.config)
        config_map[settings.SCHEMA_AUTO] = settings.SCHEMA_CREATE_DROP
        config_map[settings.LOADED_CLASSES] = self.hooks.get_annotated_classes()

        for cls, region in self.hooks.get_cached_classes().items():
            identifier = cls if isinstance(cls, str) else class_identifier(cls)
            config_map[f"{settings.CLASS_CACHE_PREFIX}.{identifier}"] = region

        for role, region in self.hooks.get_cached_collections().items():
            config_map[f"{settings.COLLECTION_CACHE_PREFIX}.{role}"] = region

        descriptors = self.hooks.get_legacy_descriptors()
        if descriptors:
            config_map[settings.MAPPING_DESCRIPTORS] = descriptors

        return config_map

    def applies(self) -> bool:
        """Check whether the test applies to the configured dialect."""
        self.dialect = self._dialect_resolver(load_base_properties(self.config))
        return self.hooks.applies_to(self.dialect)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_up(self) -> None:
        self.state = LifecycleState.SETTING_UP
        self.factory = self._factory_builder(self.build_config())

    def tear_down(self) -> None:
        self.state = LifecycleState.TEARING_DOWN
        factory, self.factory = self.factory, None
        try:
            try:
                if self.context is not None and self.context.is_open:
                    self.context.close()
            finally:
                if factory is not None:
                    factory.close()
        finally:
            self.context = None
            self.state = LifecycleState.FINISHED

    def run_test(self, body: TestBody) -> None:
        """Run the test body inside the transaction-safety guard."""
        with self.transaction_guard():
            body(self)

    def run_bare(self, body: TestBody) -> Outcome:
        """
        Run one test from skip check to teardown.

        Teardown runs exactly once whenever setup succeeded. A teardown failure
        is raised only when the body did not fail; otherwise it is logged and
        the body's failure is raised.

        Args:
            body: Callable receiving the harness

        Returns:
            Outcome.SKIPPED if the test does not apply to the dialect,
            Outcome.PASSED otherwise

        Raises:
            BaseException: The failure of setup, of the body or of teardown
        """
        if not self.applies():
            self.state = LifecycleState.SKIPPED
            logger.info(f"Skipping test: not applicable to dialect {self.dialect}")
            return Outcome.SKIPPED

        self.set_up()

        failure: Optional[BaseException] = None
        try:
            self.run_test(body)
        except BaseException as running:
            failure = running

        try:
            self.tear_down()
        except BaseException as tearing_down:
            if failure is None:
                failure = tearing_down
            else:
                logger.warning("Teardown failed after test failure", exc_info=tearing_down)

        if failure is not None:
            raise failure
        return Outcome.PASSED

    @contextmanager
    def transaction_guard(self) -> Iterator[PersistenceContext]:
        """
        Guard a test body against leaked transactions and contexts.

        Yields the current context. The body may replace it through
        create_context(); the checks below always look at the current one.
        """
        context = self.get_or_create_context()
        self.state = LifecycleState.RUNNING
        failing = True
        try:
            try:
                yield context
            except BaseException:
                self._rollback_after_failure()
                raise
            verdict = self._check_no_active_transaction()
            if not is_successful(verdict):
                raise verdict.failure()
            failing = False
        finally:
            self._close_leaked_context(failure_pending=failing)

    # ------------------------------------------------------------------
    # Context accessors
    # ------------------------------------------------------------------

    def get_or_create_context(self) -> PersistenceContext:
        """Return the current context, creating a default one if it is closed."""
        if self.context is None or not self.context.is_open:
            self.context = self._require_factory().create_context()
        return self.context

    def create_context(self, **options: Any) -> PersistenceContext:
        """
        Close the current context and create a new one with the given options.

        Args:
            **options: Session maker overrides for the new context
        """
        if self.context is not None and self.context.is_open:
            self.context.close()
        self.context = self._require_factory().create_context(**options)
        return self.context

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_factory(self) -> PersistenceFactory:
        if self.factory is None:
            raise FactoryClosedError("No persistence factory, call set_up() first")
        return self.factory

    def _check_no_active_transaction(self) -> Result[None, LeakedTransactionError]:
        context = self.context
        if context is not None and context.transaction.is_active:
            context.transaction.rollback()
            return Failure(LeakedTransactionError())
        return Success(None)

    def _rollback_after_failure(self) -> None:
        context = self.context
        if context is None or not context.transaction.is_active:
            return
        try:
            context.transaction.rollback()
        except Exception:
            logger.warning("Rollback after test failure failed", exc_info=True)

    def _close_leaked_context(self, failure_pending: bool = False) -> None:
        # Still open when the test used a custom context or forgot to close it.
        if self.context is None or not self.context.is_open:
            return
        try:
            self.context.close()
        except Exception:
            if not failure_pending:
                raise
            logger.warning("Closing the persistence context failed", exc_info=True)
            return
        logger.warning("The persistence context is not closed. Closing it.")
