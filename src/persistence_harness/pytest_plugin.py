"""
pytest integration for the persistence harness.

Mark a test (or a class or module through ``pytestmark``) with the mapped
classes it needs and request the ``persistence_context`` fixture:

    @pytest.mark.persistence(annotated_classes=[Author, Book])
    def test_saves_author(persistence_context):
        persistence_context.transaction.begin()
        persistence_context.persist(Author(name="Ada"))
        persistence_context.transaction.commit()

The test body runs inside the harness transaction guard: returning with an
active transaction fails the test, and a context left open is closed with a
warning. Alternatively override the ``persistence_hooks`` fixture.
"""

import pytest

from persistence_harness.hooks import HarnessHooks
from persistence_harness.harness import TestLifecycleHarness


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "persistence(annotated_classes, legacy_descriptors=(), cached_classes={}, "
        "cached_collections={}, dialect_applicable=None): "
        "configure the persistence harness for a database-backed test",
    )


@pytest.fixture
def persistence_hooks(request) -> HarnessHooks:
    """Extension points taken from the closest ``persistence`` marker."""
    marker = request.node.get_closest_marker("persistence")
    if marker is None:
        pytest.fail(
            "persistence_harness requires a @pytest.mark.persistence marker "
            "or an overridden persistence_hooks fixture",
            pytrace=False,
        )
    kwargs = dict(marker.kwargs)
    if marker.args and "annotated_classes" not in kwargs:
        kwargs["annotated_classes"] = marker.args[0]
    if kwargs.get("dialect_applicable") is None:
        kwargs.pop("dialect_applicable", None)
    return HarnessHooks.from_marker_kwargs(**kwargs)


@pytest.fixture
def persistence_harness(persistence_hooks):
    """A set-up harness; skipped when the test does not apply to the dialect."""
    harness = TestLifecycleHarness(persistence_hooks)
    if not harness.applies():
        pytest.skip(f"not applicable to dialect {harness.dialect}")

    harness.set_up()
    yield harness
    harness.tear_down()


@pytest.fixture
def persistence_context(persistence_harness):
    """The current persistence context of the harness."""
    return persistence_harness.get_or_create_context()


@pytest.hookimpl(wrapper=True)
def pytest_pyfunc_call(pyfuncitem):
    harness = pyfuncitem.funcargs.get("persistence_harness")
    if not isinstance(harness, TestLifecycleHarness):
        return (yield)

    with harness.transaction_guard():
        return (yield)
