"""
Shared test fixtures for the persistence harness tests.
"""

import pytest
import yaml

from persistence_harness import settings
from persistence_harness.config import HarnessConfig
from persistence_harness.factory import create_factory
from persistence_harness.harness import TestLifecycleHarness
from persistence_harness.hooks import HarnessHooks

from sample_models import Author, Book, Tag


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Point the harness at a properties file that does not exist yet, so tests
    never pick up a persistence.yaml or database URL from the developer's machine.
    """
    monkeypatch.setenv("PERSISTENCE_HARNESS_PROPERTIES", str(tmp_path / "persistence.yaml"))
    monkeypatch.delenv("PERSISTENCE_HARNESS_DATABASE_URL", raising=False)


@pytest.fixture
def properties_path(tmp_path):
    return tmp_path / "persistence.yaml"


@pytest.fixture
def write_properties(properties_path):
    """Write a mapping to the properties file the harness reads."""

    def _write(data):
        properties_path.write_text(yaml.safe_dump(data))
        return properties_path

    return _write


@pytest.fixture
def hooks():
    return HarnessHooks(annotated_classes=[Author, Book, Tag])


@pytest.fixture
def harness(hooks):
    return TestLifecycleHarness(hooks, config=HarnessConfig.from_env())


@pytest.fixture
def factory():
    """An open in-memory factory with the sample schema."""
    factory = create_factory(
        {
            settings.SCHEMA_AUTO: settings.SCHEMA_CREATE_DROP,
            settings.LOADED_CLASSES: [Author, Book, Tag],
        }
    )
    yield factory
    factory.close()
