"""
Dialect resolution and applicability predicates.
"""

from typing import Mapping

from sqlalchemy.engine import make_url

from persistence_harness import settings
from persistence_harness.hooks import Dialect, DialectPredicate


def resolve_dialect(properties: Mapping) -> Dialect:
    """
    Resolve the dialect the tests will run against.

    An explicit ``database.dialect`` setting wins; otherwise the backend name
    of ``database.url`` is used (``postgresql+psycopg2://`` gives ``postgresql``).

    Args:
        properties: Base properties of the harness

    Returns:
        Lower-case dialect name
    """
    explicit = properties.get(settings.DATABASE_DIALECT)
    if explicit:
        return str(explicit).lower()

    url = properties.get(settings.DATABASE_URL) or settings.DEFAULT_DATABASE_URL
    return make_url(str(url)).get_backend_name()


def dialect_in(*dialects: Dialect) -> DialectPredicate:
    """Predicate limiting a test to the given dialects."""
    wanted = {d.lower() for d in dialects}

    def predicate(dialect: Dialect) -> bool:
        return dialect.lower() in wanted

    return predicate


def dialect_not_in(*dialects: Dialect) -> DialectPredicate:
    """Predicate skipping a test on the given dialects."""
    skipped = {d.lower() for d in dialects}

    def predicate(dialect: Dialect) -> bool:
        return dialect.lower() not in skipped

    return predicate
