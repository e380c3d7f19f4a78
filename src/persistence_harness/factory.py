"""
Persistence factory: owns the engine, the mapped schema and the session maker.

A factory is created once per test from a configuration map and must be
released with close() at teardown.
"""

import importlib
import inspect as pyinspect
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Table, create_engine, inspect
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Mapper, sessionmaker
from sqlalchemy.pool import StaticPool

from persistence_harness import settings
from persistence_harness.config import ConfigurationMap
from persistence_harness.context import PersistenceContext
from persistence_harness.exceptions import ConfigurationError, FactoryClosedError


logger = logging.getLogger(__name__)


def class_identifier(cls: type) -> str:
    """Fully-qualified name of a class, used as cache-region key."""
    return f"{cls.__module__}.{cls.__qualname__}"


def create_postgresql_engine(database_url: str, config_map: ConfigurationMap) -> Engine:
    """
    Create a PostgreSQL engine with connection pooling.

    Args:
        database_url: PostgreSQL connection string
        config_map: Configuration map with optional pool settings

    Returns:
        Configured SQLAlchemy engine for PostgreSQL
    """
    return create_engine(
        database_url,
        echo=bool(config_map.get(settings.DATABASE_ECHO, False)),
        pool_size=int(config_map.get(settings.DATABASE_POOL_SIZE, 5)),
        max_overflow=int(config_map.get(settings.DATABASE_MAX_OVERFLOW, 10)),
        pool_timeout=int(config_map.get(settings.DATABASE_POOL_TIMEOUT, 30)),
        pool_pre_ping=True,  # Verify connections before using
    )


def create_sqlite_engine(database_url: str, config_map: ConfigurationMap) -> Engine:
    """
    Create a SQLite engine.

    In-memory databases live on a single shared connection so that every
    session of a test sees the same schema.

    Args:
        database_url: SQLite connection string
        config_map: Configuration map

    Returns:
        Configured SQLAlchemy engine for SQLite
    """
    kwargs: Dict[str, Any] = {
        "echo": bool(config_map.get(settings.DATABASE_ECHO, False)),
        "connect_args": {"check_same_thread": False},
    }
    if make_url(database_url).database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def create_engine_from_config(config_map: ConfigurationMap) -> Engine:
    """Create the appropriate engine for the configured database URL."""
    database_url = str(config_map.get(settings.DATABASE_URL) or settings.DEFAULT_DATABASE_URL)

    if database_url.startswith("postgresql"):
        return create_postgresql_engine(database_url, config_map)
    elif database_url.startswith("sqlite"):
        return create_sqlite_engine(database_url, config_map)
    else:
        return create_engine(
            database_url, echo=bool(config_map.get(settings.DATABASE_ECHO, False))
        )


def _mapper_of(cls: Any) -> Optional[Mapper]:
    if not isinstance(cls, type):
        return None
    mapper = inspect(cls, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


def load_descriptor_classes(descriptors: Iterable[str]) -> List[type]:
    """
    Import legacy mapping modules and collect the classes they map.

    Args:
        descriptors: Dotted module paths

    Returns:
        Mapped classes defined in those modules, in definition order

    Raises:
        ConfigurationError: If a module cannot be imported
    """
    classes = []
    for descriptor in descriptors:
        try:
            module = importlib.import_module(descriptor)
        except ImportError as e:
            raise ConfigurationError(f"could not import mapping descriptor {descriptor}") from e

        for _, obj in pyinspect.getmembers(module, pyinspect.isclass):
            if obj.__module__ == module.__name__ and _mapper_of(obj) is not None:
                classes.append(obj)
    return classes


def collect_tables(classes: Iterable[type]) -> List[Table]:
    """
    Collect the tables of the given mapped classes, including the secondary
    tables of their many-to-many relationships.

    Raises:
        ConfigurationError: If a class is not mapped
    """
    tables: Dict[str, Table] = {}
    for cls in classes:
        mapper = _mapper_of(cls)
        if mapper is None:
            raise ConfigurationError(f"{cls!r} is not a mapped class")

        for table in mapper.tables:
            if isinstance(table, Table):
                tables.setdefault(table.fullname, table)
        for relationship in mapper.relationships:
            if isinstance(relationship.secondary, Table):
                tables.setdefault(relationship.secondary.fullname, relationship.secondary)
    return list(tables.values())


def _create_schema(engine: Engine, tables: List[Table]) -> None:
    for metadata in {id(t.metadata): t.metadata for t in tables}.values():
        owned = [t for t in tables if t.metadata is metadata]
        metadata.create_all(bind=engine, tables=owned)


def _drop_schema(engine: Engine, tables: List[Table]) -> None:
    for metadata in {id(t.metadata): t.metadata for t in tables}.values():
        owned = [t for t in tables if t.metadata is metadata]
        metadata.drop_all(bind=engine, tables=owned)


def _prefixed_entries(config_map: ConfigurationMap, prefix: str) -> Dict[str, str]:
    start = prefix + "."
    return {
        key[len(start):]: value
        for key, value in config_map.items()
        if isinstance(key, str) and key.startswith(start)
    }


class PersistenceFactory:
    """
    Long-lived source of persistence contexts for a single test.

    Owns the engine's connection pool, the mapped schema and the
    cache-region assignments. Not thread-safe.
    """

    def __init__(
        self,
        engine: Engine,
        mapped_classes: List[type],
        tables: List[Table],
        schema_action: str = settings.SCHEMA_CREATE_DROP,
        class_cache_regions: Optional[Dict[str, str]] = None,
        collection_cache_regions: Optional[Dict[str, str]] = None,
    ):
        self.engine = engine
        self.mapped_classes = list(mapped_classes)
        self.schema_action = schema_action
        self.class_cache_regions = dict(class_cache_regions or {})
        self.collection_cache_regions = dict(collection_cache_regions or {})
        self._tables = list(tables)
        self._sessionmaker = sessionmaker(
            bind=engine, autoflush=False, autobegin=False, expire_on_commit=False
        )
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed

    @property
    def tables(self) -> List[Table]:
        return list(self._tables)

    @property
    def cache_regions(self) -> Dict[str, str]:
        """All cache-region assignments, keyed by class identifier or role."""
        regions = dict(self.class_cache_regions)
        regions.update(self.collection_cache_regions)
        return regions

    def cache_region_for(self, cls: type) -> Optional[str]:
        return self.class_cache_regions.get(class_identifier(cls))

    def collection_cache_region_for(self, role: str) -> Optional[str]:
        return self.collection_cache_regions.get(role)

    def initialize_schema(self) -> None:
        """Apply the schema action when the factory is opened."""
        if self.schema_action == settings.SCHEMA_CREATE:
            _drop_schema(self.engine, self._tables)
            _create_schema(self.engine, self._tables)
        elif self.schema_action == settings.SCHEMA_CREATE_DROP:
            _create_schema(self.engine, self._tables)
        logger.debug(f"Schema action {self.schema_action} applied to {len(self._tables)} tables")

    def create_context(self, **options: Any) -> PersistenceContext:
        """
        Create a new persistence context.

        Args:
            **options: Overrides passed to the session maker
                (e.g. ``autobegin=True``, ``expire_on_commit=True``, ``info={...}``)

        Raises:
            FactoryClosedError: If the factory has been closed
        """
        if self._closed:
            raise FactoryClosedError("The persistence factory is closed")
        return PersistenceContext(self._sessionmaker(**options))

    def close(self) -> None:
        """Drop the schema on create-drop and release the connection pool."""
        if self._closed:
            return
        self._closed = True
        try:
            if self.schema_action == settings.SCHEMA_CREATE_DROP:
                _drop_schema(self.engine, self._tables)
        finally:
            self.engine.dispose()
        logger.debug("Persistence factory closed")


def create_factory(config_map: ConfigurationMap) -> PersistenceFactory:
    """
    Create a persistence factory from a configuration map.

    Args:
        config_map: Settings assembled by the harness

    Returns:
        An open PersistenceFactory with its schema initialized

    Raises:
        ConfigurationError: If the schema action is unknown, a class is not
            mapped or a mapping descriptor cannot be imported
    """
    schema_action = str(config_map.get(settings.SCHEMA_AUTO, settings.SCHEMA_NONE))
    if schema_action not in settings.SCHEMA_ACTIONS:
        raise ConfigurationError(f"Unknown schema action: {schema_action}")

    classes = list(config_map.get(settings.LOADED_CLASSES, []))
    for cls in load_descriptor_classes(config_map.get(settings.MAPPING_DESCRIPTORS, [])):
        if cls not in classes:
            classes.append(cls)
    tables = collect_tables(classes)

    engine = create_engine_from_config(config_map)
    factory = PersistenceFactory(
        engine,
        mapped_classes=classes,
        tables=tables,
        schema_action=schema_action,
        class_cache_regions=_prefixed_entries(config_map, settings.CLASS_CACHE_PREFIX),
        collection_cache_regions=_prefixed_entries(config_map, settings.COLLECTION_CACHE_PREFIX),
    )
    try:
        factory.initialize_schema()
    except Exception:
        engine.dispose()
        raise

    logger.info(
        f"Created persistence factory for {engine.url.get_backend_name()} "
        f"with {len(classes)} mapped classes"
    )
    return factory
