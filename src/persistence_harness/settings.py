"""
Setting keys understood by the persistence harness and its factory.

Keys are plain strings so they can be written in the YAML properties file
as well as produced by the harness when it assembles a configuration map.
"""

# Database
DATABASE_URL = "database.url"
DATABASE_DIALECT = "database.dialect"
DATABASE_ECHO = "database.echo"
DATABASE_POOL_SIZE = "database.pool_size"
DATABASE_MAX_OVERFLOW = "database.max_overflow"
DATABASE_POOL_TIMEOUT = "database.pool_timeout"

DEFAULT_DATABASE_URL = "sqlite://"

# Schema management
SCHEMA_AUTO = "schema.auto"
SCHEMA_CREATE_DROP = "create-drop"
SCHEMA_CREATE = "create"
SCHEMA_NONE = "none"
SCHEMA_ACTIONS = (SCHEMA_CREATE_DROP, SCHEMA_CREATE, SCHEMA_NONE)

# Mappings
LOADED_CLASSES = "persistence.loaded_classes"
MAPPING_DESCRIPTORS = "persistence.mapping_descriptors"

# Second-level cache regions, suffixed with ".<class name>" or ".<role>"
CLASS_CACHE_PREFIX = "persistence.cache.class"
COLLECTION_CACHE_PREFIX = "persistence.cache.collection"
