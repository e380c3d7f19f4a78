"""
Configuration management for the persistence harness.

This module provides a configuration dataclass that loads harness settings
from environment variables, and the loader for the YAML properties file that
supplies the base configuration of every test.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from persistence_harness import settings
from persistence_harness.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

ConfigurationMap = Dict[str, Any]

DEFAULT_PROPERTIES_PATH = Path("persistence.yaml")
PROPERTIES_SECTION = "persistence"


@dataclass
class HarnessConfig:
    """
    Environment-level configuration for the persistence harness.

    Attributes
    ----------
    properties_path : Path
        Location of the YAML properties file holding base settings
    database_url : Optional[str]
        Database URL overriding the one in the properties file
    log_level : str
        Logging level used by the command-line interface
    """

    properties_path: Path = DEFAULT_PROPERTIES_PATH
    database_url: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "HarnessConfig":
        """
        Load configuration from environment variables.

        Returns
        -------
        HarnessConfig
            Configuration loaded from environment

        Examples
        --------
        >>> config = HarnessConfig.from_env()
        >>> config.properties_path
        PosixPath('persistence.yaml')
        """
        properties_path = Path(
            os.getenv("PERSISTENCE_HARNESS_PROPERTIES", str(DEFAULT_PROPERTIES_PATH))
        )

        database_url = os.getenv("PERSISTENCE_HARNESS_DATABASE_URL") or None
        if database_url is not None:
            database_url = normalize_database_url(database_url)

        log_level = os.getenv("LOG_LEVEL", "INFO")

        return cls(
            properties_path=properties_path,
            database_url=database_url,
            log_level=log_level,
        )


def normalize_database_url(database_url: str) -> str:
    """Rewrite the legacy postgres:// scheme for SQLAlchemy compatibility."""
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def load_properties(path: Path) -> ConfigurationMap:
    """
    Load base properties from a YAML file.

    A missing file is not an error and yields an empty mapping. When the file
    holds a top-level ``persistence`` section only that section is used.

    Args:
        path: Path to the properties file

    Returns:
        Mapping of setting names to values

    Raises:
        ConfigurationError: If the file exists but cannot be read or parsed
    """
    if not path.exists():
        logger.debug(f"No properties file at {path}, using defaults")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"could not load {path}") from e

    if data is None:
        return {}
    if isinstance(data, dict) and isinstance(data.get(PROPERTIES_SECTION), dict):
        data = data[PROPERTIES_SECTION]
    if not isinstance(data, dict):
        raise ConfigurationError(f"could not load {path}: expected a mapping of settings")

    logger.debug(f"Loaded {len(data)} properties from {path}")
    return dict(data)


def load_base_properties(config: HarnessConfig) -> ConfigurationMap:
    """Load the properties file and apply the environment database URL override."""
    properties = load_properties(config.properties_path)
    if config.database_url:
        properties[settings.DATABASE_URL] = config.database_url
    elif properties.get(settings.DATABASE_URL):
        properties[settings.DATABASE_URL] = normalize_database_url(
            str(properties[settings.DATABASE_URL])
        )
    else:
        # A blank url falls back to the default database
        properties.pop(settings.DATABASE_URL, None)
    return properties
