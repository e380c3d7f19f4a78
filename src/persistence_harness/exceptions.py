"""
Exceptions raised by the persistence harness.

All harness errors inherit from HarnessError so callers such as the CLI can
catch them with a single except clause. Errors raised by SQLAlchemy itself
(bad URLs, failed connections, DDL errors) are not wrapped and propagate as-is.
"""


class HarnessError(Exception):
    """Base class for all persistence harness errors."""

    pass


class ConfigurationError(HarnessError):
    """
    Raised when the harness configuration cannot be assembled or applied.

    Examples:
    - The properties file exists but is not valid YAML
    - A class passed as an annotated class is not mapped
    - The schema action is unknown
    - A mapping descriptor module cannot be imported
    """

    pass


class LeakedTransactionError(HarnessError, AssertionError):
    """
    Raised when a test body returns while its transaction is still active.

    Subclasses AssertionError so that test runners report it as a failure of
    the test rather than an error in the harness.
    """

    def __init__(self, message: str = None):
        super().__init__(
            message
            or "You left an open transaction! Fix your test case. "
            "For now, we are closing it for you."
        )


class ContextClosedError(HarnessError):
    """Raised when a closed persistence context is used."""

    pass


class FactoryClosedError(HarnessError):
    """Raised when a context is requested from a released factory."""

    pass
