"""
Persistence context: a short-lived unit of work over one SQLAlchemy session.
"""

from typing import Any, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from persistence_harness.exceptions import ContextClosedError


T = TypeVar("T")


class TransactionHandle:
    """The (at most one) transaction of a persistence context."""

    def __init__(self, context: "PersistenceContext"):
        self._context = context

    @property
    def is_active(self) -> bool:
        """True while the owning context is open and inside a transaction."""
        if not self._context.is_open:
            return False
        return self._context.session.in_transaction()

    def begin(self) -> None:
        self._context.session.begin()

    def commit(self) -> None:
        self._context.session.commit()

    def rollback(self) -> None:
        self._context.session.rollback()


class PersistenceContext:
    """
    Unit-of-work handle obtained from a PersistenceFactory.

    The underlying session is created with ``autobegin=False`` unless told
    otherwise, so work against the database requires an explicit
    ``transaction.begin()``. Once closed the context cannot be reopened.
    """

    def __init__(self, session: Session):
        self._session: Optional[Session] = session
        self._transaction = TransactionHandle(self)

    @property
    def is_open(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Session:
        """The underlying SQLAlchemy session."""
        if self._session is None:
            raise ContextClosedError("The persistence context is closed")
        return self._session

    @property
    def transaction(self) -> TransactionHandle:
        return self._transaction

    def persist(self, entity: Any) -> Any:
        """Add an entity to the session and flush it to obtain generated keys."""
        session = self.session
        session.add(entity)
        session.flush()
        return entity

    def find(self, entity_class: Type[T], primary_key: Any) -> Optional[T]:
        """Find an entity by primary key."""
        return self.session.get(entity_class, primary_key)

    def close(self) -> None:
        """Close the session. Closing an already closed context does nothing."""
        if self._session is None:
            return
        session, self._session = self._session, None
        session.close()

    def __enter__(self) -> "PersistenceContext":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"PersistenceContext({state})"
