"""
Tests for persistence contexts and their transactions.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import InvalidRequestError

from persistence_harness.exceptions import ContextClosedError

from sample_models import Author


def count_authors(factory) -> int:
    with factory.create_context() as context:
        context.transaction.begin()
        count = context.session.scalar(select(func.count()).select_from(Author))
        context.transaction.rollback()
    return count


class TestPersistenceContext:

    def test_new_context_is_open_without_transaction(self, factory):
        context = factory.create_context()

        assert context.is_open
        assert not context.transaction.is_active
        context.close()

    def test_begin_and_commit(self, factory):
        context = factory.create_context()

        context.transaction.begin()
        assert context.transaction.is_active

        author = context.persist(Author(name="Ada"))
        context.transaction.commit()

        assert not context.transaction.is_active
        assert author.id is not None
        assert count_authors(factory) == 1
        context.close()

    def test_rollback_discards_work(self, factory):
        context = factory.create_context()

        context.transaction.begin()
        context.persist(Author(name="Grace"))
        context.transaction.rollback()

        assert not context.transaction.is_active
        assert count_authors(factory) == 0
        context.close()

    def test_find_returns_persisted_entity(self, factory):
        with factory.create_context() as writer:
            writer.transaction.begin()
            author_id = writer.persist(Author(name="Barbara")).id
            writer.transaction.commit()

        with factory.create_context() as reader:
            reader.transaction.begin()
            found = reader.find(Author, author_id)

            assert found.name == "Barbara"
            assert reader.find(Author, author_id + 100) is None
            reader.transaction.rollback()

    def test_work_requires_explicit_begin(self, factory):
        context = factory.create_context()

        with pytest.raises(InvalidRequestError):
            context.session.execute(select(Author))

        context.close()

    def test_close_makes_context_unusable(self, factory):
        context = factory.create_context()

        context.close()

        assert not context.is_open
        assert not context.transaction.is_active
        with pytest.raises(ContextClosedError):
            context.session

    def test_close_is_idempotent(self, factory):
        context = factory.create_context()

        context.close()
        context.close()

        assert not context.is_open

    def test_closing_with_active_transaction_discards_work(self, factory):
        context = factory.create_context()
        context.transaction.begin()
        context.persist(Author(name="Edsger"))

        context.close()

        assert not context.transaction.is_active
        assert count_authors(factory) == 0

    def test_context_manager_closes(self, factory):
        with factory.create_context() as context:
            assert context.is_open

        assert not context.is_open

    def test_repr_shows_state(self, factory):
        context = factory.create_context()
        assert repr(context) == "PersistenceContext(open)"

        context.close()
        assert repr(context) == "PersistenceContext(closed)"
