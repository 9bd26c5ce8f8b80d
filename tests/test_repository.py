import pytest
from sqlalchemy import text

from sarepo import AssociationResolutionError, BadRequestError, ConflictError, InternalPersistenceError, NotFoundError, RepositoryWrapper

from conftest import Book, Document, User, add_users, payload


def test_id_introspection(session) -> None:
    repository = RepositoryWrapper(session, User)
    user = payload(User, id=7, name="A")
    assert repository.get_id_field() == "id"
    assert repository.get_id_value(user) == 7
    assert repository.get_id_value(payload(User, name="B")) is None


def test_convert_id(session) -> None:
    repository = RepositoryWrapper(session, User)
    assert repository.convert_id("12") == 12
    assert repository.convert_id(12) == 12
    with pytest.raises(BadRequestError) as exc_info:
        repository.convert_id("abc")
    assert "Invalid id" in exc_info.value.message


def test_create_query_is_unfiltered(session) -> None:
    add_users({"name": "A", "age": 10}, {"name": "B", "age": 40})
    repository = RepositoryWrapper(session, User)
    assert repository.create_query().count() == 2


def test_save_and_remove(session) -> None:
    repository = RepositoryWrapper(session, User)
    user = payload(User, name="A")
    repository.save(user)
    user_id = repository.get_id_value(user)
    assert user_id is not None

    repository.remove(session.get(User, user_id))
    assert session.get(User, user_id) is None


def test_remove_transient_entity(session) -> None:
    repository = RepositoryWrapper(session, User)
    with pytest.raises(NotFoundError):
        repository.remove(payload(User, name="A"))


def test_save_constraint_violation(session) -> None:
    repository = RepositoryWrapper(session, User)
    with pytest.raises(InternalPersistenceError):
        repository.save(payload(User, age=3))
    # the session was rolled back and remains usable
    assert repository.create_query().count() == 0


def test_assign_associated_entities(session) -> None:
    (user,) = add_users({"name": "A"})
    repository = RepositoryWrapper(session, Book)
    book = payload(Book, title="T", user_id=user.id)

    repository.assign_associated_entities(book)

    assert book.user is user


def test_assign_missing_associated_entity(session) -> None:
    repository = RepositoryWrapper(session, Book)
    book = payload(Book, title="T", user_id=42)
    with pytest.raises(AssociationResolutionError) as exc_info:
        repository.assign_associated_entities(book)
    assert exc_info.value.status_code == 400
    assert "does not exist" in exc_info.value.message


def test_unset_associations_are_skipped(session) -> None:
    repository = RepositoryWrapper(session, Book)
    book = payload(Book, title="T")
    repository.assign_associated_entities(book)
    assert book.user is None


def test_transaction_rolls_back_tracked_changes(session) -> None:
    (user,) = add_users({"name": "A"})
    repository = RepositoryWrapper(session, User)

    with pytest.raises(RuntimeError):
        with repository.transaction():
            user.name = "changed"
            raise RuntimeError("failed")

    assert session.get(User, user.id).name == "A"


def test_stale_version_is_a_conflict(session) -> None:
    repository = RepositoryWrapper(session, Document)
    document = payload(Document, title="draft")
    repository.save(document)
    assert document.version_id == 1

    session.execute(text('UPDATE "Documents" SET version_id = 7 WHERE id = :id'), {"id": document.id})
    document.title = "final"

    with pytest.raises(ConflictError) as exc_info:
        repository.save()
    assert exc_info.value.status_code == 409
