import pytest
from flask import Flask

from sarepo import ResourceDescriptor, RestAPI, get_metadata

from conftest import Book, Document, Pair, User, db, payload


def test_fields_follow_the_mapped_columns() -> None:
    metadata = get_metadata(User)
    assert metadata.field_names == ["id", "name", "age", "email"]
    assert metadata.id_field == "id"
    assert metadata.version_field is None


def test_many_to_one_associations() -> None:
    associations = get_metadata(Book).associations
    assert [(a.name, a.fk_field, a.target) for a in associations] == [("user", "user_id", User)]
    assert get_metadata(User).associations == []


def test_version_field() -> None:
    assert get_metadata(Document).version_field == "version_id"


def test_merge_copies_non_null_fields_only() -> None:
    metadata = get_metadata(User)
    existing = payload(User, id=1, name="A", age=30, email="a@example.org")
    incoming = payload(User, age=31, email=None)

    merged = metadata.merge(existing, incoming, exclude=["id"])

    assert merged == ["age"]
    assert metadata.to_dict(existing) == {"id": 1, "name": "A", "age": 31, "email": "a@example.org"}


def test_unknown_fields_are_rejected() -> None:
    metadata = get_metadata(User)
    with pytest.raises(KeyError):
        metadata.set_field_value(payload(User), "books", [])


def test_descriptor_defaults() -> None:
    descriptor = ResourceDescriptor(User)
    assert descriptor.name == "Users"
    assert descriptor.allows("delete")
    assert descriptor.id_field == "id"


def test_descriptor_rejects_unknown_actions() -> None:
    with pytest.raises(ValueError):
        ResourceDescriptor(User, allowed_actions=("get_single", "archive"))


def test_composite_primary_keys_are_rejected() -> None:
    with pytest.raises(ValueError, match="composite or missing primary keys"):
        get_metadata(Pair)


def test_exposing_a_composite_key_model_fails_at_startup() -> None:
    app = Flask("sarepo_pairs")
    app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
    db.init_app(app)
    with app.app_context():
        api = RestAPI(app, prefix="/api")
        with pytest.raises(ValueError):
            api.expose_resource(ResourceDescriptor(Pair))
        assert "Pairs" not in api.resources_exposed
        assert "Pairs_get_collection" not in app.view_functions
