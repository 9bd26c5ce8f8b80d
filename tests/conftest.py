from contextlib import nullcontext
from types import SimpleNamespace
from typing import Any, Iterator, Optional

import pytest
from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from sarepo import RepositoryWrapper, ResourceController, ResourceDescriptor, RestAPI

db = SQLAlchemy()


class User(db.Model):
    __tablename__ = "Users"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(20), nullable=False)
    age = db.Column(db.Integer)
    email = db.Column(db.String, default="")
    books = db.relationship("Book", back_populates="user")


class Book(db.Model):
    __tablename__ = "Books"
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("Users.id"))
    user = db.relationship("User", back_populates="books")


class Document(db.Model):
    __tablename__ = "Documents"
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String, nullable=False)
    version_id = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}


class Event(db.Model):
    __tablename__ = "Events"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, nullable=False)
    at = db.Column(db.DateTime)
    day = db.Column(db.Date)
    starts = db.Column(db.Time)
    price = db.Column(db.Numeric(10, 2))
    token = db.Column(db.Uuid)
    flag = db.Column(db.Boolean)
    seats = db.Column(db.Integer)


class Pair(db.Model):
    __tablename__ = "Pairs"
    first_id = db.Column(db.Integer, primary_key=True)
    second_id = db.Column(db.Integer, primary_key=True)


def adults_only(query):
    return query.filter(User.age >= 18)


USERS = ResourceDescriptor(User)
BOOKS = ResourceDescriptor(Book)
DOCUMENTS = ResourceDescriptor(Document)
EVENTS = ResourceDescriptor(Event)
ADULTS = ResourceDescriptor(User, name="Adults", query_where=adults_only)
READONLY_BOOKS = ResourceDescriptor(Book, name="Library", allowed_actions=("get_single", "get_collection"))


class FakeRequestContext:
    """
    Request context with the url layout of the RestAPI routes: /api/<resource>/[<id>/]
    """

    scheme = "http"
    host = "example.org"

    def __init__(self, args: Optional[dict] = None, content_type: Optional[str] = "application/json") -> None:
        self.args = args or {}
        self.content_type = content_type

    def url_for(self, route_name: str, **params: Any) -> str:
        resource_name, _, action = route_name.partition("_")
        path = f"/api/{resource_name}/"
        if "id" in params:
            path += f"{params['id']}/"
        return path


@pytest.fixture
def app() -> Iterator[Flask]:
    app = Flask("sarepo_test")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://", TESTING=True)
    db.init_app(app)
    with app.app_context():
        db.create_all()
        api = RestAPI(app, prefix="/api")
        api.expose(USERS, BOOKS, DOCUMENTS, EVENTS, ADULTS, READONLY_BOOKS)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app: Flask):
    return app.test_client()


@pytest.fixture
def session(app: Flask):
    return db.session


def make_controller(descriptor: ResourceDescriptor, request_context: Optional[FakeRequestContext] = None, **kwargs) -> ResourceController:
    repository = RepositoryWrapper(db.session, descriptor.model)
    return ResourceController(descriptor, repository, request_context or FakeRequestContext(), **kwargs)


def add_users(*users: dict) -> list:
    instances = [User(**user) for user in users]
    db.session.add_all(instances)
    db.session.commit()
    return instances


def payload(model: type, **fields: Any) -> Any:
    """
    :return: transient entity with the given fields, as created from a request payload
    """
    entity = model.__mapper__.class_manager.new_instance()
    for name, value in fields.items():
        setattr(entity, name, value)
    return entity


def untouched_repository(model: type) -> SimpleNamespace:
    """
    :return: repository stand-in that fails the test when the persistence layer is used
    """

    def fail(*args, **kwargs):
        pytest.fail("persistence layer was used")

    return SimpleNamespace(model=model, transaction=nullcontext, create_query=fail, get_id_field=fail, save=fail, remove=fail)
