#!/usr/bin/env python3
"""
  This demo application exposes two related models with sarepo
  When sarepo is installed, you can run this app:
  $ python3 demo.py [Listener-IP]

  This will run the example on http://Listener-Ip:5000

  - An sqlite database is created and populated
  - The Users and Books resources are exposed on /api/Users/ and /api/Books/
  - /api/Adults/ exposes the users with age >= 18
  - Books can be read but not modified through /api/Library/

  $ curl 'http://localhost:5000/api/Users/?limit=2&offset=0'
  $ curl -X PUT -H 'Content-Type: application/json' -d '{"age": 31}' http://localhost:5000/api/Users/1/
"""
import sys
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sarepo import ResourceDescriptor, RestAPI

db = SQLAlchemy()


# Example sqla database objects
class User(db.Model):
    __tablename__ = "Users"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    email = db.Column(db.String, default="")
    age = db.Column(db.Integer)
    books = db.relationship("Book", back_populates="user")


class Book(db.Model):
    __tablename__ = "Books"
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("Users.id"))
    user = db.relationship("User", back_populates="books")


def create_api(app, prefix="/api"):
    api = RestAPI(app, prefix=prefix)
    api.expose(
        ResourceDescriptor(User),
        ResourceDescriptor(Book),
        ResourceDescriptor(User, name="Adults", query_where=lambda query: query.filter(User.age >= 18)),
        ResourceDescriptor(Book, name="Library", allowed_actions=("get_single", "get_collection")),
    )
    return api


def populate_db():
    for i in range(12):
        user = User(name=f"user{i}", email=f"user{i}@example.org", age=10 + 3 * i)
        db.session.add(user)
        db.session.add(Book(title=f"book{i}", user=user))
    db.session.commit()


def create_app():
    app = Flask("demo_app")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://", DEBUG=True)
    db.init_app(app)
    with app.app_context():
        db.create_all()
        create_api(app)
        populate_db()
    return app


if __name__ == "__main__":
    HOST = sys.argv[1] if len(sys.argv) > 1 else "0.0.0.0"
    PORT = 5000
    app = create_app()
    print(f"Starting API: http://{HOST}:{PORT}/api/Users/")
    app.run(host=HOST, port=PORT)
