import pytest
from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from sacrud import ApiResource, SACRUDAPI

from models import Author, Base, Book, seed


@pytest.fixture
def client():
    app = Flask("sacrud_test")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://", TESTING=True)
    db = SQLAlchemy()
    db.init_app(app)
    with app.app_context():
        Base.metadata.create_all(db.engine)
        seed(db.session)

    api = SACRUDAPI(app, prefix="/api")
    api.expose_resource(ApiResource(Book, api.storage, relations=["author"], order={"id": "ASC"}))
    api.expose_resource(ApiResource(Author, api.storage, methods=["GET"]), path="writers")
    yield app.test_client()
    with app.app_context():
        db.engine.dispose()


def test_list(client) -> None:
    response = client.get("/api/books?limit=3&published=true")
    assert response.status_code == 200
    body = response.get_json()
    assert body["meta"]["total"] == 2
    assert "next" not in body["meta"]
    assert [book["author"]["name"] for book in body["objects"]] == ["Alice", "Alice"]


def test_trailing_slash(client) -> None:
    assert client.get("/api/books/").status_code == 200
    assert client.get("/api/books").status_code == 200


def test_next_link(client) -> None:
    body = client.get("/api/books?limit=3").get_json()
    assert body["meta"]["next"] == "/api/books?limit=3&offset=3"


def test_repeated_query_keys(client) -> None:
    body = client.get("/api/books?title=Dune&title=Emma").get_json()
    assert sorted(book["title"] for book in body["objects"]) == ["Dune", "Emma"]


def test_detail(client) -> None:
    response = client.get("/api/books/1")
    assert response.status_code == 200
    assert response.get_json()["title"] == "Dune"


def test_errors(client) -> None:
    response = client.get("/api/books/999")
    assert response.status_code == 404
    (error,) = response.get_json()["errors"]
    assert error["title"] == "NotFoundError"
    assert error["code"] == 404

    response = client.get("/api/books/abc")
    assert response.status_code == 400

    response = client.get("/api/books?nope=1")
    assert response.status_code == 400
    assert "nope" in response.get_json()["errors"][0]["detail"]


def test_create_update_delete(client) -> None:
    response = client.post("/api/books", json={"title": "Sula", "author": 3})
    assert response.status_code == 201
    book_id = response.get_json()["id"]

    response = client.patch(f"/api/books/{book_id}", json={"pages": 174})
    assert response.status_code == 201
    assert response.get_json()["pages"] == 174

    response = client.delete(f"/api/books/{book_id}")
    assert response.status_code == 204
    assert response.data == b""
    assert client.get(f"/api/books/{book_id}").status_code == 404


def test_validation_error_is_plain_text(client) -> None:
    response = client.post("/api/books", json={"pages": 1})
    assert response.status_code == 400
    assert response.mimetype == "text/plain"
    assert response.get_data(as_text=True) == "title"


def test_custom_path_and_methods(client) -> None:
    assert client.get("/api/writers").get_json()["meta"]["total"] == 3
    response = client.delete("/api/writers/1")
    assert response.status_code == 400
    assert response.get_json()["errors"][0]["title"] == "BadMethodError"
    assert client.get("/api/authors").status_code == 404
