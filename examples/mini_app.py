#!/usr/bin/env python
# run:
# $ FLASK_APP=mini_app flask run
# $ curl "http://127.0.0.1:5000/my_api/users?name__in=test,admin&order_by=-id"
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sacrud import ApiResource, SACRUDAPI

db = SQLAlchemy()


class User(db.Model):
    """
    description: My User description
    """

    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    email = db.Column(db.String(128))
    # ignored on PATCH
    not_updatable_fields = ("email",)


def create_api(app, host="127.0.0.1", port=5000, prefix="/my_api"):
    api = SACRUDAPI(app, prefix=prefix)
    api.expose_resource(ApiResource(User, api.storage, order={"name": "ASC"}, take=20))
    if db.session.query(User).count() == 0:
        db.session.add(User(name="test", email="email@x.org"))
        db.session.commit()
    print(f"Starting API: http://{host}:{port}{prefix}/users")


def create_app(host="127.0.0.1"):
    app = Flask("demo_app")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite:///mini_app.sqlitedb")
    db.init_app(app)
    with app.app_context():
        db.create_all()
        create_api(app, host)
    return app


app = create_app()

if __name__ == "__main__":
    app.run()
