#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Run:
  pip install -e . "fastapi[standard]"
  python examples/mini_fastapi_app.py

Then open:
  http://127.0.0.1:8000/users?limit=10
  http://127.0.0.1:8000/books?user__name=test
  http://127.0.0.1:8000/docs
"""

from fastapi import FastAPI
from sqlalchemy import Column, ForeignKey, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, relationship, scoped_session, sessionmaker

import uvicorn

from sacrud import ApiResource, SessionStorage
from sacrud.fastapi import SacrudFastAPI


Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String)
    books = relationship("Book", back_populates="user")


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"))
    user = relationship(User, back_populates="books")


def create_app() -> FastAPI:
    engine = create_engine("sqlite:///./mini_fastapi.db")
    SessionFactory = sessionmaker(bind=engine, autoflush=False)
    Session = scoped_session(SessionFactory)

    # Create tables + seed
    Base.metadata.create_all(engine)
    if Session.query(User).count() == 0:
        Session.add(User(name="test", email="email@x.org", books=[Book(title="first")]))
        Session.commit()
    Session.remove()

    app = FastAPI(title="sacrud FastAPI mini app")

    # every request runs on its own worker thread and gets a fresh thread-local session,
    # SacrudFastAPI removes it when the request is done
    storage = SessionStorage(Session)
    api = SacrudFastAPI(app)
    api.expose_resource(ApiResource(User, storage, relations=["books"]))
    api.expose_resource(ApiResource(Book, storage, relations=["user"], methods=["GET", "POST"]))

    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok", "docs": "/docs", "openapi": "/openapi.json"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
