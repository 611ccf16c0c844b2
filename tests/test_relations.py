import pytest
from sqlalchemy import ForeignKey
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from sacrud.relations import RelationKind, field_index, primary_key_name, resolve_field
from sacrud.query_key import parse_query_key

from models import Author, Book, Profile, Tag


@pytest.mark.parametrize(
    "model, name, kind",
    [
        (Book, "title", RelationKind.PLAIN),
        (Book, "author", RelationKind.MANY_TO_ONE),
        (Book, "tags", RelationKind.MANY_TO_MANY),
        (Author, "books", RelationKind.ONE_TO_MANY),
        (Author, "profile", RelationKind.ONE_TO_ONE),
        (Profile, "author", RelationKind.ONE_TO_ONE),
        (Tag, "books", RelationKind.MANY_TO_MANY),
    ],
)
def test_relation_kinds(model, name, kind) -> None:
    assert field_index(model)[name].kind is kind


def test_field_info() -> None:
    author = resolve_field(Book, "author")
    assert author.is_relation
    assert not author.is_to_many
    assert author.target is Author
    assert author.property_path == "Book.author"

    tags = resolve_field(Book, "tags")
    assert tags.is_to_many
    assert tags.target is Tag

    title = resolve_field(Book, "title")
    assert not title.is_relation
    assert title.column is Book.__table__.c.title
    assert title.target is None


def test_resolve_query_key() -> None:
    assert resolve_field(Book, parse_query_key("author__name", "x")).name == "author"
    assert resolve_field(Book, "nope") is None


def test_primary_key_name() -> None:
    assert primary_key_name(Book) == "id"


def test_reserved_field_names_are_rejected() -> None:
    class _Base(DeclarativeBase):
        pass

    class Parent(_Base):
        __tablename__ = "parents"
        id: Mapped[int] = mapped_column(primary_key=True)
        gt: Mapped[int]

    with pytest.raises(ValueError):
        field_index(Parent)


def test_unique_foreign_key_is_one_to_one() -> None:
    class _Base(DeclarativeBase):
        pass

    class Owner(_Base):
        __tablename__ = "owners"
        id: Mapped[int] = mapped_column(primary_key=True)

    class Passport(_Base):
        __tablename__ = "passports"
        id: Mapped[int] = mapped_column(primary_key=True)
        owner_id: Mapped[int] = mapped_column(ForeignKey("owners.id"), unique=True)
        owner: Mapped[Owner] = relationship()

    assert field_index(Passport)["owner"].kind is RelationKind.ONE_TO_ONE
