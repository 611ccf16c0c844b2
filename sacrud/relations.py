# -*- coding: utf-8 -*-
#
# Entity metadata lookups: classify the fields of a mapped class as plain columns or relationships
#
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Optional, Type, Union

from sqlalchemy import Column, inspect as sqla_inspect
from sqlalchemy.orm import RelationshipProperty
from sqlalchemy.orm.interfaces import MANYTOMANY, MANYTOONE, ONETOMANY

from .query_key import MODIFIERS, QueryKey


class RelationKind(str, Enum):
    PLAIN = "plain"
    ONE_TO_ONE = "one_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_ONE = "many_to_one"
    MANY_TO_MANY = "many_to_many"


TO_MANY = (RelationKind.ONE_TO_MANY, RelationKind.MANY_TO_MANY)


@dataclass(frozen=True)
class FieldInfo:
    name: str
    kind: RelationKind
    attribute: Any
    # mapped column of a plain field
    column: Optional[Column] = None
    # related class of a relationship
    target: Optional[Type[Any]] = None
    # join registration key, f.i. "Book.author"
    property_path: str = ""

    @property
    def is_relation(self) -> bool:
        return self.kind is not RelationKind.PLAIN

    @property
    def is_to_many(self) -> bool:
        return self.kind in TO_MANY


def relation_kind(rel: RelationshipProperty) -> RelationKind:
    """
    :param rel: sqla relationship property
    :return: the relationship kind
    """
    if rel.direction is MANYTOMANY:
        return RelationKind.MANY_TO_MANY
    if rel.direction is ONETOMANY:
        return RelationKind.ONE_TO_MANY if rel.uselist else RelationKind.ONE_TO_ONE
    if rel.direction is MANYTOONE:
        # the foreign key side of a one-to-one: the other side holds a scalar or the fk is unique
        reverse = getattr(rel, "_reverse_property", ())
        if any(not reverse_rel.uselist for reverse_rel in reverse) or all(col.unique for col in rel.local_columns):
            return RelationKind.ONE_TO_ONE
    return RelationKind.MANY_TO_ONE


@lru_cache(maxsize=256)
def field_index(model: Type[Any]) -> Dict[str, FieldInfo]:
    """
    Build the field name -> FieldInfo lookup table of a mapped class.
    Relationships take precedence over columns with the same attribute name.

    :param model: sqla mapped class
    :return: dict
    """
    mapper = sqla_inspect(model)
    index: Dict[str, FieldInfo] = {}
    for rel in mapper.relationships:
        index[rel.key] = FieldInfo(
            name=rel.key,
            kind=relation_kind(rel),
            attribute=getattr(model, rel.key),
            target=rel.mapper.class_,
            property_path=f"{model.__name__}.{rel.key}",
        )
    for col_attr in mapper.column_attrs:
        if col_attr.key in index:
            continue
        index[col_attr.key] = FieldInfo(
            name=col_attr.key,
            kind=RelationKind.PLAIN,
            attribute=getattr(model, col_attr.key),
            column=col_attr.columns[0],
        )

    reserved = sorted(name for name in index if name in MODIFIERS)
    if reserved:
        # f.i. a relationship named "in" can't be told apart from the modifier in a filter key
        raise ValueError(f"{model.__name__} uses reserved filter words as field names: {reserved}")
    return index


def resolve_field(model: Type[Any], key: Union[str, QueryKey]) -> Optional[FieldInfo]:
    """
    :param model: sqla mapped class
    :param key: field name or parsed query key
    :return: FieldInfo or None if the key isn't a field of the model
    """
    name = key if isinstance(key, str) else key.base
    return field_index(model).get(name)


@lru_cache(maxsize=256)
def primary_key_name(model: Type[Any]) -> str:
    """
    :param model: sqla mapped class
    :return: attribute name of the (first) primary key column
    """
    mapper = sqla_inspect(model)
    return mapper.get_property_by_column(mapper.primary_key[0]).key
