# -*- coding: utf-8 -*-
#
# QueryPlan: an accumulating sqla select() that is refined by the assembler stages
# (relations, filters, ordering, projection, pagination) and executed once by the storage
#
from typing import Any, Dict, List, NamedTuple, Optional, Type

from sqlalchemy import Select, func, select
from sqlalchemy.orm import aliased
from sqlalchemy.orm.util import AliasedClass

import sacrud
from .relations import FieldInfo, primary_key_name


class JoinRegistration(NamedTuple):
    property_path: str
    alias: AliasedClass
    field: FieldInfo


class QueryPlan:
    """
    Mutable query builder for the collection of `model` instances

    At most one join is added per relationship (see `add_or_get_join`),
    all criteria are combined with AND and every value is a bound parameter
    """

    def __init__(self, model: Type[Any]) -> None:
        self.model = model
        self.alias = model.__name__
        # relationship property path -> JoinRegistration
        self.joins: Dict[str, JoinRegistration] = {}
        self.criteria: List[Any] = []
        self.order_by: List[Any] = []
        # loader options: eager loaded relations and column projection
        self.options: List[Any] = []
        self.relations: List[str] = []
        self.projection: List[str] = []
        self.skip: int = 0
        self.take: Optional[int] = None
        # filtering on to-many joins may yield duplicate root rows
        self.distinct = False

    def __repr__(self) -> str:
        return f"<QueryPlan {self.alias} joins={list(self.joins)} skip={self.skip} take={self.take}>"

    def add_or_get_join(self, field: FieldInfo) -> AliasedClass:
        """
        Look up the join registered for the relationship, add it if it doesn't exist yet
        :param field: relationship FieldInfo
        :return: the alias of the joined class
        """
        registration = self.joins.get(field.property_path)
        if registration is not None:
            sacrud.log.debug(f"Reusing join {field.property_path}")
            return registration.alias

        alias = aliased(field.target, name=f"{self.alias}_{field.name}")
        self.joins[field.property_path] = JoinRegistration(field.property_path, alias, field)
        if field.is_to_many:
            self.distinct = True
        sacrud.log.debug(f"Added join {field.property_path}")
        return alias

    def where(self, *clauses: Any) -> "QueryPlan":
        self.criteria.extend(clauses)
        return self

    def add_order(self, *clauses: Any) -> "QueryPlan":
        self.order_by.extend(clauses)
        return self

    def add_options(self, *options: Any) -> "QueryPlan":
        self.options.extend(options)
        return self

    def set_skip(self, skip: int) -> "QueryPlan":
        self.skip = skip
        return self

    def set_take(self, take: Optional[int]) -> "QueryPlan":
        self.take = take
        return self

    @property
    def join_count(self) -> int:
        return len(self.joins)

    def _joined(self, stmt: Select) -> Select:
        for registration in self.joins.values():
            stmt = stmt.outerjoin(registration.field.attribute.of_type(registration.alias))
        if self.criteria:
            stmt = stmt.where(*self.criteria)
        return stmt

    def _filtered(self) -> Select:
        if not self.distinct:
            return self._joined(select(self.model))
        # root rows are matched by primary key, without SELECT DISTINCT
        primary_key = getattr(self.model, primary_key_name(self.model))
        matching = self._joined(select(primary_key)).correlate(None)
        return select(self.model).where(primary_key.in_(matching))

    def statement(self, paginate: bool = True) -> Select:
        """
        :param paginate: apply ordering, skip and take
        :return: sqla select statement
        """
        stmt = self._filtered()
        if self.options:
            stmt = stmt.options(*self.options)
        if paginate:
            if self.order_by:
                stmt = stmt.order_by(*self.order_by)
            if self.skip:
                stmt = stmt.offset(self.skip)
            if self.take is not None:
                stmt = stmt.limit(self.take)
        return stmt

    def count_statement(self) -> Select:
        """
        :return: select statement counting all matching rows, regardless of skip and take
        """
        return select(func.count()).select_from(self._filtered().subquery())
