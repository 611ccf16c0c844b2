# -*- coding: utf-8 -*-
#
# Storage handles, passed to the resources at construction:
# - SessionStorage wraps a (scoped) sqla Session, f.i. the Flask-SQLAlchemy db.session
# - AsyncSessionStorage wraps a sqla AsyncSession
#
# Both expose the same coroutine interface to the resource handlers
#
from typing import Any, List, NamedTuple, Optional, Tuple, Type

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from .query_plan import QueryPlan


class DeleteResult(NamedTuple):
    affected: int


class SessionStorage:
    """
    Storage on a synchronous sqla session
    """

    # the session calls block, the routing adapters may run the handlers on a worker thread
    blocking = True

    def __init__(self, session: Session) -> None:
        self.session = session

    async def execute(self, plan: QueryPlan) -> Tuple[List[Any], int]:
        """
        :return: the rows of the requested page and the total number of matching rows
        """
        total = self.session.execute(plan.count_statement()).scalar_one()
        rows = self.session.scalars(plan.statement()).all()
        return list(rows), total

    async def fetch_one(self, plan: QueryPlan) -> Optional[Any]:
        return self.session.scalars(plan.statement(paginate=False)).first()

    async def get(self, model: Type[Any], item_id: Any) -> Optional[Any]:
        return self.session.get(model, item_id)

    async def save(self, item: Any) -> Any:
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    async def delete(self, model: Type[Any], item_id: Any) -> DeleteResult:
        item = self.session.get(model, item_id)
        if item is None:
            return DeleteResult(0)
        self.session.delete(item)
        self.session.commit()
        return DeleteResult(1)

    async def rollback(self) -> None:
        self.session.rollback()

    def remove(self) -> None:
        """
        Release the session of the current thread when it is a scoped_session
        """
        remove = getattr(self.session, "remove", None)
        if callable(remove):
            remove()


class AsyncSessionStorage:
    """
    Storage on a sqla AsyncSession
    """

    blocking = False

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, plan: QueryPlan) -> Tuple[List[Any], int]:
        total = (await self.session.execute(plan.count_statement())).scalar_one()
        rows = (await self.session.scalars(plan.statement())).all()
        return list(rows), total

    async def fetch_one(self, plan: QueryPlan) -> Optional[Any]:
        return (await self.session.scalars(plan.statement(paginate=False))).first()

    async def get(self, model: Type[Any], item_id: Any) -> Optional[Any]:
        return await self.session.get(model, item_id)

    async def save(self, item: Any) -> Any:
        self.session.add(item)
        await self.session.commit()
        # expired attributes can't be lazy loaded by the serializer
        await self.session.refresh(item)
        return item

    async def delete(self, model: Type[Any], item_id: Any) -> DeleteResult:
        item = await self.session.get(model, item_id)
        if item is None:
            return DeleteResult(0)
        await self.session.delete(item)
        await self.session.commit()
        return DeleteResult(1)

    async def rollback(self) -> None:
        await self.session.rollback()
