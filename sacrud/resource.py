# -*- coding: utf-8 -*-
#
# ApiResource: the CRUD handlers of an exposed model
#
#   GET    /     -> get_list
#   GET    /:id  -> get_detail
#   POST   /     -> post_detail
#   PATCH  /:id  -> patch_detail
#   DELETE /:id  -> delete_detail
#
# Every handler checks the allowed methods and the access predicate before touching the storage
#
import re
from http import HTTPStatus
from typing import Any, Dict, Iterable, NamedTuple, Optional, Set, Type, Union

from sqlalchemy.exc import SQLAlchemyError

import sacrud
from .attr_parse import MAX_INT
from .assembler import build_detail_plan, build_query_plan
from .context import RequestContext
from .envelope import ListResponse
from .errors import BadMethodError, BadRequestError, GenericError, NotFoundError, UnauthorizedError, ValidationError
from .json_encoder import to_dict
from .options import ResourceOptions
from .relations import field_index, primary_key_name
from .transform import assign_fields, build_instance, transform_data
from .util import maybe_await

ID_RE = re.compile(r"[0-9]+")


class HandlerResponse(NamedTuple):
    body: Union[Dict[str, Any], str, None]
    status: int


class ApiResource:
    """
    CRUD resource for the sqla mapped class `model`

    :param model: sqla mapped class
    :param storage: storage handle, SessionStorage or AsyncSessionStorage
    :param options: ResourceOptions, keyword arguments are used if not given
    """

    def __init__(self, model: Type[Any], storage: Any, options: Optional[ResourceOptions] = None, **kwargs: Any) -> None:
        self.model = model
        self.storage = storage
        self.options = options if options is not None else ResourceOptions(**kwargs)
        # build the field lookup table now so misconfigured models fail at startup
        field_index(model)

    def __repr__(self) -> str:
        return f"<ApiResource {self.model.__name__}>"

    @property
    def name(self) -> str:
        return getattr(self.model, "__tablename__", self.model.__name__)

    #
    # Request checks
    #
    def _check_method(self, method: str) -> None:
        if method not in self.options.methods:
            raise BadMethodError(f"{method} {self.name}")

    async def _check_access(self, ctx: RequestContext) -> None:
        if not await maybe_await(self.options.has_access(ctx)):
            raise UnauthorizedError(f"{ctx.method} {ctx.path}")

    @staticmethod
    def _parse_id(ctx: RequestContext) -> int:
        raw_id = ctx.params.get("id")
        if raw_id is None or not ID_RE.fullmatch(str(raw_id)) or not 0 < int(raw_id) <= MAX_INT:
            raise BadRequestError(f"Invalid id {raw_id!r}")
        return int(raw_id)

    @staticmethod
    def _parse_body(ctx: RequestContext) -> Dict[str, Any]:
        if not isinstance(ctx.body, dict):
            raise BadRequestError("Invalid body, expected an object")
        return ctx.body

    def _serialize(self, item: Any, fields: Iterable[str]) -> Dict[str, Any]:
        return to_dict(item, fields or None)

    #
    # Handlers
    #
    async def get_list(self, ctx: RequestContext) -> HandlerResponse:
        """
        Handler on GET "/"
        """
        self._check_method("GET")
        await self._check_access(ctx)
        plan = build_query_plan(self.model, self.options, ctx.query)
        if self.options.pre_list:
            plan = await maybe_await(self.options.pre_list(ctx, plan)) or plan
        items, total = await self.storage.execute(plan)
        if self.options.after_list:
            result = await maybe_await(self.options.after_list(ctx, items))
            if result is not None:
                items = result
        objects = [self._serialize(item, self.options.list_fields) for item in items]
        body = ListResponse(objects, plan, total, len(objects), ctx.query, ctx.path)
        return HandlerResponse(body.to_dict(), HTTPStatus.OK.value)

    async def get_detail(self, ctx: RequestContext) -> HandlerResponse:
        """
        Handler on GET "/:id"
        """
        self._check_method("GET")
        item_id = self._parse_id(ctx)
        await self._check_access(ctx)
        plan = build_detail_plan(self.model, self.options, ctx.query, item_id)
        if self.options.pre_detail:
            plan = await maybe_await(self.options.pre_detail(ctx, plan)) or plan
        item = await self.storage.fetch_one(plan)
        if item is None:
            raise NotFoundError(f'Invalid "{self.model.__name__}" ID "{item_id}"')
        if self.options.after_detail:
            result = await maybe_await(self.options.after_detail(ctx, item))
            if result is not None:
                item = result
        return HandlerResponse(self._serialize(item, self.options.detail_fields), HTTPStatus.OK.value)

    async def post_detail(self, ctx: RequestContext) -> HandlerResponse:
        """
        Handler on POST "/"
        Validation errors are returned as the newline separated list of invalid field names
        """
        self._check_method("POST")
        body = self._parse_body(ctx)
        await self._check_access(ctx)
        if not self.options.allow_client_generated_ids:
            body = {name: value for name, value in body.items() if name != primary_key_name(self.model)}
        try:
            item = await build_instance(self.model, body, self.storage)
            errors = list(await maybe_await(self.options.validator(item)) or [])
        except ValidationError as exc:
            errors = exc.fields
        if errors:
            sacrud.log.error(f"Error on POST {ctx.path} errors: {errors}")
            # detach the candidate from the related items it was appended to
            await self.storage.rollback()
            return HandlerResponse("\n".join(errors), HTTPStatus.BAD_REQUEST.value)

        if self.options.pre_post:
            item = await maybe_await(self.options.pre_post(ctx, item)) or item
        try:
            item = await self.storage.save(item)
        except SQLAlchemyError as exc:
            sacrud.log.exception(exc)
            await self.storage.rollback()
            raise GenericError(f"Error in creating new {self.model.__name__}: {exc}")
        if self.options.after_post:
            item = await maybe_await(self.options.after_post(ctx, item)) or item
        return HandlerResponse(self._serialize(item, self.options.detail_fields), HTTPStatus.CREATED.value)

    async def patch_detail(self, ctx: RequestContext) -> HandlerResponse:
        """
        Handler on PATCH "/:id"
        Only the updatable fields of the body are applied
        """
        self._check_method("PATCH")
        item_id = self._parse_id(ctx)
        body = self._parse_body(ctx)
        await self._check_access(ctx)
        item = await self.storage.get(self.model, item_id)
        if item is None:
            raise NotFoundError(f'Invalid "{self.model.__name__}" ID "{item_id}"')

        try:
            data = await transform_data(self.model, self.filter_patch_data(body), self.storage)
            assign_fields(item, data)
        except ValidationError:
            # discard the partially assigned values
            await self.storage.rollback()
            raise
        if self.options.pre_patch:
            item = await maybe_await(self.options.pre_patch(ctx, item)) or item
        try:
            saved = await self.storage.save(item)
        except SQLAlchemyError as exc:
            sacrud.log.exception(exc)
            await self.storage.rollback()
            raise GenericError("INTERNAL_SERVER_ERROR")
        if self.options.after_patch:
            saved = await maybe_await(self.options.after_patch(ctx, saved)) or saved
        return HandlerResponse(self._serialize(saved, self.options.detail_fields), HTTPStatus.CREATED.value)

    async def delete_detail(self, ctx: RequestContext) -> HandlerResponse:
        """
        Handler on DELETE "/:id"
        """
        self._check_method("DELETE")
        item_id = self._parse_id(ctx)
        await self._check_access(ctx)
        result = await self.storage.delete(self.model, item_id)
        if self.options.after_delete:
            await maybe_await(self.options.after_delete(ctx, result))
        return HandlerResponse("", HTTPStatus.NO_CONTENT.value)

    def filter_patch_data(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Ignore the read-only fields and the primary key
        """
        updatable = self.options.updatable_fields
        if updatable is None:
            updatable = getattr(self.model, "updatable_fields", ())
        read_only: Set[str] = set(
            self.options.read_only_fields if self.options.read_only_fields is not None else getattr(self.model, "not_updatable_fields", ())
        )
        read_only.add(primary_key_name(self.model))
        data = dict(body)
        if updatable:
            data = {name: value for name, value in data.items() if name in updatable}
        return {name: value for name, value in data.items() if name not in read_only}
