# -*- coding: utf-8 -*-

import asyncio
from http import HTTPStatus
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

import sacrud
from sacrud.context import RequestContext, query_dict
from sacrud.errors import CrudError
from sacrud.resource import ApiResource, HandlerResponse


def install_crud_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CrudError)
    async def _crud_error_handler(_request: Request, exc: CrudError):
        return JSONResponse(status_code=exc.status_code, content={"errors": [exc.to_dict()]})


class SacrudFastAPI:
    """
    Expose ApiResource instances as FastAPI routes
    """

    def __init__(self, app: FastAPI, prefix: str = "") -> None:
        self.app = app
        self.prefix = prefix.rstrip("/")
        self.resources: Dict[str, ApiResource] = {}
        install_crud_exception_handlers(app)

    @staticmethod
    def _with_slash_parity(path: str) -> List[str]:
        if path.endswith("/"):
            path = path.rstrip("/")
        return [path, path + "/"]

    @staticmethod
    async def make_context(request: Request) -> RequestContext:
        try:
            body = await request.json()
        except ValueError:
            # empty or malformed body
            body = None
        return RequestContext(
            body=body,
            path=request.url.path,
            params=dict(request.path_params),
            headers=dict(request.headers),
            query=query_dict(request.query_params.multi_items()),
            method=request.method,
            original_context=request,
        )

    @staticmethod
    def make_response(result: HandlerResponse) -> Response:
        body, status = result
        if status == HTTPStatus.NO_CONTENT.value:
            return Response(status_code=status)
        if isinstance(body, str):
            return PlainTextResponse(body, status_code=status)
        return JSONResponse(content=body, status_code=status)

    @staticmethod
    def _run_blocking(resource: ApiResource, handler: Callable[[RequestContext], Awaitable[HandlerResponse]], ctx: RequestContext) -> HandlerResponse:
        try:
            return asyncio.run(handler(ctx))
        finally:
            remove = getattr(resource.storage, "remove", None)
            if callable(remove):
                remove()

    async def dispatch(self, resource: ApiResource, handler: Callable[[RequestContext], Awaitable[HandlerResponse]], request: Request) -> Response:
        """
        Call the resource handler with the context of `request`

        Handlers of a blocking storage (a sync sqla session) run on a worker thread,
        one thread for the whole request so a thread-local scoped_session is used by this request only.
        The scoped_session is removed when the handler returns.
        """
        ctx = await self.make_context(request)
        if getattr(resource.storage, "blocking", False):
            result = await run_in_threadpool(self._run_blocking, resource, handler, ctx)
        else:
            result = await handler(ctx)
        return self.make_response(result)

    def _add_route_with_slash_parity(self, router: APIRouter, path: str, endpoint: Any, methods: List[str], name: str) -> None:
        for idx, variant in enumerate(self._with_slash_parity(path)):
            router.add_api_route(
                variant,
                endpoint,
                methods=methods,
                name=name if idx == 0 else f"{name}_slash",
                include_in_schema=(idx == 0),
            )

    def expose_resource(self, resource: ApiResource, path: Optional[str] = None) -> APIRouter:
        """
        Register the list, detail, create, update and delete routes of `resource`

        :param resource: ApiResource instance
        :param path: collection path, defaults to the table name of the resource model
        :return: the included router
        """
        tag = resource.name
        router = APIRouter(prefix=self.prefix, tags=[tag])
        collection_path = "/" + (path or resource.name).strip("/")
        instance_path = collection_path + "/{id}"

        async def get_list(request: Request) -> Response:
            return await self.dispatch(resource, resource.get_list, request)

        async def post_detail(request: Request) -> Response:
            return await self.dispatch(resource, resource.post_detail, request)

        async def get_detail(request: Request) -> Response:
            return await self.dispatch(resource, resource.get_detail, request)

        async def patch_detail(request: Request) -> Response:
            return await self.dispatch(resource, resource.patch_detail, request)

        async def delete_detail(request: Request) -> Response:
            return await self.dispatch(resource, resource.delete_detail, request)

        self._add_route_with_slash_parity(router, collection_path, get_list, ["GET"], f"list_{tag}")
        self._add_route_with_slash_parity(router, collection_path, post_detail, ["POST"], f"create_{tag}")
        self._add_route_with_slash_parity(router, instance_path, get_detail, ["GET"], f"get_{tag}")
        self._add_route_with_slash_parity(router, instance_path, patch_detail, ["PATCH"], f"update_{tag}")
        self._add_route_with_slash_parity(router, instance_path, delete_detail, ["DELETE"], f"delete_{tag}")

        self.app.include_router(router)
        self.resources[tag] = resource
        sacrud.log.info(f"Exposed {resource} on {self.prefix + collection_path}")
        # the openapi schema may have been cached before this resource was exposed
        self.app.openapi_schema = None
        return router
