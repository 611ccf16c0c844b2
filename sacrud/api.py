# -*- coding: utf-8 -*-
#
# Flask routing adapter: register the handlers of an ApiResource on a Flask app
#
#   api = SACRUDAPI(app, prefix="/api")
#   api.expose_resource(ApiResource(Book, api.storage))
#
from typing import Any, Optional

from flask import Blueprint, Flask, Response, jsonify, request

import sacrud
from .context import RequestContext, query_dict
from .errors import CrudError
from .resource import ApiResource, HandlerResponse


class SACRUDAPI:
    """
    Expose ApiResource instances as Flask routes
    :param app: Flask app, it should be initialized with Flask-SQLAlchemy
    :param prefix: url prefix of all exposed resources
    """

    def __init__(self, app: Flask, prefix: str = "", **kwargs: Any) -> None:
        self.app = app
        self.prefix = prefix.rstrip("/")
        self.sacrud = sacrud.SACRUD(app, **kwargs)
        self.resources = {}
        app.register_error_handler(CrudError, self.handle_error)

    @property
    def storage(self) -> "sacrud.storage.SessionStorage":
        return self.sacrud.storage

    @staticmethod
    def handle_error(exc: CrudError):
        return jsonify({"errors": [exc.to_dict()]}), exc.status_code

    @staticmethod
    def make_context() -> RequestContext:
        """
        :return: RequestContext for the current flask request
        """
        return RequestContext(
            body=request.get_json(silent=True),
            path=request.path,
            params=dict(request.view_args or {}),
            headers=dict(request.headers),
            query=query_dict(request.args.items(multi=True)),
            method=request.method,
            original_context=request,
        )

    @staticmethod
    def make_response(result: HandlerResponse) -> Response:
        body, status = result
        if status == 204:
            return Response(status=status)
        if isinstance(body, str):
            return Response(body, status=status, mimetype="text/plain")
        response = jsonify(body)
        response.status_code = status
        return response

    def expose_resource(self, resource: ApiResource, path: Optional[str] = None) -> Blueprint:
        """
        Register the list, detail, create, update and delete routes of `resource`

        :param resource: ApiResource instance
        :param path: collection path, defaults to the table name of the resource model
        :return: the registered blueprint
        """
        path = "/" + (path or resource.name).strip("/")
        blueprint = Blueprint(f"sacrud_{resource.name}", __name__, url_prefix=self.prefix + path)

        async def collection():
            ctx = self.make_context()
            if ctx.method == "POST":
                result = await resource.post_detail(ctx)
            else:
                result = await resource.get_list(ctx)
            return self.make_response(result)

        async def instance(id):
            ctx = self.make_context()
            handlers = {"GET": resource.get_detail, "PATCH": resource.patch_detail, "DELETE": resource.delete_detail}
            # HEAD is served by the GET handler
            return self.make_response(await handlers.get(ctx.method, resource.get_detail)(ctx))

        blueprint.add_url_rule("/", "collection", collection, methods=["GET", "POST"])
        blueprint.add_url_rule("/<id>", "instance", instance, methods=["GET", "PATCH", "DELETE"])
        self.app.register_blueprint(blueprint)
        self.resources[resource.name] = resource
        sacrud.log.info(f"Exposed {resource} on {self.prefix + path}")
        return blueprint
