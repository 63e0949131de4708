"""HTTP layer: application context, error handling and routes."""

from __future__ import annotations

import functools
import json
import re
import sqlite3
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Callable

from flask import Blueprint, Flask, Request, g, jsonify, request

from eatery.errors import (
    CURRENT_USER,
    DB_TYPE_RESTAURANT,
    AppError,
    Requester,
    err_internal,
    err_invalid_request,
    err_no_permission,
)
from eatery.image import image_from_json, images_from_json
from eatery.response import Paging, simple_success_response, success_response
from eatery.restaurant.biz import (
    CreateRestaurantBiz,
    DeleteRestaurantBiz,
    GetRestaurantBiz,
    ListRestaurantBiz,
    UpdateRestaurantBiz,
)
from eatery.restaurant.models import Filter, RestaurantCreate, RestaurantUpdate
from eatery.restaurant.storage import SQLStore
from eatery.uid import UID, from_base58
from eatery.upload import DEFAULT_FOLDER, UploadBiz, UploadProvider

_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass
class AppContext:
    """Shared resources handed to every request handler."""

    db: sqlite3.Connection
    upload_provider: UploadProvider | None = None
    secret: str = ""
    authenticate: Callable[[Request], Requester] | None = None


def handle_app_error(error):
    """Turn an exception into a JSON error response and its status code."""
    error = getattr(error, "original_exception", None) or error
    app_error = error if isinstance(error, AppError) else err_internal(error)
    return jsonify(app_error.to_dict()), int(app_error.status_code)


def _current_user() -> Requester:
    user = g.get(CURRENT_USER)
    if user is None:
        raise err_internal(LookupError(f'Key "{CURRENT_USER}" does not exist'))
    return user


def required_roles(*args):
    """Allow the decorated view only to users holding one of the given roles."""
    roles = frozenset(args)

    def decorator(view):
        @functools.wraps(view)
        def guarded(*view_args, **view_kwargs):
            if _current_user().role in roles:
                return view(*view_args, **view_kwargs)
            raise err_no_permission(None)

        return guarded

    return decorator


def _authenticator(app_ctx: AppContext) -> Callable[[], None]:
    def authenticate() -> None:
        if app_ctx.authenticate is not None:
            setattr(g, CURRENT_USER, app_ctx.authenticate(request))

    return authenticate


def _request_body() -> dict:
    if request.is_json:
        body = request.get_json(silent=True)
        if body is None:
            raise err_invalid_request(ValueError("invalid JSON body"))
        if not isinstance(body, dict):
            raise err_invalid_request(ValueError("JSON body must be an object"))
        return body
    return request.form.to_dict()


def _optional_str(body: dict, key: str) -> str | None:
    value = body.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ValueError(f"field {key!r} must be a string")


def _optional_int(body: dict, key: str) -> int | None:
    value = body.get(key)
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and _INTEGER.fullmatch(value):
        return int(value)
    raise ValueError(f"field {key!r} must be an integer")


def _logo(body: dict):
    value = body.get("logo")
    if value is None:
        return None
    return image_from_json(json.dumps(value).encode("utf-8"))


def _cover(body: dict):
    value = body.get("cover")
    if value is None:
        return None
    return images_from_json(json.dumps(value).encode("utf-8"))


def _bind_create() -> RestaurantCreate:
    body = _request_body()
    try:
        return RestaurantCreate(
            name=_optional_str(body, "name") or "",
            address=_optional_str(body, "address") or "",
            logo=_logo(body),
            cover=_cover(body),
        )
    except ValueError as exc:
        raise err_invalid_request(exc) from exc


def _bind_update() -> RestaurantUpdate:
    body = _request_body()
    try:
        return RestaurantUpdate(
            name=_optional_str(body, "name"),
            address=_optional_str(body, "address"),
            status=_optional_int(body, "_"),
            cover=_cover(body),
        )
    except ValueError as exc:
        raise err_invalid_request(exc) from exc


def _query_int(name: str) -> int:
    raw = request.args.get(name, "")
    if not raw:
        return 0
    if not _INTEGER.fullmatch(raw):
        raise ValueError(f"invalid integer {raw!r} for {name}")
    return int(raw)


def _parse_id(raw: str) -> UID:
    try:
        return from_base58(raw)
    except ValueError as exc:
        raise err_invalid_request(exc) from exc


def create_restaurant_blueprint(app_ctx: AppContext) -> Blueprint:
    """Routes for creating, reading, listing, updating and deleting restaurants."""
    blueprint = Blueprint("restaurants", __name__, url_prefix="/restaurants")
    blueprint.before_request(_authenticator(app_ctx))

    def store() -> SQLStore:
        return SQLStore(app_ctx.db)

    @blueprint.route("", methods=["POST"])
    def create_restaurant():
        data = _bind_create()
        requester = _current_user()
        CreateRestaurantBiz(store(), requester).create_new_restaurant(data)
        data.mask(DB_TYPE_RESTAURANT)
        return jsonify(simple_success_response(data.fake_id).to_dict())

    @blueprint.route("/<restaurant_id>", methods=["GET"])
    def get_restaurant(restaurant_id):
        uid = _parse_id(restaurant_id)
        requester = _current_user()
        try:
            restaurant = GetRestaurantBiz(store(), requester).get_restaurant(uid.local_id)
        except Exception as exc:
            raise err_invalid_request(exc) from exc
        restaurant.mask(DB_TYPE_RESTAURANT)
        return jsonify(simple_success_response(restaurant).to_dict())

    @blueprint.route("", methods=["GET"])
    def list_restaurants():
        try:
            paging = Paging(page=_query_int("page"), limit=_query_int("limit"))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), HTTPStatus.BAD_REQUEST
        try:
            filter = Filter(user_id=_query_int("user_id"))
        except ValueError as exc:
            raise err_invalid_request(exc) from exc
        paging.process()
        requester = _current_user()

        result = ListRestaurantBiz(store(), requester).list_restaurant(filter, paging)
        for restaurant in result:
            restaurant.mask(DB_TYPE_RESTAURANT)
        body = success_response(result, paging, {"_": filter.user_id})
        return jsonify(body.to_dict())

    @blueprint.route("/<restaurant_id>", methods=["PUT"])
    def update_restaurant(restaurant_id):
        uid = _parse_id(restaurant_id)
        requester = _current_user()
        data = _bind_update()
        UpdateRestaurantBiz(store(), requester).update_restaurant(uid.local_id, data)
        return jsonify(simple_success_response(True).to_dict())

    @blueprint.route("/<restaurant_id>", methods=["DELETE"])
    def delete_restaurant(restaurant_id):
        uid = _parse_id(restaurant_id)
        requester = _current_user()
        DeleteRestaurantBiz(store(), requester).delete_restaurant(uid.local_id)
        return jsonify(simple_success_response(True).to_dict())

    return blueprint


def create_upload_blueprint(app_ctx: AppContext) -> Blueprint:
    """The image upload route."""
    blueprint = Blueprint("upload", __name__)

    @blueprint.route("/upload", methods=["POST"])
    def upload_image():
        file = request.files.get("file")
        if file is None:
            raise err_invalid_request(LookupError("http: no such file"))
        folder = request.form.get("folder", DEFAULT_FOLDER)
        data = file.read()

        provider = app_ctx.upload_provider
        if provider is None:
            raise err_internal(LookupError("no upload provider configured"))

        image = UploadBiz(provider).upload(data, folder, file.filename or "")
        image.fulfill(provider.domain)
        return jsonify(simple_success_response(image).to_dict())

    return blueprint


def create_app(app_ctx: AppContext) -> Flask:
    """Build the web application with its routes and error handling."""
    app = Flask(__name__)
    app.config["PROPAGATE_EXCEPTIONS"] = False
    app.register_error_handler(AppError, handle_app_error)
    app.register_error_handler(HTTPStatus.INTERNAL_SERVER_ERROR, handle_app_error)

    app.register_blueprint(create_restaurant_blueprint(app_ctx))
    app.register_blueprint(create_upload_blueprint(app_ctx))

    authenticate = _authenticator(app_ctx)

    @app.route("/profile", methods=["GET"])
    def profile() -> Any:
        authenticate()
        return jsonify(simple_success_response(_current_user()).to_dict())

    return app