# HTTP surface for the transit store.

import json
import logging
import os
from typing import Iterable, Optional

from flask import Flask, current_app, jsonify, make_response, request, Response

from .config import env_csv, reject_constant
from .errors import BadRequest, InternalError, NotFound, StopboardError
from .models import Update
from .store import TransitStore

log = logging.getLogger("stopboard")

STATIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")
ANY_METHOD = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
UPDATE_PAGE = "update.html"
BAD_UPDATE_PAGE = "badupdate.html"


def text_response(status: int, body: str) -> Response:
    resp = make_response(body + "\n", status)
    resp.mimetype = "text/plain"
    return resp


def error_response(exc: StopboardError) -> Response:
    if isinstance(exc, InternalError):
        return text_response(exc.status, "Internal Server Error")
    return text_response(exc.status, f"400 Bad Request: {exc.message}")


def page_response(name: str, status: int) -> Response:
    path = os.path.join(current_app.static_folder or STATIC_DIR, name)
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except OSError:
        log.error("Static page missing (%s)", path)
        return text_response(500, "500 Internal Server Error")
    return make_response(text, status, {"Content-Type": "text/html; charset=utf-8"})


def json_response(snapshot: object) -> Response:
    try:
        return jsonify(snapshot)
    except (TypeError, ValueError) as exc:
        log.exception("Unable to encode response")
        return error_response(InternalError(str(exc)))


def get_store() -> TransitStore:
    return current_app.extensions["stopboard"]


def create_app(
    store: TransitStore,
    *,
    static_dir: Optional[str] = None,
    cors_origins: Optional[Iterable[str]] = None,
) -> Flask:
    static_dir = static_dir or os.getenv("STOPBOARD_STATIC_DIR") or STATIC_DIR
    if cors_origins is None:
        cors_origins = env_csv("CORS_ALLOWED_ORIGINS", "http://127.0.0.1,http://localhost")
    allowed_origins = set(cors_origins)

    app = Flask(__name__, static_folder=static_dir)
    app.json.sort_keys = False
    app.extensions["stopboard"] = store

    @app.before_request
    def answer_preflight() -> Optional[Response]:
        if request.method == "OPTIONS":
            return make_response("", 204)
        return None

    @app.after_request
    def add_common_headers(resp: Response) -> Response:
        origin = request.headers.get("Origin")
        if origin and origin in allowed_origins:
            resp.headers["Access-Control-Allow-Origin"] = origin
            resp.headers["Vary"] = "Origin"
            resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
            resp.headers["Access-Control-Max-Age"] = "600"

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        return resp

    @app.route("/info", methods=ANY_METHOD)
    def info() -> Response:
        return json_response(get_store().system_snapshot())

    @app.route("/stop", methods=ANY_METHOD)
    def stop_info() -> Response:
        stop_ids = request.args.getlist("id")
        if len(stop_ids) != 1:
            return error_response(BadRequest("Missing stop ID"))

        try:
            snapshot = get_store().station_snapshot(stop_ids[0])
        except NotFound:
            return error_response(BadRequest(f"Invalid stop id ({stop_ids[0]})"))
        return json_response(snapshot)

    @app.route("/update", methods=ANY_METHOD)
    def update() -> Response:
        if request.method != "POST":
            return page_response(UPDATE_PAGE, 400)

        try:
            envelope = Update.from_document(
                json.loads(request.get_data(), parse_constant=reject_constant)
            )
        except (ValueError, RecursionError, BadRequest):
            return page_response(BAD_UPDATE_PAGE, 400)

        try:
            get_store().apply_updates(envelope)
        except StopboardError as exc:
            log.warning("Rejected update: %s", exc.message)
            return error_response(exc)
        return make_response("", 200)

    return app
