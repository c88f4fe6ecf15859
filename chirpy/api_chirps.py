"""HTTP handlers for creating, listing and deleting chirps."""

from __future__ import annotations

import sqlite3
import uuid
from http import HTTPStatus
from typing import Any

from flask import Blueprint, Response, request

from chirpy.auth import AuthError, get_bearer_token, validate_jwt
from chirpy.config import ApiConfig
from chirpy.database import Chirp, NoRowsError
from chirpy.profanity import profanity_check
from chirpy.responses import (
    _decode_params,
    respond_with_code_only,
    respond_with_error,
    respond_with_json,
)

MAX_CHIRP_LENGTH = 140


def _chirp_json(chirp: Chirp) -> dict[str, Any]:
    return {
        "id": chirp.id,
        "created_at": chirp.created_at,
        "updated_at": chirp.updated_at,
        "body": chirp.body,
        "user_id": chirp.user_id,
    }


def create_blueprint(config: ApiConfig) -> Blueprint:
    """Return the chirp routes bound to ``config``."""
    blueprint = Blueprint("chirps", __name__)

    @blueprint.post("/api/chirps")
    def post_chirp() -> Response:
        try:
            params = _decode_params(request.get_data(), {"body": str, "token": str})
        except ValueError as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Couldn't decode parameters", exc
            )
        try:
            auth_token = get_bearer_token(request.headers)
        except AuthError as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Could not find bearer token", exc
            )
        try:
            user_id = validate_jwt(auth_token, config.secret)
        except AuthError as exc:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, "Could not validate token", exc)

        body = params["body"]
        if len(body.encode("utf-8")) > MAX_CHIRP_LENGTH:
            return respond_with_error(HTTPStatus.BAD_REQUEST, "Chirp is too long", None)

        try:
            chirp = config.db.create_chirp(profanity_check(body), user_id)
        except (sqlite3.Error, NoRowsError) as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Couldn't create chirp.", exc
            )
        return respond_with_json(HTTPStatus.CREATED, _chirp_json(chirp))

    @blueprint.get("/api/chirps")
    def get_chirps() -> Response:
        author = request.args.get("author_id", "")
        if author:
            try:
                author_id = uuid.UUID(author)
            except ValueError as exc:
                return respond_with_error(HTTPStatus.BAD_REQUEST, "Invalid Author ID", exc)
            try:
                chirps = config.db.retrieve_chirps_by_author(author_id)
            except sqlite3.Error as exc:
                return respond_with_error(HTTPStatus.NOT_FOUND, "No chirps found", exc)
        else:
            try:
                chirps = config.db.retrieve_all_chirps()
            except sqlite3.Error as exc:
                return respond_with_error(
                    HTTPStatus.INTERNAL_SERVER_ERROR, "Could not retrieve chirps", exc
                )

        if request.args.get("sort", "").lower() == "desc":
            chirps = sorted(chirps, key=lambda chirp: chirp.created_at, reverse=True)

        return respond_with_json(HTTPStatus.OK, [_chirp_json(chirp) for chirp in chirps])

    @blueprint.get("/api/chirps/<chirp_id>")
    def get_chirp(chirp_id: str) -> Response:
        try:
            parsed_id = uuid.UUID(chirp_id)
        except ValueError as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to parse chirp UUID for lookup.", exc
            )
        try:
            chirp = config.db.retrieve_select_chirp(parsed_id)
        except NoRowsError as exc:
            return respond_with_error(HTTPStatus.NOT_FOUND, "Chirp not found.", exc)
        except sqlite3.Error as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to query databse.", exc
            )
        return respond_with_json(HTTPStatus.OK, _chirp_json(chirp))

    @blueprint.delete("/api/chirps/<chirp_id>")
    def delete_chirp(chirp_id: str) -> Response:
        try:
            parsed_id = uuid.UUID(chirp_id)
        except ValueError as exc:
            return respond_with_error(HTTPStatus.NOT_FOUND, "No Chirp ID", exc)
        try:
            chirp = config.db.retrieve_select_chirp(parsed_id)
        except (NoRowsError, sqlite3.Error) as exc:
            return respond_with_error(HTTPStatus.NOT_FOUND, "No chirp found", exc)
        try:
            auth_token = get_bearer_token(request.headers)
        except AuthError as exc:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, "No bearer token", exc)
        try:
            user_id = validate_jwt(auth_token, config.secret)
        except AuthError as exc:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, "No ID in token", exc)

        if user_id != chirp.user_id:
            return respond_with_error(
                HTTPStatus.FORBIDDEN, "User ID mismatch", PermissionError("MISMATCH USER ID")
            )

        try:
            config.db.delete_select_chirp(parsed_id)
        except sqlite3.Error as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Error removing chirp", exc
            )
        return respond_with_code_only(HTTPStatus.NO_CONTENT)

    return blueprint