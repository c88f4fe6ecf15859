"""HTTP handlers for accounts, logins and token refresh."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

import jwt
from flask import Blueprint, Response, request

from chirpy.auth import (
    AuthError,
    check_password,
    get_bearer_token,
    hash_password,
    make_jwt,
    make_refresh_token,
    validate_jwt,
)
from chirpy.config import ApiConfig
from chirpy.database import NoRowsError, User
from chirpy.responses import (
    _decode_params,
    respond_with_code_only,
    respond_with_error,
    respond_with_json,
)

_TOKEN_ERRORS = (jwt.PyJWTError, ValueError, OverflowError)


class _HeaderError(Exception):
    """Raised when the Authorization header holds no usable bearer value."""


def _bearer_from_header() -> str:
    header = request.headers.get("Authorization", "")
    if not header:
        raise _HeaderError("No authorization header found")
    if "Bearer" not in header:
        raise _HeaderError("No bearer field found in authorization header")
    fields = header.split()
    if len(fields) < 2:
        raise _HeaderError("No token found in bearer field")
    return fields[1]


def _user_json(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
        "email": user.email,
        "is_chirpy_red": bool(user.is_chirpy_red),
    }


def create_blueprint(config: ApiConfig) -> Blueprint:
    """Return the user and token routes bound to ``config``."""
    blueprint = Blueprint("users", __name__)

    @blueprint.post("/api/login")
    def check_login() -> Response:
        try:
            params = _decode_params(
                request.get_data(),
                {"email": str, "password": str, "expires_in_seconds": int},
            )
        except ValueError as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Couldn't decode parameters", exc
            )
        try:
            user = config.db.query_hashed_password(params["email"])
        except (NoRowsError, sqlite3.Error) as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to look up hashed pass", exc
            )
        try:
            check_password(user.hashed_password, params["password"])
        except AuthError as exc:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, "Invalid password", exc)
        try:
            issued = make_jwt(user.id, config.secret, config.expires)
        except _TOKEN_ERRORS as exc:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, "Failed to issue token", exc)

        refresh = make_refresh_token()
        try:
            config.db.create_refresh_token(refresh, user.id)
        except (NoRowsError, sqlite3.Error) as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to create refresh token in db", exc
            )

        payload = _user_json(user)
        payload["token"] = issued
        payload["refresh_token"] = refresh
        return respond_with_json(HTTPStatus.OK, payload)

    @blueprint.post("/api/users")
    def add_user() -> Response:
        try:
            params = _decode_params(request.get_data(), {"email": str, "password": str})
        except ValueError as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Couldn't decode parameters", exc
            )
        try:
            hashed = hash_password(params["password"])
        except (AuthError, ValueError) as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Couldn't hash password.", exc
            )
        try:
            user = config.db.create_user(params["email"], hashed)
        except (NoRowsError, sqlite3.Error) as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Couldn't create user.", exc
            )
        return respond_with_json(HTTPStatus.CREATED, _user_json(user))

    @blueprint.post("/api/refresh")
    def refresh_token() -> Response:
        try:
            presented = _bearer_from_header()
        except _HeaderError as exc:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, str(exc), None)
        try:
            stored = config.db.retrieve_select_refresh_token(presented)
        except (NoRowsError, sqlite3.Error):
            return respond_with_error(
                HTTPStatus.UNAUTHORIZED, "No matching token found in DB", None
            )
        if stored.expires_at < datetime.now(timezone.utc) or stored.revoked_at is not None:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, "Refresh token expired", None)
        try:
            fresh = make_jwt(stored.user_id, config.secret, config.expires)
        except _TOKEN_ERRORS as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Error creating refreshed token", exc
            )
        return respond_with_json(HTTPStatus.OK, {"token": fresh})

    @blueprint.post("/api/revoke")
    def revoke_token() -> Response:
        try:
            presented = _bearer_from_header()
        except _HeaderError as exc:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, str(exc), None)
        try:
            config.db.revoke_refresh_token(presented)
        except sqlite3.Error as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Error revoking token", exc
            )
        return respond_with_code_only(HTTPStatus.NO_CONTENT)

    @blueprint.put("/api/users")
    def update_user() -> Response:
        try:
            auth_token = get_bearer_token(request.headers)
        except AuthError as exc:
            return respond_with_error(
                HTTPStatus.UNAUTHORIZED, "Could not find bearer token", exc
            )
        try:
            user_id = validate_jwt(auth_token, config.secret)
        except AuthError as exc:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, "Could not validate token", exc)
        try:
            params = _decode_params(request.get_data(), {"email": str, "password": str})
        except ValueError as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Couldn't decode parameters", exc
            )
        try:
            hashed = hash_password(params["password"])
        except (AuthError, ValueError) as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to hash password", exc
            )
        try:
            updated = config.db.update_user_password(user_id, hashed, params["email"])
        except (NoRowsError, sqlite3.Error) as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Unable to update record", exc
            )
        return respond_with_json(HTTPStatus.OK, _user_json(updated))

    return blueprint