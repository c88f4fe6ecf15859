"""Webhook that upgrades users when the payment provider reports it."""

from __future__ import annotations

import sqlite3
import uuid
from http import HTTPStatus

from flask import Blueprint, Response, request

from chirpy.auth import AuthError, get_api_key
from chirpy.config import ApiConfig
from chirpy.database import NoRowsError
from chirpy.responses import _decode_params, respond_with_code_only, respond_with_error

_UPGRADE_EVENT = "user.upgraded"


def create_blueprint(config: ApiConfig) -> Blueprint:
    """Return the webhook route bound to ``config``."""
    blueprint = Blueprint("polka", __name__)

    @blueprint.post("/api/polka/webhooks")
    def polka_webhook() -> Response:
        try:
            api_key = get_api_key(request.headers)
        except AuthError as exc:
            return respond_with_error(HTTPStatus.UNAUTHORIZED, "No API Key", exc)

        if api_key.lower() != config.polka_key.lower():
            return respond_with_code_only(HTTPStatus.UNAUTHORIZED)

        try:
            params = _decode_params(
                request.get_data(), {"event": str, "data": {"user_id": str}}
            )
        except ValueError as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Couldn't decode parameters", exc
            )

        if params["event"].lower() != _UPGRADE_EVENT:
            return respond_with_code_only(HTTPStatus.NO_CONTENT)

        try:
            user_id = uuid.UUID(params["data"]["user_id"])
        except ValueError as exc:
            return respond_with_error(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to parse UUID", exc
            )

        try:
            config.db.upgrade_to_chirpy_red(user_id)
        except (NoRowsError, sqlite3.Error):
            return respond_with_code_only(HTTPStatus.NOT_FOUND)
        return respond_with_code_only(HTTPStatus.NO_CONTENT)

    return blueprint