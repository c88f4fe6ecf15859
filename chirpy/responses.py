"""JSON request decoding and HTTP response helpers."""

from __future__ import annotations

import dataclasses
import json
import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from flask import Response

_log = logging.getLogger(__name__)

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.strftime("%Y-%m-%d %H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.strftime("%z")
    name = moment.tzname()
    if not name or (name.startswith("UTC") and name != "UTC"):
        name = offset
    return f"{text} {offset} {name}"


def _default(obj: Any) -> Any:
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, datetime):
        return _format_time(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    raise TypeError(f"unsupported type: {type(obj).__name__}")


def _encode(payload: Any) -> bytes:
    text = json.dumps(
        payload,
        default=_default,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text.encode("utf-8")


def _fill(value: Any, fields: Mapping[str, Any]) -> dict[str, Any]:
    result = {
        name: _fill(None, kind) if isinstance(kind, Mapping) else kind()
        for name, kind in fields.items()
    }
    if value is None:
        return result
    if not isinstance(value, dict):
        raise ValueError(f"cannot unmarshal {type(value).__name__} into an object")
    for key, item in value.items():
        name = key if key in fields else next(
            (candidate for candidate in fields if candidate.casefold() == key.casefold()),
            None,
        )
        if name is None or item is None:
            continue
        kind = fields[name]
        if isinstance(kind, Mapping):
            result[name] = _fill(item, kind)
            continue
        if not isinstance(item, kind) or (kind is int and isinstance(item, bool)):
            raise ValueError(f"cannot unmarshal {type(item).__name__} into field {name}")
        result[name] = item
    return result


def _decode_params(raw: bytes, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Decode the first JSON value in ``raw`` into the named fields.

    ``fields`` maps each field name to its type (``str`` or ``int``) or to a
    nested mapping of the same form. Keys match field names ignoring case,
    unknown keys are ignored and missing fields get empty values.
    Raises ValueError when the body is not valid for the fields.
    """
    text = raw.decode("utf-8").lstrip(" \t\r\n")
    try:
        value, _ = json.JSONDecoder().raw_decode(text)
    except json.JSONDecodeError as exc:
        raise ValueError(str(exc) if text else "EOF") from exc
    return _fill(value, fields)


def respond_with_json(code: int, payload: Any) -> Response:
    """Return ``payload`` as a compact JSON response with status ``code``."""
    try:
        body = _encode(payload)
    except (TypeError, ValueError) as exc:
        _log.error("Error marshalling JSON: %s", exc)
        return Response(b"", status=500, content_type="application/json")
    return Response(body, status=code, content_type="application/json")


def respond_with_error(code: int, msg: str, err: BaseException | None) -> Response:
    """Log ``err`` and return ``{"error": msg}`` with status ``code``."""
    if err is not None:
        _log.info("%s", err)
    if code > 499:
        _log.error("Responding with 5XX error: %s", msg)
    return respond_with_json(code, {"error": msg})


def respond_with_code_only(code: int) -> Response:
    """Return an empty response with status ``code`` and no content type."""
    response = Response(b"", status=code)
    del response.headers["Content-Type"]
    return response