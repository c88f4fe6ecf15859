import json
import logging
import uuid
from datetime import datetime, timezone

import pytest

from chirpy.responses import (
    _decode_params,
    respond_with_code_only,
    respond_with_error,
    respond_with_json,
)


def test_json_response_is_compact():
    response = respond_with_json(200, {"a": 1})
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/json"
    assert response.get_data() == b'{"a":1}'


def test_json_round_trips_nested_payload():
    payload = {"items": [1, 2, {"x": "y"}], "flag": True}
    response = respond_with_json(201, payload)
    assert response.status_code == 201
    assert json.loads(response.get_data()) == payload


def test_uuid_is_written_as_string():
    value = uuid.uuid4()
    response = respond_with_json(200, {"id": value})
    assert json.loads(response.get_data()) == {"id": str(value)}


def test_html_characters_are_escaped():
    payload = {"b": "<&>"}
    response = respond_with_json(200, payload)
    assert b"\\u003c\\u0026\\u003e" in response.get_data()
    assert json.loads(response.get_data()) == payload


def test_datetime_uses_timestamp_text():
    moment = datetime(2024, 1, 2, 3, 4, 5, 120000, tzinfo=timezone.utc)
    response = respond_with_json(200, {"t": moment})
    assert json.loads(response.get_data())["t"] == "2024-01-02 03:04:05.12 +0000 UTC"


def test_datetime_without_fraction_has_no_dot():
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    text = json.loads(respond_with_json(200, {"t": moment}).get_data())["t"]
    assert "." not in text
    assert text.endswith("+0000 UTC")


def test_unserializable_payload_gives_empty_500():
    response = respond_with_json(200, {"x": object()})
    assert response.status_code == 500
    assert response.get_data() == b""


def test_error_response_carries_message():
    response = respond_with_error(400, "Chirp is too long", None)
    assert response.status_code == 400
    assert json.loads(response.get_data()) == {"error": "Chirp is too long"}


def test_server_error_is_logged(caplog):
    caplog.set_level(logging.INFO, logger="chirpy.responses")
    response = respond_with_error(500, "Couldn't create chirp.", ValueError("broken"))
    assert response.status_code == 500
    assert "Responding with 5XX error: Couldn't create chirp." in caplog.text
    assert "broken" in caplog.text


def test_client_error_is_not_logged_as_5xx(caplog):
    caplog.set_level(logging.INFO, logger="chirpy.responses")
    respond_with_error(404, "Chirp not found.", None)
    assert "5XX" not in caplog.text


def test_code_only_response_is_empty():
    response = respond_with_code_only(204)
    assert response.status_code == 204
    assert response.get_data() == b""
    assert "Content-Type" not in response.headers


def test_decode_params_fills_missing_fields():
    assert _decode_params(b'{"body": "hi"}', {"body": str, "token": str}) == {
        "body": "hi",
        "token": "",
    }


def test_decode_params_matches_keys_ignoring_case():
    assert _decode_params(b'{"BODY": "hi"}', {"body": str}) == {"body": "hi"}


def test_decode_params_nested():
    fields = {"event": str, "data": {"user_id": str}}
    result = _decode_params(b'{"event": "e", "data": {"user_id": "u"}}', fields)
    assert result == {"event": "e", "data": {"user_id": "u"}}


@pytest.mark.parametrize("raw", [b"", b"{", b"[]", b'{"body": 5}'])
def test_decode_params_rejects_invalid_bodies(raw):
    with pytest.raises(ValueError):
        _decode_params(raw, {"body": str})