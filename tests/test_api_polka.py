import uuid
from datetime import timedelta

import pytest
from flask import Flask

from chirpy.api_polka import create_blueprint
from chirpy.config import ApiConfig
from chirpy.database import open_database

KEY_HEADER = {"Authorization": "ApiKey placeholder"}


@pytest.fixture
def config():
    queries = open_database(":memory:")
    cfg = ApiConfig(
        db=queries, secret="secret", expires=timedelta(hours=1), polka_key="placeholder"
    )
    yield cfg
    queries.close()


@pytest.fixture
def client(config):
    app = Flask(__name__)
    app.register_blueprint(create_blueprint(config))
    return app.test_client()


@pytest.fixture
def user(config):
    return config.db.create_user("alice@example.com", "hashed")


def _event(name, user_id):
    return {"event": name, "data": {"user_id": str(user_id)}}


def test_upgrade_marks_user_red(config, client, user):
    response = client.post(
        "/api/polka/webhooks", json=_event("user.upgraded", user.id), headers=KEY_HEADER
    )
    assert response.status_code == 204
    assert response.get_data() == b""
    assert config.db.retrieve_based_on_id(user.id).is_chirpy_red is True


def test_key_comparison_ignores_case(config, client, user):
    response = client.post(
        "/api/polka/webhooks",
        json=_event("USER.UPGRADED", user.id),
        headers={"Authorization": "apikey PLACEHOLDER"},
    )
    assert response.status_code == 204
    assert config.db.retrieve_based_on_id(user.id).is_chirpy_red is True


def test_other_events_are_ignored(config, client, user):
    response = client.post(
        "/api/polka/webhooks", json=_event("user.payment_failed", user.id), headers=KEY_HEADER
    )
    assert response.status_code == 204
    assert config.db.retrieve_based_on_id(user.id).is_chirpy_red is not True


def test_missing_key_is_unauthorized(client, user):
    response = client.post("/api/polka/webhooks", json=_event("user.upgraded", user.id))
    assert response.status_code == 401
    assert response.get_json() == {"error": "No API Key"}


def test_wrong_key_is_unauthorized(config, client, user):
    response = client.post(
        "/api/polka/webhooks",
        json=_event("user.upgraded", user.id),
        headers={"Authorization": "ApiKey token"},
    )
    assert response.status_code == 401
    assert response.get_data() == b""
    assert config.db.retrieve_based_on_id(user.id).is_chirpy_red is not True


def test_unknown_user_is_not_found(client):
    response = client.post(
        "/api/polka/webhooks", json=_event("user.upgraded", uuid.uuid4()), headers=KEY_HEADER
    )
    assert response.status_code == 404


def test_bad_user_id(client):
    response = client.post(
        "/api/polka/webhooks", json=_event("user.upgraded", "nobody"), headers=KEY_HEADER
    )
    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to parse UUID"}


def test_invalid_json(client):
    response = client.post(
        "/api/polka/webhooks",
        data="{oops",
        content_type="application/json",
        headers=KEY_HEADER,
    )
    assert response.status_code == 500
    assert response.get_json() == {"error": "Couldn't decode parameters"}