import threading
from datetime import timedelta

import pytest

from chirpy.config import ApiConfig, parse_duration
from chirpy.database import open_database


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1h", timedelta(hours=1)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5h", timedelta(hours=1.5)),
        ("-2s", timedelta(seconds=-2)),
        ("+2s", timedelta(seconds=2)),
        ("0", timedelta(0)),
        ("300ms", timedelta(milliseconds=300)),
        ("250us", timedelta(microseconds=250)),
        (".5s", timedelta(seconds=0.5)),
    ],
)
def test_parse_duration_values(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "1", "abc", ".s", "1x", "-", "1.5.3s"])
def test_parse_duration_rejects_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_parse_duration_reports_unknown_unit():
    with pytest.raises(ValueError, match="unknown unit"):
        parse_duration("5d")


def test_parse_duration_rejects_overflow():
    with pytest.raises(ValueError):
        parse_duration("9999999999h")


def test_parse_duration_components_add_up():
    assert parse_duration("2h45m") == parse_duration("2h") + parse_duration("45m")


@pytest.fixture
def queries():
    db = open_database(":memory:")
    yield db
    db.close()


def test_record_hit_counts(queries):
    config = ApiConfig(db=queries)
    assert config.fileserver_hits == 0
    assert config.record_hit() == 1
    assert config.record_hit() == 2
    assert config.fileserver_hits == 2


def test_record_hit_is_thread_safe(queries):
    config = ApiConfig(db=queries)

    def worker():
        for _ in range(100):
            config.record_hit()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert config.fileserver_hits == 800


def test_from_env_reads_variables(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DB_URL", str(tmp_path / "chirpy.db"))
    monkeypatch.setenv("SECRET", "secret")
    monkeypatch.setenv("EXPIRES", "1h")
    monkeypatch.setenv("POLKA_KEY", "placeholder")
    config = ApiConfig.from_env()
    try:
        assert config.secret == "secret"
        assert config.expires == timedelta(hours=1)
        assert config.polka_key == "placeholder"
        user = config.db.create_user("alice@example.com", "hashed")
        assert config.db.retrieve_based_on_id(user.id).email == "alice@example.com"
    finally:
        config.db.close()


def test_from_env_invalid_expiry_is_zero(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DB_URL", str(tmp_path / "chirpy.db"))
    monkeypatch.setenv("EXPIRES", "soon")
    config = ApiConfig.from_env()
    try:
        assert config.expires == timedelta(0)
    finally:
        config.db.close()


def test_from_env_loads_dotenv_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DB_URL", str(tmp_path / "chirpy.db"))
    monkeypatch.setenv("POLKA_KEY", "unset")
    monkeypatch.delenv("POLKA_KEY")
    (tmp_path / ".env").write_text("POLKA_KEY=placeholder\n")
    config = ApiConfig.from_env()
    try:
        assert config.polka_key == "placeholder"
    finally:
        config.db.close()