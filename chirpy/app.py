"""Application assembly, the admin and health routes, and the command entry point."""

from __future__ import annotations

import argparse
import contextlib
import logging
import os
import posixpath
import sqlite3
from http import HTTPStatus
from pathlib import Path
from urllib.parse import quote

from flask import Flask, Response, request, send_file

from chirpy import api_chirps, api_polka, api_users
from chirpy.config import ApiConfig
from chirpy.responses import respond_with_code_only

FILEPATH_ROOT = "."
PORT = 8080
_APP_PREFIX = "/app"
_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]

_METRICS_PAGE = """
<html>

<body>
\t<h1>Welcome, Chirpy Admin</h1>
\t<p>Chirpy has been visited {hits} times!</p>
</body>

</html>
\t"""

_HTML_ESCAPES = str.maketrans(
    {"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&#34;", "'": "&#39;"}
)

_ALT_SEPARATORS = [sep for sep in (os.sep, os.altsep) if sep and sep != "/"]

_log = logging.getLogger(__name__)


def _safe_join(root: str, relative: str) -> str | None:
    """Join ``relative`` under ``root``, or return None if it would escape it."""
    normalized = posixpath.normpath(relative)
    if (
        any(sep in normalized for sep in _ALT_SEPARATORS)
        or os.path.isabs(normalized)
        or normalized.startswith("/")
        or normalized == ".."
        or normalized.startswith("../")
    ):
        return None
    if normalized == ".":
        return root
    return os.path.join(root, normalized)


def _text(body: str, status: int) -> Response:
    return Response(body, status=status, content_type="text/plain; charset=utf-8")


def _redirect(location: str) -> Response:
    query = request.query_string.decode("latin-1")
    if query:
        location += "?" + query
    return Response(b"", status=HTTPStatus.MOVED_PERMANENTLY, headers={"Location": location})


def _directory_listing(directory: Path) -> Response:
    lines = ["<!doctype html>", '<meta name="viewport" content="width=device-width">', "<pre>"]
    for entry in sorted(directory.iterdir(), key=lambda item: item.name):
        name = entry.name + ("/" if entry.is_dir() else "")
        href = quote(name, safe="/").translate(_HTML_ESCAPES)
        lines.append(f'<a href="{href}">{name.translate(_HTML_ESCAPES)}</a>')
    lines.append("</pre>")
    return Response(
        "\n".join(lines) + "\n", status=HTTPStatus.OK, content_type="text/html; charset=utf-8"
    )


def _serve_static(root: Path, url_path: str) -> Response:
    if url_path.endswith("/index.html"):
        return _redirect("./")
    relative = url_path.lstrip("/")
    target = _safe_join(str(root), relative) if relative else str(root)
    if target is None:
        return _text("404 page not found\n", HTTPStatus.NOT_FOUND)
    path = Path(target)
    if not path.exists():
        return _text("404 page not found\n", HTTPStatus.NOT_FOUND)
    if path.is_dir():
        if not url_path.endswith("/"):
            return _redirect(path.name + "/")
        index = path / "index.html"
        if index.is_file():
            return send_file(index)
        return _directory_listing(path)
    if url_path.endswith("/"):
        return _redirect("../" + path.name)
    return send_file(path)


def create_app(config: ApiConfig, static_root: str = FILEPATH_ROOT) -> Flask:
    """Build the web application serving the API and the files under ``static_root``."""
    app = Flask(__name__)
    root = Path(static_root).resolve()

    for module in (api_chirps, api_polka, api_users):
        app.register_blueprint(module.create_blueprint(config))

    @app.route(f"{_APP_PREFIX}/", methods=_ALL_METHODS)
    @app.route(f"{_APP_PREFIX}/<path:_subpath>", methods=_ALL_METHODS)
    def file_server(_subpath: str = "") -> Response:
        config.record_hit()
        return _serve_static(root, request.path[len(_APP_PREFIX):])

    @app.get("/api/healthz")
    def readiness() -> Response:
        return _text(HTTPStatus.OK.phrase, HTTPStatus.OK)

    @app.get("/admin/metrics")
    def metrics() -> Response:
        page = _METRICS_PAGE.format(hits=config.fileserver_hits)
        return Response(page, status=HTTPStatus.OK, content_type="text/html")

    @app.post("/admin/reset")
    def reset() -> Response:
        with contextlib.suppress(sqlite3.Error):
            config.db.delete_all_users()
        return respond_with_code_only(HTTPStatus.OK)

    app.register_error_handler(
        HTTPStatus.NOT_FOUND, lambda _exc: _text("404 page not found\n", HTTPStatus.NOT_FOUND)
    )
    app.register_error_handler(
        HTTPStatus.METHOD_NOT_ALLOWED,
        lambda _exc: _text("Method Not Allowed\n", HTTPStatus.METHOD_NOT_ALLOWED),
    )
    return app


def main(argv: list[str] | None = None) -> int:
    """Start the server on port 8080, configured from the environment."""
    parser = argparse.ArgumentParser(prog="chirpy", description="Run the Chirpy server.")
    parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        config = ApiConfig.from_env()
    except sqlite3.Error as exc:
        _log.error("Error loading database: %s", exc)
        return 1
    app = create_app(config, FILEPATH_ROOT)
    _log.info("Serving files from %s on port: %s", FILEPATH_ROOT, PORT)
    app.run(host="0.0.0.0", port=PORT)
    return 0