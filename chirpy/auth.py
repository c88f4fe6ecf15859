"""Password hashing, JWT access tokens, refresh tokens and header parsing."""

from __future__ import annotations

import secrets
import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

_ISSUER = "chirpy"
_MIN_COST = 4
_MAX_PASSWORD_BYTES = 72
_HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]


class AuthError(Exception):
    """Raised when credentials are missing, malformed or invalid."""


def _authorization(headers: Mapping[str, str]) -> str:
    value = headers.get("Authorization")
    if value is None:
        value = next(
            (v for k, v in headers.items() if k.lower() == "authorization"), ""
        )
    return value or ""


def get_api_key(headers: Mapping[str, str]) -> str:
    """Return the key from an ``Authorization: ApiKey <key>`` header."""
    header = _authorization(headers)
    if not header:
        raise AuthError("FAILED TO FIND AUTHORIZATION HEADER")
    fields = header.split()
    if len(fields) < 2:
        raise AuthError("FAILED TO FIND VALID TOKEN STRING")
    if fields[0].lower() != "apikey":
        raise AuthError("FAILED TO FIND APIKEY IN AUTHORIZATION HEADER")
    return fields[1]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt at the minimum cost."""
    encoded = password.encode("utf-8")
    if len(encoded) > _MAX_PASSWORD_BYTES:
        raise AuthError("password length exceeds 72 bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=_MIN_COST)).decode("ascii")


def check_password(hashed: str, password: str) -> None:
    """Raise AuthError unless ``password`` matches the bcrypt ``hashed`` value."""
    if not hashed or not password:
        raise AuthError("EXPECTED TWO NON-NIL VALUES")
    try:
        matches = bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError as exc:
        raise AuthError("INVALID PASSWORD") from exc
    if not matches:
        raise AuthError("INVALID PASSWORD")


def make_refresh_token() -> str:
    """Return 32 random bytes as a 64-character hex string."""
    return secrets.token_hex(32)


def make_jwt(user_id: uuid.UUID, token_secret: str, expires_in: timedelta) -> str:
    """Issue an HS256 token whose subject is ``user_id``."""
    now = datetime.now(timezone.utc)
    claims = {
        "iss": _ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
        "sub": str(user_id),
    }
    return jwt.encode(claims, token_secret.encode("utf-8"), algorithm="HS256")


def validate_jwt(token_string: str, token_secret: str) -> uuid.UUID:
    """Verify a token and return the user id held in its subject."""
    try:
        claims = jwt.decode(
            token_string,
            token_secret.encode("utf-8"),
            algorithms=_HMAC_ALGORITHMS,
            options={"verify_iat": False},
        )
    except jwt.PyJWTError as exc:
        raise AuthError(str(exc)) from exc
    subject = claims.get("sub", "")
    if not isinstance(subject, str):
        raise AuthError("invalid type for claim: sub is invalid")
    try:
        return uuid.UUID(subject)
    except ValueError as exc:
        raise AuthError(f"invalid UUID in subject: {subject!r}") from exc


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    header = _authorization(headers)
    if not header:
        raise AuthError("FAILED TO FIND AUTHORIZATION HEADER")
    if "Bearer" not in header:
        raise AuthError("FAILED TO FIND BEARER IN AUTHORIZATION HEADER")
    fields = header.split()
    if len(fields) < 2:
        raise AuthError("FAILED TO FIND VALID TOKEN STRING")
    return fields[1]