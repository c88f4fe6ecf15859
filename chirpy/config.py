"""Server configuration read from the environment."""

from __future__ import annotations

import os
import re
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from fractions import Fraction

from dotenv import load_dotenv

from chirpy.database import Queries, open_database

_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_COMPONENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")
_MAX_NANOSECONDS = 2**63 - 1


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"``, ``"1.5s"`` or ``"-300ms"``.

    Raises ValueError when the text is not a valid duration.
    """
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"time: invalid duration {text!r}")

    total = Fraction(0)
    position = 0
    while position < len(rest):
        match = _COMPONENT.match(rest, position)
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise ValueError(f"time: invalid duration {text!r}")
        if not unit:
            raise ValueError(f"time: missing unit in duration {text!r}")
        if unit not in _UNITS:
            raise ValueError(f"time: unknown unit {unit!r} in duration {text!r}")
        value = Fraction(int(whole or "0"))
        if fraction:
            value += Fraction(int(fraction), 10 ** len(fraction))
        total += value * _UNITS[unit]
        position = match.end()

    nanoseconds = int(total)
    limit = _MAX_NANOSECONDS + 1 if negative else _MAX_NANOSECONDS
    if nanoseconds > limit:
        raise ValueError(f"time: invalid duration {text!r}")
    if negative:
        nanoseconds = -nanoseconds
    return timedelta(microseconds=nanoseconds) / 1000


@dataclass
class ApiConfig:
    """Shared state of the running server."""

    db: Queries
    secret: str = ""
    expires: timedelta = timedelta(0)
    polka_key: str = ""
    _hits: int = field(default=0, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    @property
    def fileserver_hits(self) -> int:
        with self._lock:
            return self._hits

    def record_hit(self) -> int:
        """Count one file-server visit and return the new total."""
        with self._lock:
            self._hits += 1
            return self._hits

    @classmethod
    def from_env(cls) -> ApiConfig:
        """Build a configuration from the environment and a ``.env`` file, if any.

        Reads DB_URL, SECRET, EXPIRES and POLKA_KEY; an invalid EXPIRES gives
        a zero lifetime.
        """
        load_dotenv(".env")
        try:
            expires = parse_duration(os.environ.get("EXPIRES", ""))
        except ValueError:
            expires = timedelta(0)
        return cls(
            db=open_database(os.environ.get("DB_URL", "")),
            secret=os.environ.get("SECRET", ""),
            expires=expires,
            polka_key=os.environ.get("POLKA_KEY", ""),
        )