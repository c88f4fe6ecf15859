"""Censoring of banned words in chirp bodies."""

from __future__ import annotations

_PROFANE = frozenset({"kerfuffle", "sharbert", "fornax"})
_CENSOR = "****"


def profanity_check(raw_body: str) -> str:
    """Replace every banned word with asterisks and join the words with single spaces.

    A word matches only when it equals a banned word ignoring case; a word with
    punctuation attached is left as it is.
    """
    return " ".join(
        _CENSOR if word.lower() in _PROFANE else word for word in raw_body.split()
    )