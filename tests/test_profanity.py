import pytest

from chirpy.profanity import profanity_check


def test_censors_banned_word_in_sentence():
    result = profanity_check("This is a kerfuffle opinion I need to share with the world")
    assert result == "This is a **** opinion I need to share with the world"


@pytest.mark.parametrize("word", ["kerfuffle", "Sharbert", "FORNAX", "fOrNaX"])
def test_banned_words_are_censored_ignoring_case(word):
    assert profanity_check(word) == "****"


@pytest.mark.parametrize("word", ["fornax!", "sharbert.", "kerfuffles"])
def test_words_with_extra_characters_are_kept(word):
    assert profanity_check(word) == word


def test_empty_body_stays_empty():
    assert profanity_check("") == ""


def test_surrounding_whitespace_is_dropped():
    assert profanity_check("  kerfuffle  ") == "****"


def test_word_count_is_preserved():
    body = "one\ttwo  three\nfornax four"
    assert len(profanity_check(body).split(" ")) == len(body.split())


def test_clean_text_round_trips():
    body = "hello there chirpy world"
    assert profanity_check(body) == body