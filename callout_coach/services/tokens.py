"""Token construction with the auxiliary keys the matcher compares on.

Every key is a pure function of the normalised word:

  - digits / number_value / number_slots for spoken numbers
    ("niner" -> "9", "forty" -> "40" -> ["4", "0"])
  - skeleton, the word with vowels stripped and repeats collapsed
  - phonetic, a Soundex-style code
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from callout_coach.models import Token
from callout_coach.services.normalizer import tokenize

# Includes the usual radio pronunciations and common recogniser mishearings.
NUMBER_WORDS: dict[str, str] = {
    "zero": "0",
    "oh": "0",
    "o": "0",
    "one": "1",
    "won": "1",
    "two": "2",
    "three": "3",
    "tree": "3",
    "four": "4",
    "fower": "4",
    "five": "5",
    "six": "6",
    "seven": "7",
    "eight": "8",
    "ate": "8",
    "nine": "9",
    "niner": "9",
    "ten": "10",
    "eleven": "11",
    "twelve": "12",
    "thirteen": "13",
    "fourteen": "14",
    "fouteen": "14",
    "fiveteen": "15",
    "fifteen": "15",
    "sixteen": "16",
    "seventeen": "17",
    "eighteen": "18",
    "nineteen": "19",
    "twenty": "20",
    "thirty": "30",
    "fourty": "40",
    "forty": "40",
    "fifty": "50",
    "sixty": "60",
    "seventy": "70",
    "eighty": "80",
    "ninety": "90",
}

_SOUNDEX_CODES: dict[str, str] = {
    **dict.fromkeys("BFPV", "1"),
    **dict.fromkeys("CGJKQSXZ", "2"),
    **dict.fromkeys("DT", "3"),
    "L": "4",
    **dict.fromkeys("MN", "5"),
    "R": "6",
}

_VOWELS = re.compile(r"[aeiou]")
_REPEATS = re.compile(r"(.)\1+")


def digits_only(word: str) -> str:
    return re.sub(r"\D", "", word)


def has_digits(word: str) -> bool:
    return any(ch.isdigit() for ch in word)


def number_value(word: str) -> str | None:
    """Canonical digit string for a numeral or number-word, else None."""
    if not word:
        return None
    if word.isdigit():
        return word
    return NUMBER_WORDS.get(word)


def skeleton(word: str) -> str:
    cleaned = re.sub(r"[^a-z0-9]", "", word)
    if not cleaned:
        return ""
    return _REPEATS.sub(r"\1", _VOWELS.sub("", cleaned))


def soundex(word: str) -> str:
    """Soundex-style code: first letter plus up to three consonant classes.

    Vowels neither emit a code nor separate two consonants of the same class.
    """
    cleaned = re.sub(r"[^A-Z]", "", word.upper())
    if not cleaned:
        return ""
    prev = _SOUNDEX_CODES.get(cleaned[0], "")
    out = cleaned[0]
    for ch in cleaned[1:]:
        if len(out) >= 4:
            break
        code = _SOUNDEX_CODES.get(ch, "")
        if code and code != prev:
            out += code
        prev = code or prev
    return (out + "000")[:4]


def build_token(word: str, display: str | None = None, index: int = 0) -> Token:
    """Build a Token for an already-normalised *word*."""
    numeric = number_value(word)
    digits = digits_only(word) or numeric or ""
    return Token(
        word=word,
        display=display if display is not None else word,
        digits=digits,
        has_digits=has_digits(word),
        number_value=numeric,
        number_slots=tuple(digits),
        skeleton=skeleton(word),
        phonetic=soundex(word),
        index=index,
    )


def _tokens_from_text(text: str) -> list[tuple[str, str]]:
    """(word, display) pairs; each word keeps the whitespace chunk it came from."""
    pairs: list[tuple[str, str]] = []
    for chunk in text.split():
        for word in tokenize(chunk):
            pairs.append((word, chunk))
    return pairs


def _tokens_from_record(item: Any) -> list[tuple[str, str]]:
    if item is None:
        return []
    if isinstance(item, Token):
        source, display = item.word or item.display, item.display
    elif isinstance(item, str):
        source, display = item, item
    elif isinstance(item, dict):
        source = item.get("word") or item.get("display") or item.get("raw") or ""
        display = item.get("display") or item.get("word") or item.get("raw")
    else:
        raise TypeError(f"Unsupported token record: {type(item).__name__}")
    return [(word, display or word) for word in tokenize(source)]


def create_token_list(source: str | Iterable[Any] | None) -> list[Token]:
    """Build a fresh, 0-indexed token list from text or token-like records.

    *source* may be a string, a list/tuple of strings, dicts carrying
    ``word``/``display``/``raw``, or Tokens, or None. Records that normalise
    to nothing are dropped before indexing.

    Raises:
        TypeError: if *source* is any other type
    """
    if source is None:
        return []
    if isinstance(source, str):
        pairs = _tokens_from_text(source)
    elif isinstance(source, (list, tuple)):
        pairs = [pair for item in source for pair in _tokens_from_record(item)]
    else:
        raise TypeError(
            f"Expected text or a list of token records, got {type(source).__name__}"
        )
    return [build_token(word, display, idx) for idx, (word, display) in enumerate(pairs)]
