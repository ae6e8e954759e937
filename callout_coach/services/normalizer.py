"""Text normalisation for spoken-phrase comparison.

Lower-cases, strips punctuation and diacritics and collapses whitespace so
that a transcript and a scripted line compare on words alone. Also carries
the NATO phonetic alphabet used to expand aircraft tail numbers
("N443DF" -> "November Four Four Three Delta Foxtrot") before grading.
"""

from __future__ import annotations

import re
import unicodedata

_APOSTROPHES = re.compile(r"['\u2018\u2019\u02bc`]")
_HYPHENS = re.compile(r"[\u2010-\u2015-]")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

NATO_ALPHABET: dict[str, str] = {
    "A": "Alpha",
    "B": "Bravo",
    "C": "Charlie",
    "D": "Delta",
    "E": "Echo",
    "F": "Foxtrot",
    "G": "Golf",
    "H": "Hotel",
    "I": "India",
    "J": "Juliet",
    "K": "Kilo",
    "L": "Lima",
    "M": "Mike",
    "N": "November",
    "O": "Oscar",
    "P": "Papa",
    "Q": "Quebec",
    "R": "Romeo",
    "S": "Sierra",
    "T": "Tango",
    "U": "Uniform",
    "V": "Victor",
    "W": "Whiskey",
    "X": "X-ray",
    "Y": "Yankee",
    "Z": "Zulu",
    "0": "Zero",
    "1": "One",
    "2": "Two",
    "3": "Three",
    "4": "Four",
    "5": "Five",
    "6": "Six",
    "7": "Seven",
    "8": "Eight",
    "9": "Nine",
}

# Marker letter N, at least one digit, four or more characters overall.
TAIL_NUMBER = re.compile(r"\b[Nn](?=[0-9A-Za-z]*[0-9])[0-9A-Za-z]{3,}\b")


def normalize(text: str | None) -> str:
    """Lower-case, strip diacritics and punctuation, collapse whitespace.

    Apostrophes vanish entirely so contractions stay one word
    ("don't" -> "dont"); hyphens and other symbols become word breaks.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFKD", str(text))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.lower()
    text = _APOSTROPHES.sub("", text)
    text = _HYPHENS.sub(" ", text)
    text = _NON_ALNUM.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(text: str | None) -> list[str]:
    """Split normalised text into words."""
    return [word for word in normalize(text).split(" ") if word]


def to_nato_tail(tail: str) -> str:
    """Spell an identifier out in NATO words: "N443DF" -> "November Four ..."."""
    return " ".join(NATO_ALPHABET.get(ch, ch) for ch in tail.upper())


def expand_tail_numbers(text: str | None) -> str:
    """Replace every tail-number-like token in *text* with its NATO spelling."""
    if not text:
        return ""
    return TAIL_NUMBER.sub(lambda m: to_nato_tail(m.group(0)), str(text))


def normalize_spoken(text: str | None, expand: bool = True) -> str:
    """Normalise for whole-string comparison.

    With *expand*, every digit becomes its word ("4" -> "four") and every
    single-letter word becomes its NATO word ("d" -> "delta"), so "N 4 D"
    and "november four delta" compare equal.
    """
    cleaned = normalize(text)
    if not expand or not cleaned:
        return cleaned
    cleaned = re.sub(r"[0-9]", lambda m: f" {NATO_ALPHABET[m.group(0)]} ", cleaned)
    words = [
        NATO_ALPHABET[word.upper()] if len(word) == 1 and word.isalpha() else word
        for word in cleaned.split()
    ]
    return normalize(" ".join(words))
