"""Token-level alignment between an expected phrase and a transcript.

Each expected token looks for its partner among the spoken tokens nobody
has claimed yet, trying a fixed cascade from strict to loose:

  1. exact word
  2. multi-digit numeric value ("40" <-> "forty")
  3. single digit claimed from a spoken number's digit slots
     ("four" and "three" both claim a slot of "43")
  4. prefix containment ("iceman" <-> "ice")
  5. Soundex-style phonetic code
  6. consonant skeleton
  7. bounded Levenshtein, best ratio wins

The first tier that produces a candidate wins; only the fuzzy tier looks for
the best candidate. The assignment is greedy and order-preserving, which is
plenty for radio calls a few words long.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from callout_coach.models import (
    AnnotatedToken,
    ScoreExtra,
    ScoreMatch,
    ScoreMiss,
    ScoreOptions,
    ScoreResult,
    Token,
)
from callout_coach.services.edit_distance import distance_limit, levenshtein, similarity_ratio
from callout_coach.services.tokens import create_token_list

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchCandidate:
    index: int
    kind: str
    score: float = 1.0
    consumed: bool = True


def _is_prefix_like(a: str, b: str) -> bool:
    if a == b:
        return False
    if any(ch.isdigit() for ch in a + b):
        return False
    if min(len(a), len(b)) < 3:
        return False
    if abs(len(a) - len(b)) > 3:
        return False
    return a.startswith(b) or b.startswith(a)


def find_match(
    expected: Token,
    said_tokens: Sequence[Token],
    used: set[int],
    slot_usage: dict[int, set[int]],
    fuzzy_threshold: float = 0.82,
) -> MatchCandidate | None:
    """Find the spoken token that best stands in for *expected*.

    *used* holds indices of fully consumed spoken tokens. *slot_usage* maps a
    spoken-token index to the digit slots already claimed from it; a
    single-digit match claims one slot and only consumes the token once all
    its slots are gone. The caller owns both and adds consumed indices to
    *used*; *slot_usage* is updated here.
    """
    available = [(i, token) for i, token in enumerate(said_tokens) if i not in used]
    if not available:
        return None

    for i, token in available:
        if token.word == expected.word:
            return MatchCandidate(i, "exact")

    number = expected.number_value or expected.digits or ""

    if len(number) > 1:
        for i, token in available:
            spoken = token.number_value or token.digits or ""
            if spoken and spoken == number:
                return MatchCandidate(i, "digits" if token.has_digits else "number")

    if len(number) == 1:
        for i, token in available:
            slots = token.number_slots
            if not slots:
                continue
            claimed = slot_usage.setdefault(i, set())
            for slot, digit in enumerate(slots):
                if slot not in claimed and digit == number:
                    claimed.add(slot)
                    return MatchCandidate(
                        i,
                        "number-chunk" if len(slots) > 1 else "number",
                        consumed=len(claimed) >= len(slots),
                    )

    for i, token in available:
        if _is_prefix_like(expected.word, token.word):
            return MatchCandidate(i, "prefix")

    if expected.phonetic:
        for i, token in available:
            if (
                token.phonetic == expected.phonetic
                and abs(len(token.word) - len(expected.word)) <= 3
            ):
                return MatchCandidate(i, "phonetic")

    if expected.skeleton:
        for i, token in available:
            if token.skeleton and token.skeleton == expected.skeleton:
                return MatchCandidate(i, "skeleton")

    best: int | None = None
    best_ratio = 0.0
    for i, token in available:
        dist = levenshtein(expected.word, token.word)
        if dist == 0:
            return MatchCandidate(i, "exact")
        ratio = similarity_ratio(expected.word, token.word, dist)
        if (
            dist <= distance_limit(expected.word, token.word)
            and ratio >= fuzzy_threshold
            and ratio > best_ratio
        ):
            best, best_ratio = i, ratio
    if best is not None:
        return MatchCandidate(best, "fuzzy", round(best_ratio, 2))

    return None


def annotate(
    expected_tokens: Iterable[Token],
    said_tokens: Iterable[Token],
    matches: Iterable[ScoreMatch],
) -> tuple[list[AnnotatedToken], list[AnnotatedToken]]:
    """Per-token match/miss/extra status for both sides, in original order."""
    by_expected = {m.expected_index: m for m in matches}
    by_said = {m.said_index: m for m in by_expected.values()}

    expected_annotated = []
    for token in expected_tokens:
        match = by_expected.get(token.index)
        expected_annotated.append(
            AnnotatedToken(
                index=token.index,
                word=token.word,
                display=token.display,
                status="match" if match else "miss",
                kind=match.kind if match else "missing",
                said_index=match.said_index if match else None,
            )
        )

    said_annotated = []
    for token in said_tokens:
        match = by_said.get(token.index)
        said_annotated.append(
            AnnotatedToken(
                index=token.index,
                word=token.word,
                display=token.display,
                status="match" if match else "extra",
                kind=match.kind if match else "extra",
                expected_index=match.expected_index if match else None,
            )
        )
    return expected_annotated, said_annotated


def percent_of(matched: int, expected: int) -> int:
    """Whole-number percentage; nothing expected counts as a full pass."""
    if not expected:
        return 100
    # half up, not banker's rounding
    return (matched * 200 + expected) // (2 * expected)


def run_score(
    expected: str | list[Any] | None,
    transcript: str | None,
    options: ScoreOptions | None = None,
) -> ScoreResult:
    """Align *transcript* against *expected* and score the result.

    *expected* is a phrase or a list of token-like records. Token lists and
    slot bookkeeping are rebuilt on every call, so concurrent calls never
    share state.
    """
    opts = options or ScoreOptions()
    expected_tokens = create_token_list(expected)
    said_tokens = create_token_list(transcript or "")

    used: set[int] = set()
    slot_usage: dict[int, set[int]] = {}
    matches: list[ScoreMatch] = []
    misses: list[ScoreMiss] = []

    for token in expected_tokens:
        match = find_match(token, said_tokens, used, slot_usage, opts.fuzzy_threshold)
        if match is None:
            misses.append(ScoreMiss(token.index, token.word, token.display))
            continue
        if match.consumed:
            used.add(match.index)
        said = said_tokens[match.index]
        matches.append(
            ScoreMatch(
                expected_index=token.index,
                expected=token.word,
                expected_display=token.display,
                said_index=match.index,
                said=said.word,
                said_display=said.display,
                kind=match.kind,
                score=match.score,
            )
        )

    matched_said = {m.said_index for m in matches}
    extras = [
        ScoreExtra(token.index, token.word, token.display)
        for token in said_tokens
        if token.index not in matched_said
    ]
    expected_annotated, said_annotated = annotate(expected_tokens, said_tokens, matches)

    total_expected = len(expected_tokens)
    total_matched = len(matches)
    percent = percent_of(total_matched, total_expected)

    logger.debug(
        "Scored %d/%d expected tokens (%d%%), %d extras, kinds=%s",
        total_matched,
        total_expected,
        percent,
        len(extras),
        [m.kind for m in matches],
    )

    return ScoreResult(
        total_expected=total_expected,
        total_matched=total_matched,
        percent=percent,
        matches=matches,
        misses=misses,
        extras=extras,
        expected_tokens=expected_tokens,
        said_tokens=said_tokens,
        expected_annotated=expected_annotated,
        said_annotated=said_annotated,
        options_used=opts,
        transcript=transcript or "",
    )
