"""Score a spoken (or typed) callout against the scripted line.

Three strategies are available, selected by ``ScoreOptions.scorer``:

  - "rich": token alignment with number, phonetic and fuzzy tolerance
    (see :mod:`callout_coach.services.matcher`). The default.
  - "levenshtein": edit distance between the two whole normalised strings,
    with digits and single letters spelled out first.
  - "overlap": share of expected words heard anywhere in the transcript.
    The cheapest fallback, used when the rich scorer is switched off.

Whatever the strategy, the percentage is turned into a pass / auto-pause
decision by the caller-supplied thresholds.
"""

from __future__ import annotations

import logging
from typing import Any

from callout_coach.config import settings
from callout_coach.models import (
    CAPTURE_MODES,
    AnnotatedToken,
    DiffChunk,
    ScoreExtra,
    ScoreMatch,
    ScoreMiss,
    ScoreOptions,
    ScoreResult,
    UtteranceScore,
)
from callout_coach.services.edit_distance import lcs_diff, levenshtein
from callout_coach.services.matcher import annotate, percent_of, run_score
from callout_coach.services.normalizer import (
    expand_tail_numbers,
    normalize_spoken,
    tokenize,
)
from callout_coach.services.tokens import create_token_list

logger = logging.getLogger(__name__)


# ---- Rich scorer ----


def score_words(
    expected: str | list[Any] | None,
    transcript: str | None,
    options: ScoreOptions | None = None,
) -> int:
    """Percentage of expected tokens matched by the rich scorer."""
    return run_score(expected, transcript, options).percent


def score_words_detail(
    expected: str | list[Any] | None,
    transcript: str | None,
    options: ScoreOptions | None = None,
) -> ScoreResult:
    """Full rich-scorer result, including matches and annotations."""
    return run_score(expected, transcript, options)


# ---- Legacy scorers ----


def whole_string_score(
    expected: str | None,
    transcript: str | None,
    enable_fuzzy: bool = True,
    expand: bool = True,
) -> int:
    """
    Compare two whole utterances by edit distance.

    With fuzzy matching disabled the strings either match exactly (100) or
    not at all (0). Both sides empty counts as a match.
    """
    a = normalize_spoken(expected, expand)
    b = normalize_spoken(transcript, expand)
    longest = max(len(a), len(b), 1)
    if enable_fuzzy:
        distance = levenshtein(a, b)
    else:
        distance = 0 if a == b else longest
    ratio = 1 - distance / longest
    return max(0, min(100, int(ratio * 100 + 0.5)))


def quick_score(expected: str | None, transcript: str | None) -> int:
    """Share of expected words present anywhere in the transcript."""
    return quick_score_detail(expected, transcript).percent


def quick_score_detail(
    expected: str | None,
    transcript: str | None,
    options: ScoreOptions | None = None,
) -> ScoreResult:
    """Token-set overlap: distinct expected words heard anywhere in the transcript.

    Order, repetition and near misses are ignored. Matches and annotations
    stay per token; the counts are over distinct words.
    """
    expected_tokens = create_token_list(expected)
    said_tokens = create_token_list(transcript or "")
    first_said: dict[str, int] = {}
    for token in said_tokens:
        first_said.setdefault(token.word, token.index)

    matches: list[ScoreMatch] = []
    misses: list[ScoreMiss] = []
    for token in expected_tokens:
        said_index = first_said.get(token.word)
        if said_index is None:
            misses.append(ScoreMiss(token.index, token.word, token.display))
            continue
        said = said_tokens[said_index]
        matches.append(
            ScoreMatch(
                expected_index=token.index,
                expected=token.word,
                expected_display=token.display,
                said_index=said_index,
                said=said.word,
                said_display=said.display,
                kind="exact",
            )
        )

    first_expected: dict[str, int] = {}
    for token in expected_tokens:
        first_expected.setdefault(token.word, token.index)
    heard = {word for word in first_expected if word in first_said}
    extras = [
        ScoreExtra(token.index, token.word, token.display)
        for token in said_tokens
        if token.word not in first_expected
    ]
    expected_annotated, _ = annotate(expected_tokens, said_tokens, matches)
    # every repetition of an expected word counts as heard
    said_annotated = [
        AnnotatedToken(
            index=token.index,
            word=token.word,
            display=token.display,
            status="match" if token.word in first_expected else "extra",
            kind="exact" if token.word in first_expected else "extra",
            expected_index=first_expected.get(token.word),
        )
        for token in said_tokens
    ]

    return ScoreResult(
        total_expected=len(first_expected),
        total_matched=len(heard),
        percent=percent_of(len(heard), len(first_expected)),
        matches=matches,
        misses=misses,
        extras=extras,
        expected_tokens=expected_tokens,
        said_tokens=said_tokens,
        expected_annotated=expected_annotated,
        said_annotated=said_annotated,
        options_used=options or ScoreOptions(scorer="overlap"),
        transcript=transcript or "",
    )


# ---- Diffs ----


def diff_words(
    expected: str | None,
    transcript: str | None,
    expand: bool = False,
) -> list[DiffChunk]:
    """LCS diff between the normalised words of *expected* and *transcript*."""
    a = normalize_spoken(expected, expand).split()
    b = normalize_spoken(transcript, expand).split()
    return [DiffChunk(token, kind) for token, kind in lcs_diff(a, b)]


def diff_from_result(result: ScoreResult) -> list[DiffChunk]:
    """Render an alignment result as diff chunks.

    Expected tokens keep their order; each unmatched spoken token is placed
    just before the first match whose spoken position comes after it.
    """
    pending = sorted(
        (a for a in result.said_annotated if a.status == "extra"),
        key=lambda a: a.index,
    )
    chunks: list[DiffChunk] = []
    for token in result.expected_annotated:
        if token.status != "match":
            chunks.append(DiffChunk(token.word, "missing"))
            continue
        while pending and token.said_index is not None and pending[0].index < token.said_index:
            chunks.append(DiffChunk(pending.pop(0).word, "extra"))
        chunks.append(DiffChunk(token.word, "match"))
    chunks.extend(DiffChunk(a.word, "extra") for a in pending)
    return chunks


# ---- Decisions ----


def decide(percent: int, options: ScoreOptions | None = None) -> tuple[bool, bool]:
    """Return ``(passed, auto_paused)`` for a percentage."""
    opts = options or ScoreOptions()
    return percent >= opts.pass_threshold, percent <= opts.pause_threshold


def _score_phrase(
    phrase: str,
    transcript: str,
    opts: ScoreOptions,
) -> tuple[int, list[DiffChunk], ScoreResult | None]:
    if opts.enable_nato_expansion:
        phrase = expand_tail_numbers(phrase)
    if not tokenize(phrase):
        # nothing to say counts as a pass, whatever the scorer
        return 100, [], None
    if opts.scorer == "levenshtein":
        percent = whole_string_score(
            phrase, transcript, opts.enable_fuzzy, opts.enable_nato_expansion
        )
        return percent, diff_words(phrase, transcript, opts.enable_nato_expansion), None
    if opts.scorer == "overlap":
        result = quick_score_detail(phrase, transcript, opts)
    else:
        result = run_score(phrase, transcript, opts)
    return result.percent, diff_from_result(result), result


def grade_utterance(
    transcript: str | None,
    expected: str | list[str] | None,
    options: ScoreOptions | None = None,
    mode: str = "speech",
) -> UtteranceScore:
    """
    Grade one attempt at a scenario line.

    *expected* is the scripted phrase or a list of acceptable phrasings;
    every phrasing is scored and the best one (first on ties) is kept,
    together with its diff. An empty list auto-passes at 100.

    Raises:
        TypeError: if *expected* is neither text nor a list of text
        ValueError: for an unknown capture *mode*
    """
    if mode not in CAPTURE_MODES:
        raise ValueError(f"Unknown capture mode {mode!r}; expected one of {CAPTURE_MODES}")
    if expected is None:
        phrasings: list[str] = []
    elif isinstance(expected, str):
        phrasings = [expected]
    elif isinstance(expected, (list, tuple)):
        if not all(isinstance(p, str) for p in expected):
            raise TypeError("Expected phrasings must all be strings")
        phrasings = list(expected)
    else:
        raise TypeError(
            f"Expected a phrase or list of phrases, got {type(expected).__name__}"
        )

    opts = options or ScoreOptions()
    transcript = (transcript or "").strip()

    best: tuple[int, list[DiffChunk], ScoreResult | None] | None = None
    best_phrase = ""
    for phrase in phrasings or [""]:
        scored = _score_phrase(phrase, transcript, opts)
        if best is None or scored[0] > best[0]:
            best, best_phrase = scored, phrase

    percent, diff, result = best
    passed, auto_paused = decide(percent, opts)

    log = logger.info if settings.debug_scorer else logger.debug
    log(
        "Graded %s attempt with %s scorer: %d%% against %r (heard %r) -> %s%s",
        mode,
        opts.scorer,
        percent,
        best_phrase,
        transcript,
        "pass" if passed else "miss",
        ", auto-paused" if auto_paused else "",
    )

    return UtteranceScore(
        score=percent,
        passed=passed,
        auto_paused=auto_paused,
        mode=mode,
        diff=diff,
        transcript=transcript,
        expected=best_phrase,
        scorer=opts.scorer,
        result=result,
    )
