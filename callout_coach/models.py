"""Data model for the utterance grading engine."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional

from callout_coach.config import settings

# Match kinds, strictest first
MATCH_KINDS = (
    "exact",
    "digits",
    "number",
    "number-chunk",
    "prefix",
    "phonetic",
    "skeleton",
    "fuzzy",
)

SCORERS = ("rich", "levenshtein", "overlap")
CAPTURE_MODES = ("speech", "manual")


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Token:
    """One normalised word plus the auxiliary keys used for matching.

    Attributes:
        word: Normalised lowercase form (letters/digits only)
        display: Surface form from the original text, for feedback rendering
        digits: Digit characters of ``word``, or its number-word value, or ""
        has_digits: True if ``word`` contains a literal digit
        number_value: Canonical digit string if ``word`` is numeric or a number-word
        number_slots: Single digits of ``digits``, claimed one by one during matching
        skeleton: Vowel-stripped, repeat-collapsed form of ``word``
        phonetic: Soundex-style code, "" when ``word`` has no letters
        index: Position within its token list
    """
    word: str
    display: str
    digits: str = ""
    has_digits: bool = False
    number_value: Optional[str] = None
    number_slots: tuple[str, ...] = ()
    skeleton: str = ""
    phonetic: str = ""
    index: int = 0


# ---------------------------------------------------------------------------
# Score results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoreMatch:
    expected_index: int
    expected: str
    expected_display: str
    said_index: int
    said: str
    said_display: str
    kind: str
    score: float = 1.0


@dataclass(frozen=True)
class ScoreMiss:
    expected_index: int
    expected: str
    expected_display: str


@dataclass(frozen=True)
class ScoreExtra:
    said_index: int
    said: str
    said_display: str


@dataclass(frozen=True)
class AnnotatedToken:
    index: int
    word: str
    display: str
    status: str  # "match" | "miss" | "extra"
    kind: str  # a match kind, "missing" or "extra"
    said_index: Optional[int] = None
    expected_index: Optional[int] = None


@dataclass(frozen=True)
class ScoreOptions:
    """Tunables for one grading call.

    Defaults come from the application settings; use :meth:`from_dict` to
    merge caller-supplied overrides on top.
    """
    fuzzy_threshold: float = settings.fuzzy_threshold
    enable_nato_expansion: bool = settings.enable_nato_expansion
    enable_fuzzy: bool = settings.enable_fuzzy
    pass_threshold: int = settings.pass_threshold
    pause_threshold: int = settings.pause_threshold
    scorer: str = "rich" if settings.use_rich_scorer else "overlap"

    def __post_init__(self) -> None:
        if not 0.0 <= self.fuzzy_threshold <= 1.0:
            raise ValueError(f"fuzzy_threshold must be within 0..1, got {self.fuzzy_threshold}")
        if self.scorer not in SCORERS:
            raise ValueError(f"Unknown scorer {self.scorer!r}; expected one of {SCORERS}")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ScoreOptions":
        """Build options from a plain mapping, ignoring ``None`` values."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("options must be an object")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown options: {', '.join(sorted(unknown))}")
        overrides = {k: v for k, v in data.items() if v is not None}
        return replace(cls(), **overrides)


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of grading one expected phrase against one transcript."""
    total_expected: int
    total_matched: int
    percent: int
    matches: list[ScoreMatch]
    misses: list[ScoreMiss]
    extras: list[ScoreExtra]
    expected_tokens: list[Token]
    said_tokens: list[Token]
    expected_annotated: list[AnnotatedToken]
    said_annotated: list[AnnotatedToken]
    options_used: ScoreOptions
    transcript: str = ""


@dataclass(frozen=True)
class DiffChunk:
    token: str
    type: str  # "match" | "missing" | "extra"


@dataclass(frozen=True)
class UtteranceScore:
    """Graded outcome of one attempt at a scenario line."""
    score: int
    passed: bool
    auto_paused: bool
    mode: str
    diff: list[DiffChunk]
    transcript: str
    expected: str
    scorer: str = "rich"
    result: Optional[ScoreResult] = None


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScenarioStep:
    role: str
    text: str
    cue: Optional[str] = None
    expected: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Scenario:
    id: str
    label: str
    steps: list[ScenarioStep]
    description: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PreparedScenarioStep:
    index: int
    id: str
    role: str
    text: str  # display line
    grade_text: str
    expected: list[str]
    tokens: list[Token]
    cue: Optional[str] = None
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PreparedScenario:
    id: str
    label: str
    steps: list[PreparedScenarioStep]
    prompt_cues: list[str]
    expected_for_grade: list[list[Token]]
    description: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)
