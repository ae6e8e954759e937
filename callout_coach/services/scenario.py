"""Turn a raw training scenario into steps ready for grading.

A scenario is an ordered script of radio calls between the flight crew
(the prompting role, whose lines are played back as audio cues) and the
de-icing operator (the responding role, whose lines the trainee speaks and
gets graded on). Responding lines get their tail numbers spelled out in
NATO words before tokenisation, since that is how they are read on the
radio.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from callout_coach.config import settings
from callout_coach.models import (
    PreparedScenario,
    PreparedScenarioStep,
    Scenario,
    ScenarioStep,
    ScoreOptions,
    UtteranceScore,
)
from callout_coach.services.normalizer import expand_tail_numbers, normalize
from callout_coach.services.scoring import grade_utterance
from callout_coach.services.tokens import create_token_list

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 40


def slugify(text: str) -> str:
    """Hyphenated slug of *text*: "Ready for taxi!" -> "ready-for-taxi"."""
    slug = normalize(text).replace(" ", "-")
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


def _parse_role(value: Any, index: int) -> str:
    role = str(value or "").strip().lower()
    if role not in (settings.prompt_role, settings.response_role):
        raise ValueError(
            f"Step {index + 1} has unknown role {value!r}; expected "
            f"{settings.prompt_role!r} or {settings.response_role!r}"
        )
    return role


def _parse_step(raw: Any, index: int) -> ScenarioStep:
    if isinstance(raw, ScenarioStep):
        return raw
    if not isinstance(raw, dict):
        raise ValueError(f"Step {index + 1} must be an object")

    expected = raw.get("expected") or []
    if isinstance(expected, str):
        expected = [expected]
    if not isinstance(expected, list) or not all(isinstance(e, str) for e in expected):
        raise ValueError(f"Step {index + 1}: 'expected' must be a list of phrases")

    return ScenarioStep(
        role=_parse_role(raw.get("role"), index),
        text=str(raw.get("text") or raw.get("phraseId") or ""),
        cue=raw.get("cue") or None,
        expected=list(expected),
        tags=list(raw.get("tags") or []),
    )


def parse_scenario(data: dict[str, Any] | Scenario) -> Scenario:
    """Validate a scenario definition as loaded from JSON.

    Raises:
        ValueError: if the scenario or one of its steps is malformed
    """
    if isinstance(data, Scenario):
        return data
    if not isinstance(data, dict):
        raise ValueError("Scenario must be an object")
    steps = data.get("steps")
    if not isinstance(steps, list):
        raise ValueError("Scenario needs a list of steps")

    scenario_id = str(data.get("id") or "")
    return Scenario(
        id=scenario_id,
        label=str(data.get("label") or scenario_id),
        steps=[_parse_step(step, i) for i, step in enumerate(steps)],
        description=data.get("description"),
        metadata=dict(data.get("metadata") or {}),
    )


def prepare_scenario_for_grading(
    scenario: dict[str, Any] | Scenario,
    enable_nato_expansion: bool = True,
) -> PreparedScenario:
    """
    Expand, tokenise and key every step of *scenario*.

    Each prepared step carries its display line, the grading text (tail
    numbers spelled out for the responding role), the acceptable phrasings
    expanded the same way, and the token list of the grading text. Step ids
    take the form ``{role}-{index}-{cue or slug}``.
    """
    parsed = parse_scenario(scenario)

    steps: list[PreparedScenarioStep] = []
    prompt_cues: list[str] = []
    for index, step in enumerate(parsed.steps):
        role = _parse_role(step.role, index)
        expand = enable_nato_expansion and role == settings.response_role
        grade_text = expand_tail_numbers(step.text) if expand else step.text
        expected = [expand_tail_numbers(e) if expand else e for e in step.expected]

        if role == settings.prompt_role and step.cue and step.cue not in prompt_cues:
            prompt_cues.append(step.cue)

        steps.append(
            PreparedScenarioStep(
                index=index,
                id=f"{role}-{index}-{step.cue or slugify(step.text)}",
                role=role,
                text=step.text,
                grade_text=grade_text,
                expected=expected,
                tokens=create_token_list(grade_text),
                cue=step.cue,
                tags=list(step.tags),
            )
        )

    logger.debug(
        "Prepared scenario %r: %d steps, %d prompt cues",
        parsed.id,
        len(steps),
        len(prompt_cues),
    )

    return PreparedScenario(
        id=parsed.id,
        label=parsed.label,
        steps=steps,
        prompt_cues=prompt_cues,
        expected_for_grade=[step.tokens for step in steps],
        description=parsed.description,
        metadata=dict(parsed.metadata),
    )


def graded_steps(prepared: PreparedScenario) -> list[PreparedScenarioStep]:
    """Steps spoken by the trainee."""
    return [step for step in prepared.steps if step.role == settings.response_role]


def grade_step(
    step: PreparedScenarioStep,
    transcript: str | None,
    options: ScoreOptions | None = None,
    mode: str = "speech",
) -> UtteranceScore:
    """Grade an attempt at *step* against its phrasings, or its own line.

    Tail numbers were already expanded during preparation, and only for the
    responding role, so prompting lines are graded exactly as written.
    """
    opts = options or ScoreOptions()
    if step.role != settings.response_role:
        opts = replace(opts, enable_nato_expansion=False)
    phrasings = step.expected or [step.grade_text]
    return grade_utterance(transcript, phrasings, opts, mode)
