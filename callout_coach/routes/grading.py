"""Grading APIs consumed by the trainer front end."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from callout_coach.models import ScoreOptions
from callout_coach.services.matcher import run_score
from callout_coach.services.report import create_csv, summarize_scores
from callout_coach.services.scenario import grade_step, prepare_scenario_for_grading
from callout_coach.services.scoring import diff_words, grade_utterance

logger = logging.getLogger(__name__)

router = APIRouter()


def _bad_request(request: Request, error: Exception) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, error)
    return JSONResponse({"error": str(error)}, status_code=400)


async def _body(request: Request) -> dict:
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


# ---- Free-form grading ----


@router.post("/score")
async def score(request: Request):
    """Rich token alignment. Body: {expected, transcript, options?}."""
    try:
        body = await _body(request)
        options = ScoreOptions.from_dict(body.get("options"))
        result = run_score(body.get("expected"), body.get("transcript"), options)
    except (TypeError, ValueError) as e:
        return _bad_request(request, e)
    return JSONResponse(asdict(result))


@router.post("/grade")
async def grade(request: Request):
    """Grade one attempt. Body: {transcript, expected, mode?, options?}."""
    try:
        body = await _body(request)
        options = ScoreOptions.from_dict(body.get("options"))
        result = grade_utterance(
            body.get("transcript"),
            body.get("expected"),
            options,
            body.get("mode") or "speech",
        )
    except (TypeError, ValueError) as e:
        return _bad_request(request, e)
    return JSONResponse(asdict(result))


@router.post("/diff")
async def diff(request: Request):
    """Word-level LCS diff. Body: {expected, transcript}."""
    try:
        body = await _body(request)
        chunks = diff_words(body.get("expected"), body.get("transcript"))
    except (TypeError, ValueError) as e:
        return _bad_request(request, e)
    return JSONResponse({"diff": [asdict(c) for c in chunks]})


# ---- Scenarios ----


@router.post("/scenarios/prepare")
async def prepare_scenario(request: Request):
    """Expand and tokenise a scenario. Body: {scenario, enable_nato_expansion?}."""
    try:
        body = await _body(request)
        prepared = prepare_scenario_for_grading(
            body.get("scenario"),
            enable_nato_expansion=body.get("enable_nato_expansion", True),
        )
    except (TypeError, ValueError) as e:
        return _bad_request(request, e)
    return JSONResponse(asdict(prepared))


@router.post("/scenarios/grade")
async def grade_scenario_step(request: Request):
    """Grade one step. Body: {scenario, step_index, transcript, mode?, options?}."""
    try:
        body = await _body(request)
        options = ScoreOptions.from_dict(body.get("options"))
        prepared = prepare_scenario_for_grading(
            body.get("scenario"), enable_nato_expansion=options.enable_nato_expansion
        )
        step_index = body.get("step_index")
        if not isinstance(step_index, int) or not 0 <= step_index < len(prepared.steps):
            raise ValueError(f"step_index out of range: {step_index!r}")
        result = grade_step(
            prepared.steps[step_index],
            body.get("transcript"),
            options,
            body.get("mode") or "speech",
        )
    except (TypeError, ValueError) as e:
        return _bad_request(request, e)

    logger.info(
        "Scenario %r step %d scored %d%% (%s)",
        prepared.id,
        step_index + 1,
        result.score,
        result.mode,
    )
    return JSONResponse(asdict(result))


def _grade_attempts(body: dict):
    options = ScoreOptions.from_dict(body.get("options"))
    prepared = prepare_scenario_for_grading(
        body.get("scenario"), enable_nato_expansion=options.enable_nato_expansion
    )
    attempts = body.get("attempts") or []
    if not isinstance(attempts, list):
        raise ValueError("attempts must be a list")

    # later attempts at the same step replace earlier ones
    scores = {}
    for attempt in attempts:
        if not isinstance(attempt, dict):
            raise ValueError("each attempt must be an object")
        step_index = attempt.get("step_index")
        if not isinstance(step_index, int) or not 0 <= step_index < len(prepared.steps):
            raise ValueError(f"step_index out of range: {step_index!r}")
        scores[step_index] = grade_step(
            prepared.steps[step_index],
            attempt.get("transcript"),
            options,
            attempt.get("mode") or "speech",
        )
    return prepared, scores


@router.post("/scenarios/summary")
async def scenario_summary(request: Request):
    """Grade a whole run. Body: {scenario, attempts: [{step_index, transcript, mode?}], options?}."""
    try:
        prepared, scores = _grade_attempts(await _body(request))
    except (TypeError, ValueError) as e:
        return _bad_request(request, e)
    return JSONResponse({
        "summary": summarize_scores(prepared, scores),
        "scores": {str(i): asdict(s) for i, s in sorted(scores.items())},
    })


@router.post("/scenarios/report")
async def scenario_report(request: Request):
    """Grade a whole run and export it as CSV. Same body as /scenarios/summary."""
    try:
        prepared, scores = _grade_attempts(await _body(request))
    except (TypeError, ValueError) as e:
        return _bad_request(request, e)

    summary = summarize_scores(prepared, scores)
    logger.info(
        "Report for scenario %r: %d/%d graded, %d passed, average %s",
        prepared.id,
        summary["graded"],
        summary["total"],
        summary["passed"],
        summary["average"],
    )
    filename = f"{prepared.id or 'scenario'}-report.csv"
    return PlainTextResponse(
        create_csv(prepared, scores),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
