"""Session summary and CSV export of a graded scenario run."""

from __future__ import annotations

import csv
import io
from typing import Any, Mapping, Optional

from callout_coach.models import PreparedScenario, UtteranceScore
from callout_coach.services.scenario import graded_steps

CSV_HEADER = [
    "Scenario",
    "Step",
    "Role",
    "Prompt",
    "Score",
    "Passed",
    "Mode",
    "Transcript",
    "Expected",
]


def create_csv(
    prepared: PreparedScenario,
    scores: Mapping[int, Optional[UtteranceScore]],
) -> str:
    """
    One CSV row per scenario step, keyed by step index in *scores*.

    Steps without a score keep their Score/Passed/Mode/Transcript/Expected
    cells blank. Step numbers are 1-based.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for step in prepared.steps:
        score = scores.get(step.index)
        writer.writerow([
            prepared.label,
            step.index + 1,
            step.role,
            step.text,
            "" if score is None else score.score,
            "" if score is None else ("yes" if score.passed else "no"),
            "" if score is None else score.mode,
            "" if score is None else score.transcript,
            "" if score is None else score.expected,
        ])
    return buf.getvalue().rstrip("\n")


def summarize_scores(
    prepared: PreparedScenario,
    scores: Mapping[int, Optional[UtteranceScore]],
) -> dict[str, Any]:
    """
    Roll the per-step scores of a run up for the trainer sidebar.

    Returns:
      {"total": int, "graded": int, "passed": int, "average": int | None}
    """
    graded = [s for s in scores.values() if s is not None]
    average = None
    if graded:
        average = int(sum(s.score for s in graded) / len(graded) + 0.5)
    return {
        "total": len(graded_steps(prepared)),
        "graded": len(graded),
        "passed": sum(1 for s in graded if s.passed),
        "average": average,
    }
