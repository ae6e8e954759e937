"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    # --- Matching ---
    fuzzy_threshold: float = float(os.getenv("COACH_FUZZY_THRESHOLD", "0.82"))
    enable_nato_expansion: bool = _env_flag("COACH_ENABLE_NATO", "true")
    enable_fuzzy: bool = _env_flag("COACH_ENABLE_FUZZY", "true")

    # --- Decision thresholds (percent) ---
    pass_threshold: int = int(os.getenv("COACH_PASS_THRESHOLD", "60"))
    pause_threshold: int = int(os.getenv("COACH_PAUSE_THRESHOLD", "30"))

    # --- Scorer selection ---
    # false falls back to the token-overlap scorer
    use_rich_scorer: bool = _env_flag("COACH_USE_RICH_SCORER", "true")
    debug_scorer: bool = _env_flag("COACH_DEBUG_SCORER", "false")

    # --- Scenario roles ---
    prompt_role: str = "captain"  # lines played back to the trainee
    response_role: str = "iceman"  # lines the trainee speaks and gets graded on

    # --- Logging ---
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
