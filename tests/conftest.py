import pytest

from callout_coach.models import ScoreOptions


@pytest.fixture
def options():
    """Explicit options so environment overrides never leak into tests."""
    return ScoreOptions(
        fuzzy_threshold=0.82,
        enable_nato_expansion=True,
        enable_fuzzy=True,
        pass_threshold=60,
        pause_threshold=30,
        scorer="rich",
    )


@pytest.fixture
def scenario():
    return {
        "id": "demo-tail",
        "label": "Demo tail",
        "steps": [
            {"role": "Captain", "text": "N443DF ready for de-icing?", "cue": "cap-ready"},
            {"role": "iceman", "text": "Tail N443DF ready for taxi"},
            {"role": "captain", "text": "Roger, confirm fluid", "cue": "cap-ready"},
            {"role": "iceman", "text": "Type 4 fluid applied"},
            {
                "role": "iceman",
                "text": "Clear of the aircraft",
                "expected": ["Clear of the aircraft", "Equipment clear"],
            },
        ],
    }
