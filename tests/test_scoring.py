"""
Tests for the scorers, diff rendering and grading decisions.
"""

import pytest

from callout_coach.models import DiffChunk, ScoreOptions
from callout_coach.services.matcher import run_score
from callout_coach.services.scoring import (
    decide,
    diff_from_result,
    diff_words,
    grade_utterance,
    quick_score,
    quick_score_detail,
    score_words,
    whole_string_score,
)


def as_pairs(diff):
    return [(chunk.token, chunk.type) for chunk in diff]


class TestWholeStringScore:
    def test_one_character_off(self):
        assert whole_string_score("ready for taxi", "ready for taxis") == 93

    def test_fuzzy_disabled_is_all_or_nothing(self):
        assert whole_string_score("ready for taxi", "ready for taxis", enable_fuzzy=False) == 0
        assert whole_string_score("Ready, for taxi", "ready for taxi", enable_fuzzy=False) == 100

    def test_digits_spelled_out(self):
        assert whole_string_score("Type 4", "type four") == 100
        assert whole_string_score("Type 4", "type four", expand=False) < 100

    def test_both_empty(self):
        assert whole_string_score("", None) == 100


class TestQuickScore:
    def test_partial(self):
        assert quick_score("ready for taxi", "ready") == 33

    def test_order_ignored(self):
        assert quick_score("ready for taxi", "taxi for ready") == 100

    def test_no_tolerance_for_near_misses(self):
        assert quick_score("type four", "type 4") == 50

    def test_repeated_expected_words_count_once(self):
        assert quick_score("ready go ready", "ready") == 50

        result = quick_score_detail("ready go ready", "ready")
        assert result.total_expected == 2
        assert result.total_matched == 1
        assert [m.expected_index for m in result.matches] == [0, 2]
        assert [m.expected for m in result.misses] == ["go"]

    def test_repetitions_all_count_as_heard(self):
        result = quick_score_detail("ready", "ready uh ready")
        assert result.percent == 100
        assert [a.status for a in result.said_annotated] == ["match", "extra", "match"]
        assert [e.said for e in result.extras] == ["uh"]
        assert result.options_used.scorer == "overlap"


class TestRichScore:
    def test_score_words(self, options):
        assert score_words("Type 4 fluid applied", "type four fluid applied", options) == 100

    def test_threshold_boundary(self):
        expected = "alpha bravo charlie delta echo"
        assert score_words(expected, "alpha bravo charlie") == 60


class TestDiff:
    def test_lcs_diff(self):
        assert as_pairs(diff_words("ready for taxi", "uh ready taxi")) == [
            ("uh", "extra"),
            ("ready", "match"),
            ("for", "missing"),
            ("taxi", "match"),
        ]

    def test_lcs_diff_missing_before_extra(self):
        assert as_pairs(diff_words("ready for taxi", "ready for taxis")) == [
            ("ready", "match"),
            ("for", "match"),
            ("taxi", "missing"),
            ("taxis", "extra"),
        ]

    def test_alignment_diff_places_extras(self, options):
        result = run_score("ready for taxi", "uh ready taxi", options)
        assert as_pairs(diff_from_result(result)) == [
            ("uh", "extra"),
            ("ready", "match"),
            ("for", "missing"),
            ("taxi", "match"),
        ]

    def test_alignment_diff_trailing_extras(self, options):
        result = run_score("ready", "ready now please", options)
        assert as_pairs(diff_from_result(result)) == [
            ("ready", "match"),
            ("now", "extra"),
            ("please", "extra"),
        ]

    def test_diff_chunks_are_dataclasses(self):
        assert diff_words("ready", "ready") == [DiffChunk("ready", "match")]


class TestDecide:
    def test_pass_and_pause_thresholds(self, options):
        assert decide(60, options) == (True, False)
        assert decide(59, options) == (False, False)
        assert decide(30, options) == (False, True)
        assert decide(0, options) == (False, True)


class TestGradeUtterance:
    def test_perfect(self, options):
        graded = grade_utterance("ready for taxi", "Ready for taxi", options)
        assert graded.score == 100
        assert graded.passed is True
        assert graded.auto_paused is False
        assert graded.mode == "speech"
        assert graded.scorer == "rich"
        assert graded.result.total_matched == 3

    def test_threshold_boundary(self, options):
        expected = "alpha bravo charlie delta echo"
        graded = grade_utterance("alpha bravo charlie", expected, options)
        assert graded.score == 60
        assert graded.passed is True

        stricter = ScoreOptions(pass_threshold=61, pause_threshold=30, scorer="rich")
        assert grade_utterance("alpha bravo charlie", expected, stricter).passed is False

    def test_auto_pause(self, options):
        graded = grade_utterance("banana", "ready for taxi", options)
        assert graded.score == 0
        assert graded.passed is False
        assert graded.auto_paused is True

    def test_best_phrasing_wins(self, options):
        graded = grade_utterance(
            "equipment clear", ["Clear of the aircraft", "Equipment clear"], options
        )
        assert graded.score == 100
        assert graded.expected == "Equipment clear"

    def test_first_phrasing_kept_on_tie(self, options):
        graded = grade_utterance("ready", ["ready now", "ready set"], options)
        assert graded.score == 50
        assert graded.expected == "ready now"

    def test_empty_phrasings_auto_pass(self, options):
        graded = grade_utterance("anything", [], options)
        assert graded.score == 100
        assert graded.passed is True
        assert graded.expected == ""

    @pytest.mark.parametrize("scorer", ["rich", "levenshtein", "overlap"])
    @pytest.mark.parametrize("expected", [[], "", "?!"])
    def test_nothing_to_say_passes_with_any_scorer(self, scorer, expected):
        opts = ScoreOptions(pass_threshold=60, pause_threshold=30, scorer=scorer)
        graded = grade_utterance("de-icing complete", expected, opts)
        assert graded.score == 100
        assert graded.passed is True
        assert graded.auto_paused is False
        assert graded.diff == []

    def test_manual_mode_and_blank_transcript(self, options):
        graded = grade_utterance("   ", "ready", options, mode="manual")
        assert graded.mode == "manual"
        assert graded.transcript == ""
        assert graded.score == 0

    def test_nato_round_trip(self, options):
        transcript = "tail november four four three delta foxtrot ready for taxi"
        graded = grade_utterance(transcript, "Tail N443DF ready for taxi", options)
        assert graded.score == 100

    def test_nato_disabled(self):
        opts = ScoreOptions(enable_nato_expansion=False, scorer="rich")
        transcript = "tail november four four three delta foxtrot ready for taxi"
        graded = grade_utterance(transcript, "Tail N443DF ready for taxi", opts)
        assert graded.score == 80

    def test_levenshtein_scorer(self):
        opts = ScoreOptions(scorer="levenshtein")
        graded = grade_utterance("ready for taxis", "ready for taxi", opts)
        assert graded.score == 93
        assert graded.result is None
        assert graded.scorer == "levenshtein"
        assert ("taxis", "extra") in as_pairs(graded.diff)

    def test_overlap_scorer(self):
        opts = ScoreOptions(scorer="overlap")
        graded = grade_utterance("taxi for ready", "ready for taxi", opts)
        assert graded.score == 100
        assert graded.result.options_used.scorer == "overlap"

    def test_bad_mode(self, options):
        with pytest.raises(ValueError):
            grade_utterance("ready", "ready", options, mode="typing")

    def test_bad_expected(self, options):
        with pytest.raises(TypeError):
            grade_utterance("ready", 42, options)
        with pytest.raises(TypeError):
            grade_utterance("ready", ["ready", 3], options)


class TestScoreOptions:
    def test_overrides(self):
        opts = ScoreOptions.from_dict({"fuzzy_threshold": 0.9, "scorer": "overlap"})
        assert opts.fuzzy_threshold == 0.9
        assert opts.scorer == "overlap"

    def test_none_values_ignored(self):
        assert ScoreOptions.from_dict({"scorer": None}) == ScoreOptions()
        assert ScoreOptions.from_dict(None) == ScoreOptions()

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown options"):
            ScoreOptions.from_dict({"strictness": 3})

    def test_not_a_mapping(self):
        with pytest.raises(ValueError):
            ScoreOptions.from_dict(["scorer"])

    def test_out_of_range_threshold(self):
        with pytest.raises(ValueError):
            ScoreOptions(fuzzy_threshold=1.5)

    def test_unknown_scorer(self):
        with pytest.raises(ValueError):
            ScoreOptions.from_dict({"scorer": "vibes"})
