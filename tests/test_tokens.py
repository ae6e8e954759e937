"""
Tests for token metadata and token list construction.
"""

import pytest

from callout_coach.models import Token
from callout_coach.services.tokens import (
    build_token,
    create_token_list,
    number_value,
    skeleton,
    soundex,
)


class TestNumberKeys:
    def test_radio_number_word(self):
        token = build_token("niner")
        assert token.number_value == "9"
        assert token.digits == "9"
        assert token.number_slots == ("9",)
        assert token.has_digits is False

    def test_tens_word_splits_into_slots(self):
        token = build_token("forty")
        assert token.number_value == "40"
        assert token.number_slots == ("4", "0")

    def test_numeral(self):
        token = build_token("443")
        assert token.number_value == "443"
        assert token.has_digits is True
        assert token.number_slots == ("4", "4", "3")

    def test_mixed_identifier_keeps_digits_only(self):
        token = build_token("n443df")
        assert token.number_value is None
        assert token.digits == "443"
        assert token.number_slots == ("4", "4", "3")

    def test_plain_word_has_no_slots(self):
        token = build_token("fluid")
        assert token.digits == ""
        assert token.number_value is None
        assert token.number_slots == ()

    def test_unknown_and_empty(self):
        assert number_value("gazillion") is None
        assert number_value("") is None


class TestSoundsLike:
    def test_skeleton_strips_vowels_and_repeats(self):
        assert skeleton("three") == "thr"
        assert skeleton("tree") == "tr"
        assert skeleton("coffee") == "cf"

    def test_soundex_groups_similar_consonants(self):
        assert soundex("robert") == "R163"
        assert soundex("rupert") == "R163"

    def test_soundex_pads_short_codes(self):
        assert soundex("tree") == "T600"

    def test_soundex_without_letters(self):
        assert soundex("443") == ""
        assert soundex("") == ""


class TestCreateTokenList:
    def test_display_tracks_source_chunk(self):
        tokens = create_token_list("Forty-three, ready")
        assert [t.word for t in tokens] == ["forty", "three", "ready"]
        assert [t.display for t in tokens] == ["Forty-three,", "Forty-three,", "ready"]
        assert [t.index for t in tokens] == [0, 1, 2]

    def test_punctuation_only_chunks_dropped(self):
        tokens = create_token_list("ready -- for taxi")
        assert [t.word for t in tokens] == ["ready", "for", "taxi"]
        assert [t.display for t in tokens] == ["ready", "for", "taxi"]

    def test_records_are_normalised_and_reindexed(self):
        tokens = create_token_list(
            [{"word": "Type"}, {"display": "IV"}, "", None, {"raw": "?"}, "Fluid"]
        )
        assert [t.word for t in tokens] == ["type", "iv", "fluid"]
        assert [t.display for t in tokens] == ["Type", "IV", "Fluid"]
        assert [t.index for t in tokens] == [0, 1, 2]

    def test_multi_word_record_split(self):
        tokens = create_token_list(["Type IV", "fluid"])
        assert [t.word for t in tokens] == ["type", "iv", "fluid"]
        assert tokens[1].display == "Type IV"

    def test_token_records_accepted(self):
        tokens = create_token_list([Token(word="ready", display="Ready", index=7)])
        assert tokens[0].word == "ready"
        assert tokens[0].display == "Ready"
        assert tokens[0].index == 0

    def test_none_and_empty(self):
        assert create_token_list(None) == []
        assert create_token_list("") == []
        assert create_token_list([]) == []

    def test_unsupported_input_fails_loudly(self):
        with pytest.raises(TypeError):
            create_token_list(42)
        with pytest.raises(TypeError):
            create_token_list([3.5])
