"""
Tests for preposition_rules - phonetic agreement of s/z and k/h
"""

import sys
from pathlib import Path

# Add scripts directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "skills" / "preposition-check" / "scripts"))

import pytest  # noqa: E402

from preposition_rules import (  # noqa: E402  # type: ignore
    candidate_class_for,
    expected_preposition,
    first_sound,
    letters_for_pairs,
    match_case,
)


class TestExpectedPrepositionSZ:
    """Tests for the s/z voicing rule"""

    @pytest.mark.parametrize("letter", list("cčfhkpsšt"))
    def test_unvoiced_letters_take_s(self, letter):
        """Voiceless first sounds expect 's'"""
        assert expected_preposition(letter + "ala", "sz") == "s"

    @pytest.mark.parametrize("letter", list("CČFHKPSŠT"))
    def test_unvoiced_uppercase_take_s(self, letter):
        """Case of the following word does not matter"""
        assert expected_preposition(letter + "ala", "sz") == "s"

    @pytest.mark.parametrize("letter", list("bdgjlmnrvzžaeiou"))
    def test_voiced_letters_and_vowels_take_z(self, letter):
        """Voiced consonants and vowels expect 'z'"""
        assert expected_preposition(letter + "ala", "sz") == "z"

    def test_example_words(self):
        assert expected_preposition("prijateljem", "sz") == "s"
        assert expected_preposition("Ljubljane", "sz") == "z"
        assert expected_preposition("očetom", "sz") == "z"

    def test_leading_punctuation_skipped(self):
        """Quotes, brackets and spaces before the word are ignored"""
        assert expected_preposition("  „Ljubljane“", "sz") == "z"
        assert expected_preposition("(pet)", "sz") == "s"

    def test_combining_caron_normalized(self):
        """'c' + combining caron is read as 'č'"""
        assert expected_preposition("c\u030casom", "sz") == "s"
        assert expected_preposition("z\u030celjo", "sz") == "z"

    def test_empty_has_no_opinion(self):
        assert expected_preposition("", "sz") is None

    def test_punctuation_only_has_no_opinion(self):
        assert expected_preposition(".", "sz") is None
        assert expected_preposition("...!?", "sz") is None

    def test_default_class_is_sz(self):
        assert expected_preposition("Ljubljane") == "z"


class TestDigits:
    """Tests for digit-initial words mapped to the first sound of the number word"""

    @pytest.mark.parametrize("digit,expected", [
        ("0", "z"),  # nič
        ("1", "z"),  # ena
        ("2", "z"),  # dve
        ("3", "s"),  # tri
        ("4", "s"),  # štiri
        ("5", "s"),  # pet
        ("6", "s"),  # šest
        ("7", "s"),  # sedem
        ("8", "z"),  # osem
        ("9", "z"),  # devet
    ])
    def test_digit_sounds_sz(self, digit, expected):
        assert expected_preposition(digit + " let", "sz") == expected

    def test_seven_years(self):
        assert expected_preposition("7 let", "sz") == "s"

    def test_only_first_digit_counts(self):
        """'72' starts with 'sedem' regardless of the rest"""
        assert expected_preposition("72", "sz") == "s"
        assert expected_preposition("27", "sz") == "z"

    def test_digits_kh(self):
        """No digit word starts with k or g, so digits always expect 'k'"""
        for digit in "0123456789":
            assert expected_preposition(digit, "kh") == "k"


class TestExpectedPrepositionKH:
    """Tests for the k/h rule"""

    def test_k_and_g_take_h(self):
        assert expected_preposition("gradu", "kh") == "h"
        assert expected_preposition("Kranju", "kh") == "h"

    def test_other_letters_take_k(self):
        assert expected_preposition("mami", "kh") == "k"
        assert expected_preposition("hiši", "kh") == "k"
        assert expected_preposition("očetu", "kh") == "k"

    def test_no_opinion(self):
        assert expected_preposition("!", "kh") is None

    def test_unknown_class_raises(self):
        with pytest.raises(ValueError, match="Unknown preposition class"):
            expected_preposition("gradu", "xy")


class TestHelpers:
    """Tests for candidate classes, letters and case matching"""

    def test_first_sound(self):
        assert first_sound("Šola") == "š"
        assert first_sound("\u20145") == "p"
        assert first_sound("") is None

    def test_candidate_class_for(self):
        assert candidate_class_for("s") == "sz"
        assert candidate_class_for("Z") == "sz"
        assert candidate_class_for("k") == "kh"
        assert candidate_class_for("H") == "kh"
        assert candidate_class_for("v") is None

    def test_letters_for_pairs(self):
        assert letters_for_pairs(["sz"]) == ["s", "z"]
        assert letters_for_pairs(["sz", "kh"]) == ["s", "z", "k", "h"]

    def test_letters_for_unknown_pair_raises(self):
        with pytest.raises(ValueError):
            letters_for_pairs(["ab"])

    def test_match_case(self):
        assert match_case("z", "S") == "Z"
        assert match_case("z", "s") == "z"
        assert match_case("H", "k") == "h"
