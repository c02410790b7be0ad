"""Tests for spoken-answer matching."""

import pytest

from voicequiz.engine.normalizer import (
    Match,
    compare_two_strings,
    find_best_match,
    normalize_text,
    score_options,
)

RESTAURANT = ["Menu", "Bill", "Receipt", "Order"]


class TestCompareTwoStrings:
    def test_identical(self):
        assert compare_two_strings("menu", "menu") == 1.0

    def test_no_shared_bigrams(self):
        assert compare_two_strings("maynew", "menu") == 0.0

    def test_partial_overlap(self):
        # menus: me en nu us / menu: me en nu -> 2*3 / (5 + 4 - 2)
        assert compare_two_strings("menus", "menu") == pytest.approx(6 / 7)

    def test_whitespace_ignored(self):
        assert compare_two_strings("boarding pass", "boardingpass") == 1.0

    def test_short_strings(self):
        assert compare_two_strings("a", "b") == 0.0
        assert compare_two_strings("a", "a") == 1.0
        assert compare_two_strings("a", "ab") == 0.0

    def test_bigrams_counted_as_multiset(self):
        # aaaa has "aa" three times, aa only once
        assert compare_two_strings("aaaa", "aa") == pytest.approx(0.5)

    def test_symmetric(self):
        for a, b in [("receipt", "recipe"), ("tip", "tips"), ("gate", "great")]:
            assert compare_two_strings(a, b) == compare_two_strings(b, a)

    def test_range(self):
        for a, b in [("order", "border"), ("x", "yz"), ("check", "chicken")]:
            assert 0.0 <= compare_two_strings(a, b) <= 1.0


class TestFindBestMatch:
    def test_exact_word(self):
        assert find_best_match("Menu", RESTAURANT) == Match(option="Menu", score=1.0)

    def test_case_and_padding_ignored(self):
        match = find_best_match("   MENU  ", RESTAURANT)
        assert match is not None
        assert match.option == "Menu"

    def test_close_utterance_resolves(self):
        match = find_best_match("menus", RESTAURANT)
        assert match is not None
        assert match.option == "Menu"
        assert match.score == pytest.approx(6 / 7)

    def test_punctuation_noise_still_matches(self):
        match = find_best_match("waiter!", ["Waiter", "Chef", "Manager", "Cashier"])
        assert match is not None
        assert match.option == "Waiter"

    def test_returns_original_option_text(self):
        match = find_best_match("boarding pass", ["Boarding Pass", "Menu", "Magazine", "Window"])
        assert match.option == "Boarding Pass"

    def test_sound_alike_below_threshold_is_no_match(self):
        # "may new" shares no bigram with any option; never auto-select
        assert find_best_match("may new", RESTAURANT) is None

    def test_weak_overlap_is_no_match(self):
        # themenu vs menu scores 2/3, just under the threshold
        assert find_best_match("the menu", RESTAURANT) is None

    def test_empty_utterance(self):
        assert find_best_match("", RESTAURANT) is None
        assert find_best_match("   ", RESTAURANT) is None

    def test_no_options(self):
        assert find_best_match("menu", []) is None

    def test_threshold_is_inclusive(self):
        match = find_best_match("menus", ["Menu"], threshold=6 / 7)
        assert match is not None

    def test_custom_threshold(self):
        assert find_best_match("the menu", RESTAURANT, threshold=0.6).option == "Menu"

    def test_ties_go_to_first_option(self):
        # abcd shares one bigram with each option
        match = find_best_match("abcd", ["abxx", "xxcd"], threshold=0.3)
        assert match.option == "abxx"

    def test_duplicate_options_first_wins(self):
        match = find_best_match("tip", ["Tip", "Tax", "Tip"])
        assert match.option == "Tip"

    def test_single_character_options_scored_normally(self):
        assert find_best_match("b", ["A", "B", "C"]).option == "B"
        assert find_best_match("be", ["A", "B", "C"]) is None


def test_normalize_text():
    assert normalize_text("  Hello World ") == "hello world"


def test_score_options_order():
    scores = score_options("menu", RESTAURANT)
    assert scores[0] == 1.0
    assert len(scores) == len(RESTAURANT)
