"""Pattern fallback and CSV extraction tests.

Tests cover:
1. Ordered delimiter split and enumeration prefix stripping
2. Strategy A (per-line delimiter split)
3. Strategy B (line pairing), only when A finds nothing
4. First-comma CSV import
"""
from __future__ import annotations

import pytest

from photocard_engine.fallback import PatternExtractor, pair_lines, parse_csv_cards
from photocard_engine.types import CardDraft
from photocard_engine.utils import split_by_delimiters, strip_enumeration


# ═══════════════════════════════════════════════════════════════════════════════
# SHARED HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

class TestSplitByDelimiters:
    def test_priority_over_position(self):
        assert split_by_delimiters("first - part：rest", ["：", " - "]) == ("first - part", "rest")

    def test_rejoins_remaining_parts(self):
        assert split_by_delimiters("a = b = c", ["="]) == ("a", "b = c")

    def test_no_delimiter(self):
        assert split_by_delimiters("plain text", ["：", ":"]) is None

    def test_empty_side_moves_on_to_next_delimiter(self):
        assert split_by_delimiters(":x=y", [":", "="]) == (":x", "y")
        assert split_by_delimiters("term:", [":"]) is None

    def test_first_present_delimiter_only(self):
        assert split_by_delimiters(":x=y", [":", "="], fall_through=False) is None
        assert split_by_delimiters("x=y", [":", "="], fall_through=False) == ("x", "y")

    def test_front_length_bound(self):
        assert split_by_delimiters("a" * 100 + ":b", [":"], max_front_length=100) == ("a" * 100, "b")
        assert split_by_delimiters("a" * 101 + ":b", [":"], max_front_length=100) is None


class TestStripEnumeration:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1. 犬", "犬"),
            ("２）猫", "猫"),
            ("10、鳥", "鳥"),
            ("３．魚", "魚"),
            ("4) fox", "fox"),
            ("  5.  spaced  ", "spaced"),
            ("2024年", "2024年"),
            ("no number", "no number"),
            ("1.", ""),
        ],
    )
    def test_strip(self, text, expected):
        assert strip_enumeration(text) == expected


# ═══════════════════════════════════════════════════════════════════════════════
# STRATEGY A / B
# ═══════════════════════════════════════════════════════════════════════════════

class TestPatternExtractor:
    def test_delimiter_line(self):
        strategy, cards = PatternExtractor().extract(["Swift：Appleの言語"])
        assert strategy == "delimiter"
        assert cards == [CardDraft(front="Swift", back="Appleの言語")]

    def test_priority_full_width_colon_before_hyphen(self):
        _, cards = PatternExtractor().extract(["犬 - イヌ科：哺乳類"])
        assert cards == [CardDraft(front="犬 - イヌ科", back="哺乳類")]

    @pytest.mark.parametrize("delimiter", ["：", ":", "→", "⇒", " - ", "＝", "="])
    def test_each_fallback_delimiter(self, delimiter):
        _, cards = PatternExtractor().extract([f"term{delimiter}definition"])
        assert cards == [CardDraft(front="term", back="definition")]

    @pytest.mark.parametrize("delimiter", ["…", "─", "−"])
    def test_highlight_only_delimiters_are_not_used(self, delimiter):
        assert PatternExtractor().split_lines([f"term{delimiter}definition"]) == []

    def test_front_longer_than_limit_is_skipped(self):
        extractor = PatternExtractor()
        assert extractor.split_lines(["a" * 101 + "：def"]) == []
        assert extractor.split_lines(["a" * 100 + "：def"]) == [CardDraft(front="a" * 100, back="def")]

    def test_front_limit_from_config(self):
        assert PatternExtractor({"max_front_length": 3}).split_lines(["four：x"]) == []

    def test_delimiter_cards_suppress_pairing(self):
        strategy, cards = PatternExtractor().extract(["x: y", "plain", "plain2"])
        assert strategy == "delimiter"
        assert cards == [CardDraft(front="x", back="y")]

    def test_pairing_fallback(self):
        strategy, cards = PatternExtractor().extract(["用語A", "定義A", "用語B", "定義B"])
        assert strategy == "line_pairing"
        assert cards == [
            CardDraft(front="用語A", back="定義A"),
            CardDraft(front="用語B", back="定義B"),
        ]

    def test_pairing_strips_numbering(self):
        _, cards = PatternExtractor().extract(["1. 犬", "A dog"])
        assert cards == [CardDraft(front="犬", back="A dog")]

    def test_odd_line_is_dropped(self):
        _, cards = PatternExtractor().extract(["a", "b", "c"])
        assert cards == [CardDraft(front="a", back="b")]

    def test_blank_lines_are_ignored_before_pairing(self):
        _, cards = PatternExtractor().extract(["", "用語", "   ", "定義"])
        assert cards == [CardDraft(front="用語", back="定義")]

    def test_pair_empty_after_stripping_is_skipped(self):
        assert pair_lines(["1.", "def", "term", "def2"]) == [CardDraft(front="term", back="def2")]

    def test_single_plain_line(self):
        assert PatternExtractor().extract(["just one line"]) == ("none", [])

    def test_nothing(self):
        assert PatternExtractor().extract([]) == ("none", [])


# ═══════════════════════════════════════════════════════════════════════════════
# CSV
# ═══════════════════════════════════════════════════════════════════════════════

class TestCSV:
    def test_first_comma_only(self):
        assert parse_csv_cards("猫, ネコ科の動物, 可愛い") == [CardDraft(front="猫", back="ネコ科の動物, 可愛い")]

    def test_multiple_lines(self):
        content = "apple, りんご\r\n\r\nbanana,バナナ\n"
        assert parse_csv_cards(content) == [
            CardDraft(front="apple", back="りんご"),
            CardDraft(front="banana", back="バナナ"),
        ]

    def test_unmatched_lines_are_dropped(self):
        content = "no comma here\n, missing front\nmissing back,\nok,fine"
        assert parse_csv_cards(content) == [CardDraft(front="ok", back="fine")]

    def test_no_pairing_for_csv(self):
        assert parse_csv_cards("用語\n定義") == []

    def test_other_delimiters_are_ignored(self):
        assert parse_csv_cards("a：b, c") == [CardDraft(front="a：b", back="c")]

    def test_empty(self):
        assert parse_csv_cards("") == []
