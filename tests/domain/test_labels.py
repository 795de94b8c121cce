"""Tests for label measurement, truncation and wrapping."""

from __future__ import annotations

import pytest

from tracectl.domain.labels import (
    approx_text_width,
    font_size_px,
    max_line_width,
    normalize_label,
    truncate_to_width,
    wrap_label,
)


def _chars(text: str, font: str) -> float:
    return float(len(text))


class TestMeasurement:
    @pytest.mark.parametrize(
        ("font", "expected"),
        [("12px system-ui", 12.0), ("bold 14.5px Inter", 14.5), ("serif", 12.0), ("0px x", 12.0)],
    )
    def test_font_size(self, font: str, expected: float) -> None:
        assert font_size_px(font) == expected

    def test_approx_width(self) -> None:
        assert approx_text_width("abcde", "10px x") == pytest.approx(30.0)


class TestNormalize:
    def test_collapses_whitespace(self) -> None:
        assert normalize_label("  Order \n\t API  ") == "Order API"
        assert normalize_label(None) == ""


class TestTruncate:
    def test_fits(self) -> None:
        assert truncate_to_width("abc", 3, measure=_chars) == ("abc", False)

    def test_truncates_with_ellipsis(self) -> None:
        text, cut = truncate_to_width("abcdefgh", 5, measure=_chars)
        assert cut is True
        assert text == "abcd…"

    def test_nothing_fits(self) -> None:
        assert truncate_to_width("abc", 0.5, measure=_chars) == ("", True)


class TestWrap:
    def test_single_line(self) -> None:
        wrapped = wrap_label("Order API", 20, measure=_chars)
        assert wrapped.lines == ("Order API",)
        assert wrapped.truncated is False

    def test_greedy_wrap(self) -> None:
        wrapped = wrap_label("one two three four", 9, measure=_chars)
        assert wrapped.lines == ("one two", "three", "four")
        assert wrapped.truncated is False

    def test_overflow_folds_into_last_line(self) -> None:
        wrapped = wrap_label("aa bb cc dd ee", 5, max_lines=2, measure=_chars)
        assert len(wrapped.lines) == 2
        assert wrapped.lines[0] == "aa bb"
        assert wrapped.lines[1].endswith("…")
        assert wrapped.truncated is True

    def test_long_word_hard_truncated(self) -> None:
        wrapped = wrap_label("abcdefghij", 4, max_lines=3, measure=_chars)
        assert wrapped.lines[0] == "abc…"
        assert wrapped.truncated is True

    def test_every_line_fits(self) -> None:
        text = "Customer relationship management platform for partners"
        wrapped = wrap_label(text, 12, max_lines=3, measure=_chars)
        assert len(wrapped.lines) <= 3
        assert all(len(line) <= 12 for line in wrapped.lines)

    def test_empty(self) -> None:
        assert wrap_label("   ", 10).lines == ("",)

    def test_max_line_width(self) -> None:
        wrapped = wrap_label("one two three", 7, measure=_chars)
        assert max_line_width(wrapped, measure=_chars) == 7.0
