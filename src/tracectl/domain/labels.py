"""Label wrapping and text measurement for column graphs.

Text width comes from an injected measurer ``(text, font) -> width`` so
layout never depends on a rendering surface. :func:`approx_text_width`
is the stable fallback: an average glyph of 0.6em at the font's pixel
size.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

type TextMeasurer = Callable[[str, str], float]

DEFAULT_FONT = "12px system-ui"
DEFAULT_ELLIPSIS = "…"

_FONT_SIZE_RE = re.compile(r"([0-9]+(?:\.[0-9]+)?)px")
_WHITESPACE_RE = re.compile(r"\s+")


def font_size_px(font: str) -> float:
    """Pixel size declared in a CSS font string (12 when absent).

    Examples:
        >>> font_size_px("14px Inter")
        14.0
        >>> font_size_px("bold system-ui")
        12.0
    """
    m = _FONT_SIZE_RE.search(font)
    size = float(m.group(1)) if m else 12.0
    return size if size > 0 else 12.0


def approx_text_width(text: str, font: str = DEFAULT_FONT) -> float:
    """Approximate rendered width: 0.6em per character."""
    return len(text) * font_size_px(font) * 0.6


@dataclass(frozen=True)
class WrappedLabel:
    """A label broken into display lines."""

    lines: tuple[str, ...]
    truncated: bool = False


def normalize_label(text: str | None) -> str:
    """Collapse runs of whitespace and trim."""
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def truncate_to_width(
    text: str,
    max_width: float,
    *,
    font: str = DEFAULT_FONT,
    measure: TextMeasurer = approx_text_width,
    ellipsis: str = DEFAULT_ELLIPSIS,
) -> tuple[str, bool]:
    """Cut *text* to the longest prefix that fits with *ellipsis* appended.

    Returns ``(text, truncated)``. When not even the ellipsis fits the
    result is empty.
    """
    if not text:
        return "", False
    if measure(text, font) <= max_width:
        return text, False
    if measure(ellipsis, font) > max_width:
        return "", True

    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if measure(text[:mid] + ellipsis, font) <= max_width:
            lo = mid
        else:
            hi = mid - 1
    return text[:lo] + ellipsis, True


def wrap_label(
    raw_text: str | None,
    max_width: float,
    *,
    max_lines: int = 3,
    font: str = DEFAULT_FONT,
    measure: TextMeasurer = approx_text_width,
    ellipsis: str = DEFAULT_ELLIPSIS,
) -> WrappedLabel:
    """Greedy word wrap into at most *max_lines* lines.

    Words wider than a line are hard-truncated; text left over once the
    last line is used is folded into it and truncated with *ellipsis*.
    """
    text = normalize_label(raw_text)
    if not text:
        return WrappedLabel(lines=("",))
    max_lines = max(1, max_lines)

    def fit(s: str) -> tuple[str, bool]:
        return truncate_to_width(s, max_width, font=font, measure=measure, ellipsis=ellipsis)

    words = text.split(" ")
    lines: list[str] = []
    current = ""
    truncated = False

    for i, word in enumerate(words):
        candidate = f"{current} {word}" if current else word
        if measure(candidate, font) <= max_width:
            current = candidate
            continue

        if current:
            if len(lines) + 1 == max_lines:
                # Last line: fold everything left into it.
                rest = " ".join([current, *words[i:]])
                last, _ = fit(rest)
                lines.append(last)
                return WrappedLabel(lines=tuple(lines), truncated=True)
            lines.append(current)
            current = ""

        # The word starts a fresh line.
        if measure(word, font) <= max_width:
            current = word
            continue
        if len(lines) + 1 == max_lines:
            rest = " ".join(words[i:])
            last, _ = fit(rest)
            lines.append(last)
            return WrappedLabel(lines=tuple(lines), truncated=True)
        current, cut = fit(word)
        truncated = truncated or cut
        lines.append(current)
        current = ""

    if current:
        lines.append(current)
    if not lines:
        lines.append("")
    return WrappedLabel(lines=tuple(lines), truncated=truncated)


def max_line_width(
    label: WrappedLabel,
    *,
    font: str = DEFAULT_FONT,
    measure: TextMeasurer = approx_text_width,
) -> float:
    """Width of the widest line of *label*."""
    return max((measure(line, font) for line in label.lines), default=0.0)
