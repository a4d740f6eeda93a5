from __future__ import annotations

from typing import Iterable

from speech_overlay.model import AnnotationRange, Paragraph


def select_ranges(
    ranges: Iterable[AnnotationRange],
    window_begin: int,
    window_end: int,
) -> list[AnnotationRange]:
    """
    Select the ranges fully contained in ``[window_begin, window_end)``.

    A range crossing a window boundary belongs to neither side. Source order is kept.
    """
    return [r for r in ranges if r.begin >= window_begin and r.end <= window_end]


def paragraph_window(paragraph: Paragraph, trailing: int = 0) -> tuple[int, int]:
    """Global offset window of a paragraph, optionally extended by ``trailing`` separator chars."""
    return paragraph.global_offset, paragraph.global_end + trailing
