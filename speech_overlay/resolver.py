from __future__ import annotations

import logging
from typing import Iterable

from speech_overlay.model import AnnotationRange, Paragraph, ResolvedSpan

logger = logging.getLogger(__name__)


def resolve_spans(text: str, candidates: Iterable[AnnotationRange]) -> list[ResolvedSpan]:
    """
    Locate annotation texts in a paragraph, left to right.

    Candidates are sorted by ``begin`` (stable), then each ``annotation.text`` is
    searched from a cursor that only moves forward. A hit at ``i`` yields the span
    ``[i, i + len)`` and moves the cursor to its end; a miss skips the annotation
    and leaves the cursor where it was.

    Returns spans sorted by start and pairwise non-overlapping.
    """
    spans: list[ResolvedSpan] = []
    search_from = 0
    for annotation in sorted(candidates, key=lambda a: a.begin):
        needle = annotation.text
        if not needle:
            logger.debug("Skipping annotation [%d, %d) without text", annotation.begin, annotation.end)
            continue
        hit = text.find(needle, search_from)
        if hit == -1:
            logger.debug(
                "Annotation %r [%d, %d) not found after position %d",
                needle, annotation.begin, annotation.end, search_from,
            )
            continue
        spans.append(ResolvedSpan(start=hit, end=hit + len(needle), annotation=annotation))
        search_from = hit + len(needle)
    return spans


def resolve_anchors(paragraph: Paragraph, candidates: Iterable[AnnotationRange]) -> list[ResolvedSpan]:
    """
    Turn offset-anchored annotations into zero-width insertion points.

    The insertion point is the annotation's end in paragraph coordinates, clamped
    to the paragraph text. Points are ordered by end offset (stable).
    """
    length = len(paragraph.text)
    anchors: list[ResolvedSpan] = []
    for annotation in sorted(candidates, key=lambda a: a.end):
        pos = min(max(annotation.end - paragraph.global_offset, 0), length)
        anchors.append(ResolvedSpan(start=pos, end=pos, annotation=annotation))
    return anchors
