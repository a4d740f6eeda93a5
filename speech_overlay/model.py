from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Union

logger = logging.getLogger(__name__)


class ParagraphKind(enum.Enum):
    """Kind of a transcript block. Values match the collaborator's ``type`` strings."""
    COMMENT = "comment"
    SPEECH = "text"

    @classmethod
    def parse(cls, value: Any) -> ParagraphKind | None:
        """Map a raw ``type`` value to a kind; ``None`` for absent or unknown types."""
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        return None


# ---------- Span model ----------

@dataclass(frozen=True)
class Paragraph:
    """
    One block of the speech transcript.

    Fields:
    - kind: comment (interjection) or speech text
    - text: raw paragraph text
    - global_offset: start of this paragraph in the whole-speech offset space
    - index: position of the block in the collaborator's input sequence
    """
    kind: ParagraphKind
    text: str
    global_offset: int
    index: int

    @property
    def global_end(self) -> int:
        return self.global_offset + len(self.text)

    @property
    def is_comment(self) -> bool:
        return self.kind is ParagraphKind.COMMENT


@dataclass(frozen=True)
class AnnotationRange:
    """
    A half-open ``[begin, end)`` range in the whole-speech offset space.

    ``text`` is the annotated surface string as recorded upstream. It is located
    in the paragraph by content, so it may disagree with ``begin``/``end``.
    ``score`` is only set for sentiment ranges.
    """
    begin: int
    end: int
    text: str = ""
    category: str = ""
    score: float | None = None

    def __len__(self) -> int:
        return self.end - self.begin


@dataclass(frozen=True)
class ResolvedSpan:
    """An annotation translated to paragraph-local ``[start, end)`` coordinates."""
    start: int
    end: int
    annotation: AnnotationRange


# ---------- Markup nodes ----------

@dataclass(frozen=True)
class TextNode:
    text: str


@dataclass(frozen=True)
class SpanNode:
    css_class: str
    text: str


@dataclass(frozen=True)
class IconNode:
    icon: str
    css_class: str = "sentiment-icon"
    title: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class BlockNode:
    """A rendered paragraph: block classes plus inline children."""
    paragraph: Paragraph
    css_classes: tuple[str, ...]
    children: tuple[Union[TextNode, SpanNode, IconNode], ...] = field(default_factory=tuple)
    emphasis: bool = False


MarkupNode = Union[TextNode, SpanNode, IconNode]


# ---------- Speech view ----------

@dataclass(frozen=True)
class SpeechView:
    """
    Everything needed to render one speech: paragraphs and the three annotation layers.

    A view is read-only; navigating to another speech means building a new one.
    """
    paragraphs: tuple[Paragraph, ...] = ()
    entities: tuple[AnnotationRange, ...] = ()
    pos_tags: tuple[AnnotationRange, ...] = ()
    sentiments: tuple[AnnotationRange, ...] = ()
    overall_sentiment: float | None = None

    @property
    def is_empty(self) -> bool:
        return not self.paragraphs

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, separator_width: int = 1) -> SpeechView:
        """
        Build a view from the speech payload handed over by the page controller:
        ``textContent``, ``namedEntities``, ``posTags`` and ``sentiments``.
        Missing collections are treated as empty.
        """
        return cls(
            paragraphs=tuple(build_paragraphs(payload.get("textContent") or [], separator_width=separator_width)),
            entities=tuple(ranges_from_records(payload.get("namedEntities"), category_key="type")),
            pos_tags=tuple(ranges_from_records(payload.get("posTags"), category_key="pos")),
            sentiments=tuple(ranges_from_records(payload.get("sentiments"), score_key="sentiment")),
        )


# ---------- Record parsing ----------

def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def ranges_from_records(
    records: Iterable[dict[str, Any]] | None,
    *,
    category_key: str | None = None,
    score_key: str | None = None,
) -> list[AnnotationRange]:
    """
    Convert raw annotation records into ranges.

    Records without usable ``begin``/``end`` offsets, empty or inverted ranges, and
    (when ``score_key`` is given) records with a non-numeric score are dropped.
    """
    if not records:
        return []
    ranges: list[AnnotationRange] = []
    for record in records:
        if not isinstance(record, dict):
            logger.warning("Dropping annotation record that is not a mapping: %r", record)
            continue
        begin, end = _as_int(record.get("begin")), _as_int(record.get("end"))
        if begin is None or end is None:
            logger.warning("Dropping annotation record without offsets: %r", record)
            continue
        if begin >= end:
            logger.debug("Dropping empty or inverted range [%d, %d)", begin, end)
            continue

        score = None
        if score_key is not None:
            raw = record.get(score_key)
            try:
                score = float(raw)
            except (TypeError, ValueError):
                logger.warning("Dropping annotation [%d, %d) with invalid score %r", begin, end, raw)
                continue

        category = record.get(category_key) if category_key else None
        text = record.get("text")
        ranges.append(AnnotationRange(
            begin=begin,
            end=end,
            text=text if isinstance(text, str) else "",
            category=str(category).strip().upper() if category is not None else "",
            score=score,
        ))
    return ranges


# ---------- Paragraph construction ----------

def build_paragraphs(blocks: Iterable[dict[str, Any]], *, separator_width: int = 1) -> list[Paragraph]:
    """
    Build paragraphs from ``{"type": ..., "text": ...}`` blocks.

    The global offset of each block is the running sum of the previous block
    lengths plus ``separator_width`` per block. Blocks with an absent or unknown
    type are logged and omitted, but still advance the offset. Entries that are
    not mappings carry no text and advance it by the separator only.
    """
    paragraphs: list[Paragraph] = []
    offset = 0
    for index, block in enumerate(blocks):
        if not isinstance(block, dict):
            logger.warning("Omitting paragraph %d that is not a mapping: %.60r", index, block)
            offset += separator_width
            continue
        text = block.get("text") or ""
        if not isinstance(text, str):
            text = str(text)
        kind = ParagraphKind.parse(block.get("type"))
        if kind is None:
            logger.warning("Omitting paragraph %d with unknown type %r: %.60r", index, block.get("type"), text)
        else:
            paragraphs.append(Paragraph(kind=kind, text=text, global_offset=offset, index=index))
        offset += len(text) + separator_width
    return paragraphs
