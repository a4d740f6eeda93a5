from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from itertools import cycle
from typing import Any, Iterator

from speech_overlay.model import MarkupNode, ResolvedSpan


class OverlayException(Exception):
    """
    Domain-specific error for overlay configuration.

    Raised when:
    - an unknown mode is requested from the controller,
    - a requested output format is unsupported,
    - a category table is configured with empty names or classes.

    Rendering a paragraph never raises it; drifted or unknown annotations
    degrade to plain text instead.
    """
    pass


class Legend(enum.Enum):
    """Legends the collaborator can show, valued by their element id."""
    SENTIMENT = "legend-sentiment"
    ENTITIES = "legend-ne"
    POS = "legend-pos"


# Cycled, never exhausted
_DEFAULT_COLORS = [
    "lightgreen", "orangered", "orange", "plum", "palegreen",
    "mediumseagreen", "steelblue", "skyblue", "navajowhite",
    "mediumpurple", "rosybrown", "silver", "gray", "paleturquoise",
]


# ---------- Category configuration ----------

@dataclass
class CategoryConfig:
    """
    Category table for one annotation kind.

    Fields:
    - name: kind of annotation the table describes (e.g. "entity", "pos")
    - default_class: CSS class for categories missing from ``classes``; None means no markup
    - classes: category (upper-case) -> CSS class
    - colors: CSS class -> color, used by the displaCy view and legends
    - labels: CSS class -> human readable legend label
    """
    name: str
    default_class: str | None = None
    classes: dict[str, str] = field(default_factory=dict)
    colors: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    _palette: Iterator[str] = field(default_factory=lambda: cycle(_DEFAULT_COLORS), repr=False, compare=False)

    def class_for(self, category: Any) -> str | None:
        """
        Resolve a CSS class:
        - categories are compared upper-case,
        - unknown or missing categories fall back to default_class.
        """
        if category is None:
            return self.default_class
        return self.classes.get(str(category).strip().upper(), self.default_class)

    def color_for(self, css_class: str | None) -> str | None:
        if css_class is None:
            return None
        return self.colors.get(css_class)

    def label_for(self, css_class: str) -> str:
        return self.labels.get(css_class, css_class)

    def add(
        self,
        category: str,
        css_class: str,
        *,
        color: str | None = None,
        label: str | None = None,
    ) -> None:
        """
        Map a category to a CSS class.

        A color is picked from the default palette when the class has none yet.
        """
        if not category:
            raise OverlayException(f"{self.name}: category cannot be empty")
        if not css_class:
            raise OverlayException(f"{self.name}: a CSS class for category {category} must be specified")
        self.classes[category.strip().upper()] = css_class
        if color is not None:
            self.colors[css_class] = color
        elif css_class not in self.colors:
            self.colors[css_class] = next(self._palette)
        if label is not None:
            self.labels[css_class] = label

    def legend_entries(self) -> list[tuple[str, str]]:
        """(css_class, label) pairs in table order, one per class."""
        seen: dict[str, str] = {}
        for css_class in list(self.classes.values()) + ([self.default_class] if self.default_class else []):
            if css_class not in seen:
                seen[css_class] = self.label_for(css_class)
        return list(seen.items())


def entity_categories() -> CategoryConfig:
    """Default named entity table (PER, LOC, ORG, MISC); unknown types render as MISC."""
    cfg = CategoryConfig(name="entity", default_class="entity-misc")
    cfg.add("PER", "entity-person", color="#aa9cfc", label="Person")
    cfg.add("LOC", "entity-location", color="#ff9561", label="Ort")
    cfg.add("ORG", "entity-organization", color="#7aecec", label="Organisation")
    cfg.add("MISC", "entity-misc", color="#e4e7d2", label="Sonstiges")
    return cfg


def pos_categories() -> CategoryConfig:
    """Default STTS table; tags outside it are rendered without markup."""
    cfg = CategoryConfig(name="pos", default_class=None)
    cfg.add("NN", "pos-nom", color="#7aecec", label="Nomen")
    cfg.add("NE", "pos-ne", color="#aa9cfc", label="Eigenname")
    for tag in ("ADJ", "ADJA", "ADJD"):
        cfg.add(tag, "pos-adj", color="#bfe1d9", label="Adjektiv")
    cfg.add("ADV", "pos-adv", color="#feca74", label="Adverb")
    for tag in (
        "VVFIN", "VVINF", "VVIZU", "VVPP",
        "VAFIN", "VAIMP", "VAINF", "VAPP",
        "VMFIN", "VMINF", "VMPP",
    ):
        cfg.add(tag, "pos-verb", color="#ff9561", label="Verb")
    return cfg


# ---------- Sentiment configuration ----------

class SentimentClass(enum.Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass
class SentimentConfig:
    """
    Thresholds and icons for sentiment markers.

    ``score >= positive_threshold`` is positive, ``score <= negative_threshold``
    is negative, everything in between is neutral.
    """
    positive_threshold: float = 0.3
    negative_threshold: float = -0.3
    icons: dict[SentimentClass, str] = field(default_factory=lambda: {
        SentimentClass.POSITIVE: "fa-solid fa-face-smile",
        SentimentClass.NEUTRAL: "fa-solid fa-face-meh",
        SentimentClass.NEGATIVE: "fa-solid fa-face-frown",
    })
    colors: dict[SentimentClass, str] = field(default_factory=lambda: {
        SentimentClass.POSITIVE: "#27AE60",
        SentimentClass.NEUTRAL: "#F39C12",
        SentimentClass.NEGATIVE: "#E74C3C",
    })
    labels: dict[SentimentClass, str] = field(default_factory=lambda: {
        SentimentClass.POSITIVE: "Positiv",
        SentimentClass.NEUTRAL: "Neutral",
        SentimentClass.NEGATIVE: "Negativ",
    })
    icon_class: str = "sentiment-icon"
    title_format: str = "Sentiment-Wert: {score:.3f}"

    def classify(self, score: float) -> SentimentClass:
        if score >= self.positive_threshold:
            return SentimentClass.POSITIVE
        if score <= self.negative_threshold:
            return SentimentClass.NEGATIVE
        return SentimentClass.NEUTRAL


# ---------- View configuration ----------

@dataclass
class ViewConfig:
    """
    Paragraph-level rendering options.

    - separator_width: characters between two paragraphs in the global offset space
    - escape_html: escape text when serializing to HTML
    - comment_tag: emphasis element wrapped around comment paragraphs
    """
    separator_width: int = 1
    escape_html: bool = True
    comment_tag: str = "em"
    comment_class: str = "comment-box"
    speech_class: str = "speech-text"
    first_speaker_class: str = "first-speaker"


# ---------- Strategy interface ----------

@dataclass(frozen=True)
class MarkupDirective:
    """
    What to insert for a resolved span.

    - WRAP: wrap the span text in an element with ``css_class``
    - ICON: insert an icon element right after the span end
    """
    WRAP = "wrap"
    ICON = "icon"

    action: str
    css_class: str
    icon: str | None = None
    title: str | None = None
    color: str | None = None


class RenderStrategy(abc.ABC):
    """
    Base class for annotation layer renderers.

    Contract:
    - ``anchor`` is "text" when spans are located by content, "offset" when they
      are zero-width insertion points at the annotation end,
    - ``window_trailing`` extends the paragraph selection window by that many
      separator characters,
    - ``classify`` returns the directive for one resolved span, or None to emit
      the span text without markup.
    """
    TEXT = "text"
    OFFSET = "offset"

    anchor: str = TEXT
    window_trailing: int = 0
    container_class: str = ""
    legend: Legend

    @abc.abstractmethod
    def classify(self, span: ResolvedSpan) -> MarkupDirective | None:
        raise NotImplementedError

    def legend_items(self) -> list[tuple[MarkupNode, ...]]:
        """Legend entries of this layer, one tuple of nodes per entry."""
        return []
