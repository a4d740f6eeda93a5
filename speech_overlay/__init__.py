"""
speech_overlay: Overlay pre-computed annotations on parliamentary speech transcripts.

Renders a speech with one of three annotation layers (sentiment icons, named
entity highlighting, part-of-speech highlighting). Annotations are half-open
character ranges into the whole speech; each paragraph receives the ranges it
fully contains, located by their text and spliced in as markup.

Quick start:
    >>> from speech_overlay import ModeController, SpeechView
    >>> view = SpeechView.from_payload(payload)   # textContent, namedEntities, posTags, sentiments
    >>> controller = ModeController(view)
    >>> rendered = controller.activate("ne")
    >>> print(rendered.html())

Main entry points:
    - ModeController: holds the active mode and re-renders the speech
    - render_paragraph / annotate_paragraph: DOM-free rendering of one paragraph
    - AnnotationTable: pandas table and summary of one layer
    - DisplacyEntityView: entity layer rendered with spaCy's displaCy
    - speech_from_cas / speech_from_nlp_results: alternative input adapters
"""

from speech_overlay._base import (
    CategoryConfig,
    Legend,
    MarkupDirective,
    OverlayException,
    RenderStrategy,
    SentimentClass,
    SentimentConfig,
    ViewConfig,
    entity_categories,
    pos_categories,
)
from speech_overlay.model import (
    AnnotationRange,
    BlockNode,
    IconNode,
    Paragraph,
    ParagraphKind,
    ResolvedSpan,
    SpanNode,
    SpeechView,
    TextNode,
    build_paragraphs,
)
from speech_overlay.selector import select_ranges
from speech_overlay.resolver import resolve_anchors, resolve_spans
from speech_overlay.render import (
    DisplacyEntityView,
    EntityStrategy,
    PosStrategy,
    SentimentStrategy,
    annotate_paragraph,
    render_paragraph,
    to_html,
    wrap_html_page,
)
from speech_overlay.controller import Mode, ModeController, RenderedView
from speech_overlay.table import AnnotationTable
from speech_overlay.util import CasLayerConfig, speech_from_cas, speech_from_nlp_results, speech_from_payload

__version__ = "0.1.0"

__all__ = [
    "AnnotationRange",
    "AnnotationTable",
    "BlockNode",
    "CasLayerConfig",
    "CategoryConfig",
    "DisplacyEntityView",
    "EntityStrategy",
    "IconNode",
    "Legend",
    "MarkupDirective",
    "Mode",
    "ModeController",
    "OverlayException",
    "Paragraph",
    "ParagraphKind",
    "PosStrategy",
    "RenderStrategy",
    "RenderedView",
    "ResolvedSpan",
    "SentimentClass",
    "SentimentConfig",
    "SentimentStrategy",
    "SpanNode",
    "SpeechView",
    "TextNode",
    "ViewConfig",
    "annotate_paragraph",
    "build_paragraphs",
    "entity_categories",
    "pos_categories",
    "render_paragraph",
    "resolve_anchors",
    "resolve_spans",
    "select_ranges",
    "speech_from_cas",
    "speech_from_nlp_results",
    "speech_from_payload",
    "to_html",
    "wrap_html_page",
]
