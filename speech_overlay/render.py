from __future__ import annotations

import html
import logging
from typing import Any, Iterable, Sequence

from spacy.displacy import EntityRenderer

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
    MarkupNode,
    Paragraph,
    ResolvedSpan,
    SpanNode,
    SpeechView,
    TextNode,
)
from speech_overlay.resolver import resolve_anchors, resolve_spans
from speech_overlay.selector import paragraph_window, select_ranges

logger = logging.getLogger(__name__)


# ---------- Strategies ----------

def _category_legend(categories: CategoryConfig) -> list[tuple[MarkupNode, ...]]:
    return [(SpanNode(css_class, label),) for css_class, label in categories.legend_entries()]


class EntityStrategy(RenderStrategy):
    """Wrap each located named entity in its category class (unknown -> misc)."""
    container_class = "highlight-ne"
    legend = Legend.ENTITIES

    def __init__(self, categories: CategoryConfig | None = None):
        self.categories = categories if categories is not None else entity_categories()

    def classify(self, span: ResolvedSpan) -> MarkupDirective | None:
        css_class = self.categories.class_for(span.annotation.category)
        if css_class is None:
            return None
        return MarkupDirective(MarkupDirective.WRAP, css_class)

    def legend_items(self) -> list[tuple[MarkupNode, ...]]:
        return _category_legend(self.categories)


class PosStrategy(RenderStrategy):
    """
    Wrap each located token in its POS class.

    Tags outside the table produce no wrapper, but the resolver has already moved
    past their text, so later tokens still resolve to the right occurrence.
    """
    container_class = "highlight-pos"
    legend = Legend.POS

    def __init__(self, categories: CategoryConfig | None = None):
        self.categories = categories if categories is not None else pos_categories()

    def classify(self, span: ResolvedSpan) -> MarkupDirective | None:
        css_class = self.categories.class_for(span.annotation.category)
        if css_class is None:
            return None
        return MarkupDirective(MarkupDirective.WRAP, css_class)

    def legend_items(self) -> list[tuple[MarkupNode, ...]]:
        return _category_legend(self.categories)


class SentimentStrategy(RenderStrategy):
    """
    Insert a sentiment icon after the end offset of each sentiment range.

    Sentiment ranges usually run up to the paragraph separator, so the selection
    window is extended by ``window_trailing`` characters and the insertion point
    is clamped to the paragraph text.
    """
    anchor = RenderStrategy.OFFSET
    container_class = "highlight-sentiment"
    legend = Legend.SENTIMENT

    def __init__(self, config: SentimentConfig | None = None, *, window_trailing: int = 1):
        self.config = config if config is not None else SentimentConfig()
        self.window_trailing = window_trailing

    def classify(self, span: ResolvedSpan) -> MarkupDirective | None:
        score = span.annotation.score
        if score is None:
            return None
        sentiment = self.config.classify(score)
        return MarkupDirective(
            MarkupDirective.ICON,
            self.config.icon_class,
            icon=self.config.icons[sentiment],
            title=self.config.title_format.format(score=score),
            color=self.config.colors.get(sentiment),
        )

    def legend_items(self) -> list[tuple[MarkupNode, ...]]:
        items: list[tuple[MarkupNode, ...]] = []
        for sentiment in SentimentClass:
            label = self.config.labels.get(sentiment, sentiment.value)
            icon = IconNode(
                icon=self.config.icons[sentiment],
                css_class=self.config.icon_class,
                title=label,
                color=self.config.colors.get(sentiment),
            )
            items.append((icon, TextNode(f" {label}")))
        return items


# ---------- Splicing ----------

def render_paragraph(text: str, spans: Sequence[ResolvedSpan], strategy: RenderStrategy) -> list[MarkupNode]:
    """
    Splice the markup for ``spans`` into ``text``.

    Spans must be sorted and non-overlapping (as returned by the resolver).
    Every character of ``text`` ends up in exactly one TextNode or SpanNode, in
    order; icons are inserted between them without consuming text.
    """
    nodes: list[MarkupNode] = []
    pending: list[str] = []

    def flush() -> None:
        literal = "".join(pending)
        pending.clear()
        if literal:
            nodes.append(TextNode(literal))

    last_index = 0
    for span in spans:
        if span.start < last_index:
            logger.debug("Ignoring span [%d, %d) overlapping position %d", span.start, span.end, last_index)
            continue
        pending.append(text[last_index:span.start])
        covered = text[span.start:span.end]
        directive = strategy.classify(span)

        if directive is None:
            pending.append(covered)
        elif directive.action == MarkupDirective.WRAP:
            flush()
            nodes.append(SpanNode(directive.css_class, covered))
        elif directive.action == MarkupDirective.ICON:
            pending.append(covered)
            flush()
            nodes.append(IconNode(
                icon=directive.icon or "",
                css_class=directive.css_class,
                title=directive.title,
                color=directive.color,
            ))
        else:
            raise OverlayException(f"Unknown markup action: {directive.action}")
        last_index = span.end

    pending.append(text[last_index:])
    flush()
    return nodes


def resolve_for(paragraph: Paragraph, ranges: Iterable[AnnotationRange], strategy: RenderStrategy) -> list[ResolvedSpan]:
    """Select the paragraph's ranges and resolve them the way the strategy anchors them."""
    window_begin, window_end = paragraph_window(paragraph, strategy.window_trailing)
    selected = select_ranges(ranges, window_begin, window_end)
    if strategy.anchor == RenderStrategy.OFFSET:
        return resolve_anchors(paragraph, selected)
    return resolve_spans(paragraph.text, selected)


def block_classes(paragraph: Paragraph, config: ViewConfig) -> tuple[str, ...]:
    if paragraph.is_comment:
        return (config.comment_class,)
    if paragraph.index == 0:
        return config.speech_class, config.first_speaker_class
    return (config.speech_class,)


def plain_block(paragraph: Paragraph, config: ViewConfig | None = None) -> BlockNode:
    """A paragraph without any annotation markup."""
    config = config or ViewConfig()
    children = (TextNode(paragraph.text),) if paragraph.text else ()
    return BlockNode(paragraph, block_classes(paragraph, config), children, emphasis=paragraph.is_comment)


def annotate_paragraph(
    paragraph: Paragraph,
    ranges: Iterable[AnnotationRange],
    strategy: RenderStrategy,
    config: ViewConfig | None = None,
) -> BlockNode:
    """Range Selector -> Span Resolver -> Renderer for one paragraph."""
    config = config or ViewConfig()
    spans = resolve_for(paragraph, ranges, strategy)
    children = render_paragraph(paragraph.text, spans, strategy)
    return BlockNode(paragraph, block_classes(paragraph, config), tuple(children), emphasis=paragraph.is_comment)


# ---------- HTML serialization ----------

def _escape(text: str, escape: bool) -> str:
    return html.escape(text, quote=False) if escape else text


def node_to_html(node: MarkupNode, *, escape: bool = True) -> str:
    if isinstance(node, TextNode):
        return _escape(node.text, escape)
    if isinstance(node, SpanNode):
        return f'<span class="{html.escape(node.css_class)}">{_escape(node.text, escape)}</span>'
    if isinstance(node, IconNode):
        title = f' title="{html.escape(node.title)}"' if node.title else ""
        style = f' style="color: {html.escape(node.color)};"' if node.color else ""
        return (
            f'<span class="{html.escape(node.css_class)}"{title}>'
            f'<i class="{html.escape(node.icon)}"{style}></i></span>'
        )
    raise OverlayException(f"Unsupported markup node: {type(node).__name__}")


def to_html(nodes: Iterable[MarkupNode], *, escape: bool = True) -> str:
    """Serialize inline nodes to an HTML fragment."""
    return "".join(node_to_html(n, escape=escape) for n in nodes)


def block_inner_html(block: BlockNode, config: ViewConfig | None = None) -> str:
    """Inner HTML of a paragraph block; comments are wrapped in the emphasis tag."""
    config = config or ViewConfig()
    inner = to_html(block.children, escape=config.escape_html)
    if block.emphasis:
        return f"<{config.comment_tag}>{inner}</{config.comment_tag}>"
    return inner


def block_to_html(block: BlockNode, config: ViewConfig | None = None) -> str:
    classes = " ".join(block.css_classes)
    return f'<div class="{classes}">{block_inner_html(block, config)}</div>'


def wrap_html_page(fragment: str, title: str = "Speech") -> str:
    """Wrap an HTML fragment into a full document with UTF-8 meta."""
    return (
        "<!doctype html>\n"
        "<html lang=\"de\">\n"
        "<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{html.escape(title)}</title>\n</head>\n<body>\n"
        f"{fragment}\n"
        "</body>\n</html>"
    )


# ---------- displaCy entity view ----------

class DisplacyEntityView:
    """
    Named entity view rendered with spaCy's displaCy.

    build returns one spec per paragraph:
    {'text': str, 'ents': [{'start', 'end', 'label'}], 'colors': {label: color}}
    where offsets are paragraph-local and come from the Span Resolver, so the
    same drift handling applies as in the overlay.
    """

    def __init__(self, categories: CategoryConfig | None = None, *, page: bool = False):
        self._categories = categories if categories is not None else entity_categories()
        self._page = page

    def build(self, view: SpeechView) -> list[dict[str, Any]]:
        strategy = EntityStrategy(self._categories)
        specs: list[dict[str, Any]] = []
        for paragraph in view.paragraphs:
            ents: list[dict[str, Any]] = []
            colors: dict[str, str] = {}
            for span in resolve_for(paragraph, view.entities, strategy):
                label = span.annotation.category or "MISC"
                ents.append({"start": span.start, "end": span.end, "label": label})
                color = self._categories.color_for(self._categories.class_for(label))
                if color is not None:
                    colors[label] = color
            specs.append({"text": paragraph.text, "ents": ents, "colors": colors})
        return specs

    def render(self, specs: list[dict[str, Any]], *, output_format: str = "html") -> str:
        fmt = output_format.lower()
        if fmt != "html":
            raise OverlayException("DisplacyEntityView supports only 'html' output_format")
        fragments = [
            EntityRenderer({"colors": spec["colors"]}).render_ents(spec["text"], spec["ents"], "")
            for spec in specs
        ]
        frag = "\n".join(fragments)
        return wrap_html_page(frag, "Named Entities") if self._page else frag

    def visualize(self, view: SpeechView, *, output_format: str = "html") -> str:
        """Convenience: build + render."""
        return self.render(self.build(view), output_format=output_format)
