from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any

from speech_overlay._base import (
    CategoryConfig,
    Legend,
    OverlayException,
    RenderStrategy,
    SentimentConfig,
    ViewConfig,
)
from speech_overlay.model import AnnotationRange, BlockNode, MarkupNode, SpeechView
from speech_overlay.render import (
    EntityStrategy,
    PosStrategy,
    SentimentStrategy,
    annotate_paragraph,
    block_inner_html,
    block_to_html,
    plain_block,
    to_html,
)

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    """Active annotation layer. Values are the collaborator's toggle ids."""
    OFF = "off"
    ENTITIES = "ne"
    POS = "pos"

    @classmethod
    def parse(cls, value: Mode | str) -> Mode:
        if isinstance(value, Mode):
            return value
        key = str(value).strip().lower()
        mode = _MODE_ALIASES.get(key)
        if mode is None:
            raise OverlayException(f"Invalid mode: {value}. Expected one of {sorted(_MODE_ALIASES)}")
        return mode


_MODE_ALIASES = {
    "off": Mode.OFF,
    "sentiment": Mode.OFF,
    "ne": Mode.ENTITIES,
    "entities": Mode.ENTITIES,
    "pos": Mode.POS,
}


@dataclass(frozen=True)
class RenderedView:
    """
    Result of one render pass.

    - paragraphs: one block per rendered paragraph, in transcript order
    - container_classes: markup class for the text container (exactly one)
    - legends: legend -> visible
    - legend_items: entries of the visible legend, one tuple of nodes each
    """
    mode: Mode
    paragraphs: tuple[BlockNode, ...]
    container_classes: tuple[str, ...]
    legends: dict[Legend, bool]
    legend_items: tuple[tuple[MarkupNode, ...], ...] = ()
    config: ViewConfig = field(default_factory=ViewConfig, repr=False)

    @property
    def visible_legends(self) -> list[Legend]:
        return [legend for legend, visible in self.legends.items() if visible]

    def fragments(self) -> list[str]:
        """Inner HTML per paragraph, ready to be assigned to the paragraph element."""
        return [block_inner_html(block, self.config) for block in self.paragraphs]

    def html(self) -> str:
        """The whole text container as one HTML fragment."""
        blocks = "".join(block_to_html(block, self.config) for block in self.paragraphs)
        return f'<div id="speechText" class="{" ".join(self.container_classes)}">{blocks}</div>'

    def legend_html(self) -> str:
        """The visible legend as one HTML fragment."""
        legend_id = self.visible_legends[0].value if self.visible_legends else ""
        items = "".join(
            f'<span class="legend-item">{to_html(item, escape=self.config.escape_html)}</span>'
            for item in self.legend_items
        )
        return f'<div id="{legend_id}" class="legend">{items}</div>'


class ModeController:
    """
    Selects exactly one annotation layer and re-renders the whole speech on every change.

    Every transition hides all legends, renders all paragraphs with the new
    mode's strategy only and reveals the legend of that mode. Renders are
    serialized, so a transition is never interleaved with another one.
    """

    def __init__(
        self,
        view: SpeechView | None = None,
        *,
        entity_categories: CategoryConfig | None = None,
        pos_categories: CategoryConfig | None = None,
        sentiment_config: SentimentConfig | None = None,
        config: ViewConfig | None = None,
    ):
        self._config = config or ViewConfig()
        self._strategies: dict[Mode, RenderStrategy] = {
            Mode.OFF: SentimentStrategy(sentiment_config, window_trailing=self._config.separator_width),
            Mode.ENTITIES: EntityStrategy(entity_categories),
            Mode.POS: PosStrategy(pos_categories),
        }
        self._lock = threading.Lock()
        self._view = view if view is not None else SpeechView()
        self._mode = Mode.OFF
        self._rendered: RenderedView | None = None

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def view(self) -> SpeechView:
        return self._view

    @property
    def rendered(self) -> RenderedView:
        """The output of the last render pass (renders the current mode on first access)."""
        if self._rendered is None:
            return self.activate(self._mode)
        return self._rendered

    def strategy(self, mode: Mode | str) -> RenderStrategy:
        return self._strategies[Mode.parse(mode)]

    def load(self, view: SpeechView) -> RenderedView:
        """Replace the speech and return to the default (sentiment) mode."""
        with self._lock:
            self._view = view
            self._mode = Mode.OFF
            self._rendered = None
            logger.info("Loaded speech with %d paragraphs", len(view.paragraphs))
            return self._render_locked()

    def load_payload(self, payload: dict[str, Any]) -> RenderedView:
        return self.load(SpeechView.from_payload(payload, separator_width=self._config.separator_width))

    def activate(self, mode: Mode | str) -> RenderedView:
        """Switch to ``mode`` unconditionally and re-render every paragraph."""
        target = Mode.parse(mode)
        with self._lock:
            if target is not self._mode:
                logger.info("Switching annotation mode %s -> %s", self._mode.value, target.value)
            self._mode = target
            self._rendered = None
            return self._render_locked()

    # ------------- private helpers -------------

    def _layer(self, mode: Mode) -> tuple[AnnotationRange, ...]:
        if mode is Mode.ENTITIES:
            return self._view.entities
        if mode is Mode.POS:
            return self._view.pos_tags
        return self._view.sentiments

    def _render_locked(self) -> RenderedView:
        started = time.perf_counter()
        mode = self._mode
        strategy = self._strategies[mode]
        ranges = self._layer(mode)

        blocks: list[BlockNode] = []
        for paragraph in self._view.paragraphs:
            try:
                blocks.append(annotate_paragraph(paragraph, ranges, strategy, self._config))
            except Exception:
                logger.exception("Rendering paragraph %d in mode %s failed; showing plain text", paragraph.index, mode.value)
                blocks.append(plain_block(paragraph, self._config))

        legends = {legend: legend is strategy.legend for legend in Legend}
        self._rendered = RenderedView(
            mode=mode,
            paragraphs=tuple(blocks),
            container_classes=(strategy.container_class,),
            legends=legends,
            legend_items=tuple(strategy.legend_items()),
            config=self._config,
        )
        logger.debug("Rendered %d paragraphs in mode %s in %.2f ms",
                     len(blocks), mode.value, (time.perf_counter() - started) * 1000)
        return self._rendered
