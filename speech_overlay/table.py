from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from speech_overlay._base import (
    CategoryConfig,
    OverlayException,
    RenderStrategy,
    SentimentConfig,
    entity_categories,
    pos_categories,
)
from speech_overlay.controller import Mode
from speech_overlay.model import AnnotationRange, SpeechView
from speech_overlay.render import EntityStrategy, PosStrategy, SentimentStrategy, resolve_for
from speech_overlay.selector import paragraph_window, select_ranges

logger = logging.getLogger(__name__)


# ---------- Annotation table ----------

class AnnotationTable:
    """
    Tabular view of one annotation layer of a speech.

    Pipeline:
    - build: DataFrame with one row per annotation selected for a paragraph
    - render: export as HTML, CSV, JSON or LaTeX (returns str)
    - summary: counts per category (entities, POS) or per sentiment class

    Columns: paragraph, kind, text, category, score, begin, end, resolved.
    ``resolved`` is False for annotations whose text could not be located in the
    paragraph (they are skipped by the overlay). Sentiment rows are always resolved.
    """
    COLUMNS = ["paragraph", "kind", "text", "category", "score", "begin", "end", "resolved"]

    def __init__(
        self,
        mode: Mode | str,
        *,
        categories: CategoryConfig | None = None,
        sentiment_config: SentimentConfig | None = None,
        default_render_options: dict[str, Any] | None = None,
        separator_width: int = 1,
    ):
        self._mode = Mode.parse(mode)
        self._sentiment_config = sentiment_config or SentimentConfig()
        if self._mode is Mode.ENTITIES:
            self._categories = categories or entity_categories()
            self._strategy: RenderStrategy = EntityStrategy(self._categories)
        elif self._mode is Mode.POS:
            self._categories = categories or pos_categories()
            self._strategy = PosStrategy(self._categories)
        else:
            self._categories = None
            self._strategy = SentimentStrategy(self._sentiment_config, window_trailing=separator_width)
        self._default_render_options = default_render_options or {}

    @property
    def mode(self) -> Mode:
        return self._mode

    def _layer(self, view: SpeechView) -> tuple[AnnotationRange, ...]:
        if self._mode is Mode.ENTITIES:
            return view.entities
        if self._mode is Mode.POS:
            return view.pos_tags
        return view.sentiments

    def build(self, view: SpeechView) -> pd.DataFrame:
        """Build the table, ordered by paragraph and then by begin offset."""
        layer = self._layer(view)
        records: list[dict[str, Any]] = []
        for paragraph in view.paragraphs:
            window_begin, window_end = paragraph_window(paragraph, self._strategy.window_trailing)
            resolved_ids = {id(span.annotation) for span in resolve_for(paragraph, layer, self._strategy)}
            for annotation in select_ranges(layer, window_begin, window_end):
                records.append({
                    "paragraph": paragraph.index,
                    "kind": paragraph.kind.value,
                    "text": annotation.text,
                    "category": annotation.category,
                    "score": annotation.score,
                    "begin": annotation.begin,
                    "end": annotation.end,
                    "resolved": id(annotation) in resolved_ids,
                })

        df = pd.DataFrame.from_records(records, columns=self.COLUMNS)
        if not df.empty:
            df = df.sort_values(by=["paragraph", "begin"], kind="mergesort").reset_index(drop=True)
        return df

    def summary(self, view: SpeechView) -> pd.DataFrame:
        """
        Count the layer's annotations.

        Entities and POS tags are grouped by their display class label; sentiments
        by positive / neutral / negative. Only annotations selected for some
        paragraph are counted.
        """
        df = self.build(view)
        if self._mode is Mode.OFF:
            keys = [self._sentiment_config.classify(s).value for s in df["score"]] if not df.empty else []
            column = "sentiment"
        else:
            keys = []
            for category in df["category"]:
                css_class = self._categories.class_for(category)
                keys.append(self._categories.label_for(css_class) if css_class else category)
            column = "label"

        counts = pd.Series(keys, dtype="object").value_counts(sort=False)
        out = counts.rename_axis(column).reset_index(name="count")
        return out.sort_values(by=["count", column], ascending=[False, True], kind="mergesort").reset_index(drop=True)

    def render(
        self,
        spec: pd.DataFrame,
        *,
        output_format: str = "html",
        render_options: dict[str, Any] | None = None,
    ) -> str:
        """
        Export the table to the requested format.

        Supported formats: 'html', 'csv', 'json' (records), 'latex'.
        """
        fmt = output_format.lower()
        opts = {**self._default_render_options, **(render_options or {})}

        if fmt == "html":
            return spec.to_html(**({"index": False, "escape": True} | opts))

        if fmt == "csv":
            return spec.to_csv(**({"index": False} | opts))

        if fmt == "json":
            return spec.to_json(**({"orient": "records", "force_ascii": False} | opts))

        if fmt == "latex":
            return spec.to_latex(**({"index": False, "escape": True} | opts))

        raise OverlayException(f"Unsupported table output format: {fmt}")

    def visualize(self, view: SpeechView, *, output_format: str = "html") -> str:
        """Convenience wrapper: build + render."""
        return self.render(self.build(view), output_format=output_format)
