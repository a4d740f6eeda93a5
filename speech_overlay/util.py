from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Iterable, Union

import cassis

from speech_overlay._base import OverlayException, pos_categories
from speech_overlay.model import (
    AnnotationRange,
    SpeechView,
    build_paragraphs,
    ranges_from_records,
)

logger = logging.getLogger(__name__)


# ---------- CAS input ----------

CasSource = Union[cassis.Cas, str, bytes, Path, IO[bytes]]
TypeSystemSource = Union[cassis.TypeSystem, str, Path, IO[bytes]]


def ensure_typesystem(ts: TypeSystemSource) -> cassis.TypeSystem:
    """Return ``ts`` as a TypeSystem, loading it from a path or an open file when needed."""
    if isinstance(ts, cassis.TypeSystem):
        return ts
    if isinstance(ts, (str, Path)):
        ts = Path(ts)
        logger.debug("Loading type system from %s", ts)
        with ts.open("rb") as f:
            return cassis.load_typesystem(f)
    if hasattr(ts, "read"):
        return cassis.load_typesystem(ts)
    raise TypeError(f"Unsupported type for typesystem: {type(ts).__name__}")


def ensure_cas(
    cas: CasSource,
    typesystem: TypeSystemSource | None = None,
    *,
    lenient: bool = False,
) -> cassis.Cas:
    """
    Return ``cas`` as a loaded Cas.

    Serialized input (XMI as str or bytes, a Path to an XMI file, or an open
    file) needs a type system. A Cas is returned as is; when a TypeSystem
    instance is passed along, the Cas must have been loaded with that instance.
    """
    if isinstance(cas, cassis.Cas):
        if isinstance(typesystem, cassis.TypeSystem) and cas.typesystem is not typesystem:
            raise ValueError("CAS is already loaded with a different TypeSystem instance.")
        return cas

    if typesystem is None:
        raise TypeError(f"A typesystem is required to load a CAS from {type(cas).__name__}")

    if isinstance(cas, (bytes, bytearray)):
        source: Any = io.BytesIO(cas)
    elif isinstance(cas, Path):
        source = io.BytesIO(cas.read_bytes())
    elif isinstance(cas, str) or hasattr(cas, "read"):
        # cassis reads a str as XMI content, not as a path
        source = cas
    else:
        raise TypeError(
            f"Unsupported type for 'cas': {type(cas).__name__}. "
            f"Expected cassis.Cas, str (XMI), bytes, Path, or file-like."
        )
    return cassis.load_cas_from_xmi(source, typesystem=ensure_typesystem(typesystem), lenient=lenient)


@dataclass
class CasLayerConfig:
    """
    CAS types and label features for the three annotation layers.

    Defaults follow the DKPro / TextImager type systems. A layer whose type is
    None or missing from the type system is loaded as empty.
    """
    entity_type: str | None = "de.tudarmstadt.ukp.dkpro.core.api.ner.type.NamedEntity"
    entity_feature: str = "value"
    pos_type: str | None = "de.tudarmstadt.ukp.dkpro.core.api.lexmorph.type.pos.POS"
    pos_feature: str = "PosValue"
    sentiment_type: str | None = "org.hucompute.textimager.uima.type.Sentiment"
    sentiment_feature: str = "sentiment"
    paragraph_separator: str = "\n"


def _feature_value(fs: Any, feature: str) -> Any:
    try:
        return fs.get(feature)
    except (KeyError, AttributeError) as e:
        raise OverlayException(f"Feature '{feature}' not found on type '{fs.type.name}'") from e


def _select_layer(cas: cassis.Cas, type_name: str | None, feature: str, *, scored: bool) -> list[AnnotationRange]:
    if type_name is None:
        return []
    if not cas.typesystem.contains_type(type_name):
        logger.debug("Type %s not in type system, layer left empty", type_name)
        return []

    records: list[dict[str, Any]] = []
    for fs in cas.select(type_name):
        value = _feature_value(fs, feature)
        record = {"begin": fs.begin, "end": fs.end, "text": fs.get_covered_text()}
        if scored:
            record["score"] = value
        else:
            record["category"] = value
        records.append(record)
    if scored:
        return ranges_from_records(records, score_key="score")
    return ranges_from_records(records, category_key="category")


def speech_from_cas(
    cas: CasSource,
    typesystem: TypeSystemSource | None = None,
    *,
    config: CasLayerConfig | None = None,
    lenient: bool = False,
) -> SpeechView:
    """
    Build a view from an annotated CAS.

    ``cas`` may be a loaded Cas or serialized XMI (see ensure_cas), in which case
    ``typesystem`` is required. The sofa is split into speech paragraphs on
    ``paragraph_separator``; offsets therefore line up with the CAS offsets.
    """
    cas = ensure_cas(cas, typesystem, lenient=lenient)
    config = config or CasLayerConfig()
    sofa = cas.sofa_string or ""
    blocks = [{"type": "text", "text": part} for part in sofa.split(config.paragraph_separator)] if sofa else []
    return SpeechView(
        paragraphs=tuple(build_paragraphs(blocks, separator_width=len(config.paragraph_separator))),
        entities=tuple(_select_layer(cas, config.entity_type, config.entity_feature, scored=False)),
        pos_tags=tuple(_select_layer(cas, config.pos_type, config.pos_feature, scored=False)),
        sentiments=tuple(_select_layer(cas, config.sentiment_type, config.sentiment_feature, scored=True)),
    )


# ---------- Payload helpers ----------

def speech_from_payload(payload: dict[str, Any] | None, *, separator_width: int = 1) -> SpeechView:
    """Build a view from the page controller's speech payload; None gives an empty view."""
    if not payload:
        return SpeechView()
    return SpeechView.from_payload(payload, separator_width=separator_width)


def speech_from_nlp_results(
    rede: dict[str, Any],
    *,
    pos_filter: Iterable[str] | None = None,
    separator_width: int = 1,
) -> SpeechView:
    """
    Build a view from a stored speech document.

    - textContent blocks without a type are plain speech text,
    - POS tags come from ``nlpResults.tokens``, restricted to ``pos_filter``
      (defaults to the tags of the POS category table),
    - the first ``nlpResults.sentiment`` entry scores the whole speech and becomes
      ``overall_sentiment``; the remaining entries are ranged sentiments.
    """
    blocks = [
        {"type": block.get("type", "text"), "text": block.get("text")}
        for block in rede.get("textContent") or []
        if isinstance(block, dict)
    ]

    nlp = rede.get("nlpResults")
    if not isinstance(nlp, dict):
        logger.warning("Speech %s has no nlpResults; annotation layers are empty", rede.get("_id"))
        nlp = {}

    allowed = {t.upper() for t in pos_filter} if pos_filter is not None else set(pos_categories().classes)
    tokens = [
        t for t in nlp.get("tokens") or []
        if isinstance(t, dict) and isinstance(t.get("pos"), str) and t["pos"].upper() in allowed
    ]

    overall = None
    sentiment_docs = nlp.get("sentiment") or []
    if sentiment_docs:
        head = sentiment_docs[0]
        try:
            overall = float(head.get("sentiment")) if isinstance(head, dict) else None
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid overall sentiment %r", head)

    return SpeechView(
        paragraphs=tuple(build_paragraphs(blocks, separator_width=separator_width)),
        entities=tuple(ranges_from_records(nlp.get("namedEntities"), category_key="type")),
        pos_tags=tuple(ranges_from_records(tokens, category_key="pos")),
        sentiments=tuple(ranges_from_records(sentiment_docs[1:], score_key="sentiment")),
        overall_sentiment=overall,
    )
