import logging

from speech_overlay.model import (
    AnnotationRange,
    ParagraphKind,
    SpeechView,
    build_paragraphs,
    ranges_from_records,
)

from tests.fixtures import *


# ------------------------------
# Paragraph construction
# ------------------------------

def test_build_paragraphs_offsets_include_separator():
    paragraphs = build_paragraphs([
        {"type": "text", "text": "abc"},
        {"type": "comment", "text": "de"},
        {"type": "text", "text": "f"},
    ])
    assert [p.global_offset for p in paragraphs] == [0, 4, 7]
    assert [p.kind for p in paragraphs] == [ParagraphKind.SPEECH, ParagraphKind.COMMENT, ParagraphKind.SPEECH]
    assert [p.index for p in paragraphs] == [0, 1, 2]


def test_build_paragraphs_type_is_normalized():
    paragraphs = build_paragraphs([{"type": "  Comment ", "text": "x"}, {"type": "TEXT", "text": "y"}])
    assert [p.kind for p in paragraphs] == [ParagraphKind.COMMENT, ParagraphKind.SPEECH]


def test_build_paragraphs_omits_malformed_but_keeps_offsets(caplog):
    with caplog.at_level(logging.WARNING, logger="speech_overlay.model"):
        paragraphs = build_paragraphs([
            {"type": "text", "text": "abc"},
            {"text": "no type"},
            {"type": "heading", "text": "unknown"},
            {"type": "text", "text": "end"},
        ])

    assert [p.text for p in paragraphs] == ["abc", "end"]
    # 4 + 8 + 8
    assert paragraphs[1].global_offset == 20
    assert paragraphs[1].index == 3
    assert "unknown type" in caplog.text


def test_build_paragraphs_skips_entries_that_are_not_mappings(caplog):
    with caplog.at_level(logging.WARNING, logger="speech_overlay.model"):
        paragraphs = build_paragraphs([
            {"type": "text", "text": "Eins"},
            "kaputt",
            None,
            {"type": "text", "text": "Zwei"},
        ])

    assert [p.text for p in paragraphs] == ["Eins", "Zwei"]
    # 5 + 1 + 1
    assert paragraphs[1].global_offset == 7
    assert paragraphs[1].index == 3
    assert "not a mapping" in caplog.text


def test_build_paragraphs_custom_separator_width():
    paragraphs = build_paragraphs([{"type": "text", "text": "ab"}, {"type": "text", "text": "c"}], separator_width=2)
    assert paragraphs[1].global_offset == 4


# ------------------------------
# Annotation records
# ------------------------------

def test_ranges_from_records_normalizes_category():
    ranges = ranges_from_records([{"begin": 0, "end": 3, "text": "abc", "type": "per"}], category_key="type")
    assert ranges == [AnnotationRange(begin=0, end=3, text="abc", category="PER")]


def test_ranges_from_records_drops_unusable_records():
    records = [
        {"begin": 0, "end": 3, "text": "abc", "sentiment": 0.1},
        {"end": 3, "text": "no begin", "sentiment": 0.1},
        {"begin": 5, "end": 5, "text": "", "sentiment": 0.1},
        {"begin": 7, "end": 4, "text": "inverted", "sentiment": 0.1},
        {"begin": 1, "end": 2, "text": "b", "sentiment": "n/a"},
        "not a record",
    ]
    ranges = ranges_from_records(records, score_key="sentiment")
    assert len(ranges) == 1
    assert ranges[0].score == 0.1


def test_ranges_from_records_offsets_as_strings():
    records = [
        {"begin": "2", "end": " 5 ", "text": "abc"},
        {"begin": "²", "end": 5, "text": "x"},
        {"begin": "1.5", "end": 5, "text": "y"},
    ]
    ranges = ranges_from_records(records)
    assert [(r.begin, r.end, r.text) for r in ranges] == [(2, 5, "abc")]


def test_ranges_from_records_empty_input():
    assert ranges_from_records(None) == []
    assert ranges_from_records([]) == []


def test_ranges_without_text_get_empty_string():
    ranges = ranges_from_records([{"begin": 0, "end": 4, "sentiment": -0.2}], score_key="sentiment")
    assert ranges[0].text == ""
    assert ranges[0].score == -0.2


# ------------------------------
# Speech view
# ------------------------------

def test_view_from_payload(view):
    assert [p.global_offset for p in view.paragraphs] == [0, 27, 49]
    assert view.paragraphs[1].is_comment
    assert len(view.entities) == 6
    assert len(view.pos_tags) == 4
    assert len(view.sentiments) == 3
    assert view.entities[-1].category == "MISC"


def test_view_from_payload_missing_collections():
    view = SpeechView.from_payload({"textContent": [{"type": "text", "text": "Hallo"}]})
    assert len(view.paragraphs) == 1
    assert view.entities == () and view.pos_tags == () and view.sentiments == ()


def test_empty_view():
    assert SpeechView.from_payload({}).is_empty
