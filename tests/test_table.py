import csv
import json
from io import StringIO

import pytest

from speech_overlay._base import OverlayException
from speech_overlay.controller import Mode
from speech_overlay.table import AnnotationTable

from tests.fixtures import *


# ------------------------------
# AnnotationTable: build
# ------------------------------

def test_build_entity_table(view):
    df = AnnotationTable("ne").build(view)

    assert list(df.columns) == AnnotationTable.COLUMNS
    # the straddling ORG range is selected for no paragraph
    assert list(df["text"]) == ["Merkel", "Berlin", "SPD", "sehr", "Bonn"]
    assert list(df["paragraph"]) == [0, 0, 1, 2, 2]
    assert list(df["kind"]) == ["text", "text", "comment", "text", "text"]
    assert list(df["resolved"]) == [True, True, True, True, False]


def test_build_pos_table(view):
    df = AnnotationTable(Mode.POS).build(view)
    assert list(df["begin"]) == [53, 62, 66, 74]
    assert list(df["category"]) == ["VAFIN", "ADJD", "KON", "VAFIN"]
    assert df["resolved"].all()


def test_build_sentiment_table(view):
    df = AnnotationTable("off").build(view)
    assert list(df["paragraph"]) == [0, 2, 2]
    assert list(df["score"]) == [0.5, -0.6, 0.0]


def test_build_empty_view():
    from speech_overlay.model import SpeechView

    df = AnnotationTable("ne").build(SpeechView())
    assert df.empty
    assert list(df.columns) == AnnotationTable.COLUMNS


# ------------------------------
# AnnotationTable: summary
# ------------------------------

def test_entity_summary(view):
    summary = AnnotationTable("ne").summary(view)
    assert list(summary.columns) == ["label", "count"]
    assert list(summary.itertuples(index=False, name=None)) == [
        ("Ort", 2), ("Organisation", 1), ("Person", 1), ("Sonstiges", 1),
    ]


def test_pos_summary_keeps_unknown_tags(view):
    summary = AnnotationTable("pos").summary(view)
    assert dict(summary.itertuples(index=False, name=None)) == {"Verb": 2, "Adjektiv": 1, "KON": 1}


def test_sentiment_summary(view):
    summary = AnnotationTable("off").summary(view)
    assert list(summary.columns) == ["sentiment", "count"]
    assert list(summary.itertuples(index=False, name=None)) == [
        ("negative", 1), ("neutral", 1), ("positive", 1),
    ]


# ------------------------------
# AnnotationTable: render
# ------------------------------

def test_visualize_equals_render_default_html(view):
    table = AnnotationTable("ne")
    expected = table.render(table.build(view), output_format="html")
    actual = table.visualize(view)
    assert actual == expected
    assert "<table" in actual and "Merkel" in actual


def test_render_csv(view):
    table = AnnotationTable("ne")
    rows = list(csv.reader(StringIO(table.visualize(view, output_format="csv"))))
    assert rows[0] == AnnotationTable.COLUMNS
    assert rows[1][2] == "Merkel"
    assert len(rows) == 6


def test_render_json_records(view):
    data = json.loads(AnnotationTable("pos").visualize(view, output_format="json"))
    assert isinstance(data, list)
    assert len(data) == 4
    assert set(data[0].keys()) == set(AnnotationTable.COLUMNS)


def test_render_json_orient_split(view):
    table = AnnotationTable("pos")
    data = json.loads(table.render(table.build(view), output_format="json", render_options={"orient": "split"}))
    assert data["columns"] == AnnotationTable.COLUMNS
    assert len(data["data"]) == 4


def test_render_latex(view):
    tex = AnnotationTable("ne").visualize(view, output_format="latex")
    assert "\\begin{tabular" in tex
    assert "Merkel" in tex


def test_render_unsupported_format(view):
    table = AnnotationTable("ne")
    with pytest.raises(OverlayException):
        table.render(table.build(view), output_format="xlsx")


def test_unknown_mode_raises():
    with pytest.raises(OverlayException):
        AnnotationTable("topics")
