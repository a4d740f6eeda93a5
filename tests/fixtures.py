import pytest
from cassis import Cas, TypeSystem
from cassis.typesystem import TYPE_NAME_DOUBLE, TYPE_NAME_STRING

from speech_overlay.model import SpeechView

T_ENT = "de.tudarmstadt.ukp.dkpro.core.api.ner.type.NamedEntity"
T_POS = "de.tudarmstadt.ukp.dkpro.core.api.lexmorph.type.pos.POS"
T_SENT = "org.hucompute.textimager.uima.type.Sentiment"


@pytest.fixture()
def payload():
    """
    Three blocks, separated by one synthetic character in the offset space:
      0  speech  "Frau Merkel war in Berlin."              offset 0   (len 26)
      1  comment "(Beifall bei der SPD)"                   offset 27  (len 21)
      2  speech  "Das ist sehr gut und das ist richtig."   offset 49  (len 37)
    Entities:
      Merkel (5,11) PER, Berlin (19,25) LOC, SPD (44,47) ORG, sehr (57,61) misc,
      Bonn (60,64) LOC -> not in the text (drift),
      (20,30) ORG straddles paragraphs 0 and 1 -> selected nowhere
    POS (paragraph 2): ist (53,56), gut (62,65), und (66,69, KON), ist (74,77)
    Sentiments: paragraph 0 -> 0.5, paragraph 2 -> 0.0 up to "sehr", -0.6 for the whole paragraph
    """
    return {
        "textContent": [
            {"type": "text", "text": "Frau Merkel war in Berlin."},
            {"type": "comment", "text": "(Beifall bei der SPD)"},
            {"type": "text", "text": "Das ist sehr gut und das ist richtig."},
        ],
        "namedEntities": [
            {"begin": 5, "end": 11, "text": "Merkel", "type": "PER"},
            {"begin": 19, "end": 25, "text": "Berlin", "type": "LOC"},
            {"begin": 20, "end": 30, "text": "Berlin. (Beif", "type": "ORG"},
            {"begin": 44, "end": 47, "text": "SPD", "type": "ORG"},
            {"begin": 60, "end": 64, "text": "Bonn", "type": "LOC"},
            {"begin": 57, "end": 61, "text": "sehr", "type": "misc"},
        ],
        "posTags": [
            {"begin": 74, "end": 77, "text": "ist", "pos": "VAFIN"},
            {"begin": 53, "end": 56, "text": "ist", "pos": "VAFIN"},
            {"begin": 62, "end": 65, "text": "gut", "pos": "ADJD"},
            {"begin": 66, "end": 69, "text": "und", "pos": "KON"},
        ],
        "sentiments": [
            {"begin": 0, "end": 27, "text": "Frau Merkel war in Berlin.", "sentiment": 0.5},
            {"begin": 49, "end": 86, "text": "Das ist sehr gut und das ist richtig.", "sentiment": -0.6},
            {"begin": 49, "end": 61, "text": "Das ist sehr", "sentiment": 0.0},
        ],
    }


@pytest.fixture()
def view(payload):
    return SpeechView.from_payload(payload)


@pytest.fixture(scope="module")
def typesystem():
    ts = TypeSystem()
    ent = ts.create_type(name=T_ENT)
    ts.create_feature(domainType=ent, name="value", rangeType=TYPE_NAME_STRING)
    pos = ts.create_type(name=T_POS)
    ts.create_feature(domainType=pos, name="PosValue", rangeType=TYPE_NAME_STRING)
    sent = ts.create_type(name=T_SENT)
    ts.create_feature(domainType=sent, name="sentiment", rangeType=TYPE_NAME_DOUBLE)
    return ts


@pytest.fixture()
def cas_speech(typesystem):
    """
    Text: "Olaf Scholz spricht.\nDas ist gut."
      paragraph 0 (0,20), paragraph 1 (21,33)
    Entities: Olaf Scholz (0,11) PER
    POS: spricht (12,19) VVFIN, gut (29,32) ADJD
    Sentiment: paragraph 1 (21,33) 0.4
    """
    cas = Cas(typesystem=typesystem)
    cas.sofa_string = "Olaf Scholz spricht.\nDas ist gut."

    ENT_T = typesystem.get_type(T_ENT)
    POS_T = typesystem.get_type(T_POS)
    SENT_T = typesystem.get_type(T_SENT)

    cas.add(ENT_T(begin=0, end=11, value="PER"))
    cas.add(POS_T(begin=12, end=19, PosValue="VVFIN"))
    cas.add(POS_T(begin=29, end=32, PosValue="ADJD"))
    cas.add(SENT_T(begin=21, end=33, sentiment=0.4))
    return cas
