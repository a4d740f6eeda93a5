import tempfile
import webbrowser
from pathlib import Path

from speech_overlay import AnnotationTable, DisplacyEntityView, ModeController, SpeechView, wrap_html_page

payload = {
    "textContent": [
        {"type": "text", "text": "Frau Präsidentin! Die Bundesregierung hat in Berlin entschieden."},
        {"type": "comment", "text": "(Beifall bei der SPD)"},
        {"type": "text", "text": "Das ist gut für Deutschland."},
    ],
    "namedEntities": [
        {"begin": 22, "end": 37, "text": "Bundesregierung", "type": "ORG"},
        {"begin": 45, "end": 51, "text": "Berlin", "type": "LOC"},
        {"begin": 82, "end": 85, "text": "SPD", "type": "ORG"},
        {"begin": 103, "end": 114, "text": "Deutschland", "type": "LOC"},
    ],
    "posTags": [
        {"begin": 22, "end": 37, "text": "Bundesregierung", "pos": "NN"},
        {"begin": 38, "end": 41, "text": "hat", "pos": "VAFIN"},
        {"begin": 52, "end": 63, "text": "entschieden", "pos": "VVPP"},
        {"begin": 91, "end": 94, "text": "ist", "pos": "VAFIN"},
        {"begin": 95, "end": 98, "text": "gut", "pos": "ADJD"},
    ],
    "sentiments": [
        {"begin": 0, "end": 65, "sentiment": 0.1},
        {"begin": 87, "end": 116, "sentiment": 0.6},
    ],
}

view = SpeechView.from_payload(payload)
controller = ModeController(view)

# One section per mode; the controller re-renders the whole speech each time
sections = []
for mode in ("off", "ne", "pos"):
    rendered = controller.activate(mode)
    sections.append(f"<h2>{mode}</h2>\n{rendered.legend_html()}\n{rendered.html()}")

sections.append("<h2>displaCy</h2>\n" + DisplacyEntityView().visualize(view))
sections.append("<h2>Entities</h2>\n" + AnnotationTable("ne").render(AnnotationTable("ne").summary(view)))

html = wrap_html_page("\n".join(sections), "Rede")

# Render HTML in Browser
with tempfile.NamedTemporaryFile('w', delete=False, suffix='.html', encoding='utf-8') as f:
    f.write(html)
    url = Path(f.name).as_uri()
webbrowser.open(url)
