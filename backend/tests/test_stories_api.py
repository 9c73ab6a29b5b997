"""HTTP tests for the stateless story and traversal endpoints."""
import json

from fastapi.testclient import TestClient

from backend.main import app

client = TestClient(app)


def _normalized(raw_story) -> dict:
    res = client.post("/v1/stories/normalize", json={"title": "Rani", "moral_lesson": "Tell an adult.", "slides": raw_story})
    assert res.status_code == 200
    return res.json()["story"]


def test_health_and_root():
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["message"] == "SafeStory API"


def test_normalize_returns_camel_case_story(raw_story):
    raw_story[5]["imagePrompt"] = ""
    res = client.post("/v1/stories/normalize", json={"title": "Rani", "slides": raw_story})
    assert res.status_code == 200
    body = res.json()
    story = body["story"]
    assert story["title"] == "Rani"
    assert [s["id"] for s in story["slides"]] == list(range(1, 8))
    decision = story["slides"][2]
    assert decision["imagePrompt"] == "Picture for slide 3"
    assert [c["nextSlide"] for c in decision["choices"]] == [5, 4]
    assert [c["isCorrect"] for c in decision["choices"]] == [True, False]
    assert body["dropped_slides"] == 1
    assert body["repairs"]


def test_normalize_accepts_model_reply_text(raw_story):
    content = "Here is your story:\n```json\n" + json.dumps({"title": "From model", "slides": raw_story}) + "\n```"
    res = client.post("/v1/stories/normalize", json={"content": content})
    assert res.status_code == 200
    assert res.json()["story"]["title"] == "From model"


def test_normalize_is_idempotent_over_http(raw_story):
    first = _normalized(raw_story)
    res = client.post("/v1/stories/normalize", json={"slides": first["slides"], "title": first["title"]})
    assert res.json()["story"]["slides"] == first["slides"]


def test_too_short_story_asks_for_regeneration(make_raw_story):
    res = client.post("/v1/stories/normalize", json={"slides": make_raw_story(5)})
    assert res.status_code == 422
    body = res.json()
    assert body["error_code"] == "GENERATION_TOO_SHORT"
    assert body["node"] == "normalizer"
    assert body["details"] == {"retry": True, "usable_slides": 5, "required_slides": 7}
    assert "try generating again" in body["message"]


def test_malformed_payload_is_422():
    res = client.post("/v1/stories/normalize", json={"slides": {"not": "a list"}})
    assert res.status_code == 422
    assert res.json()["error_code"] == "MALFORMED_PAYLOAD"


def test_validate_reports_errors(raw_story):
    story = _normalized(raw_story)
    assert client.post("/v1/stories/validate", json={"story": story}).json() == {"ok": True, "errors": []}

    story["slides"][6]["choices"] = story["slides"][2]["choices"]
    body = client.post("/v1/stories/validate", json={"story": story}).json()
    assert body["ok"] is False
    assert any("decision slides" in e for e in body["errors"])


def test_edit_text_and_image(raw_story):
    story = _normalized(raw_story)
    res = client.post("/v1/stories/edit", json={"story": story, "slide_id": 2, "text": "New text."})
    assert res.status_code == 200
    assert res.json()["slides"][1]["text"] == "New text."

    res = client.post("/v1/stories/edit", json={"story": story, "slide_id": 2, "image_url": "https://img.example/2.png"})
    assert res.json()["slides"][1]["imageUrl"] == "https://img.example/2.png"


def test_edit_errors(raw_story):
    story = _normalized(raw_story)
    res = client.post("/v1/stories/edit", json={"story": story, "slide_id": 2})
    assert res.status_code == 400
    res = client.post("/v1/stories/edit", json={"story": story, "slide_id": 99, "text": "x"})
    assert res.status_code == 404
    assert res.json()["error_code"] == "HTTP_404"
    res = client.post("/v1/stories/edit", json={"story": story, "slide_id": 2, "text": "   "})
    assert res.status_code == 400


def test_traversal_round_trip_through_unsafe_branch(raw_story):
    story = _normalized(raw_story)
    res = client.post("/v1/traversal/start", json={"story": story})
    assert res.status_code == 200
    state = res.json()["state"]
    assert res.json()["view"]["position"] == 1

    for action in ({"kind": "continue"}, {"kind": "continue"}):
        state = client.post("/v1/traversal/step", json={"story": story, "state": state, "action": action}).json()["state"]
    assert state["current_slide_id"] == 3

    res = client.post("/v1/traversal/step", json={"story": story, "state": state, "action": {"kind": "choose", "choice_index": 1}})
    body = res.json()
    assert body["state"]["phase"] == "awaiting_resume"
    assert body["view"]["awaiting_resume"] is True

    res = client.post("/v1/traversal/step", json={"story": story, "state": body["state"], "action": {"kind": "resume"}})
    state = res.json()["state"]
    assert state["current_slide_id"] == 5
    for _ in range(4):
        res = client.post("/v1/traversal/step", json={"story": story, "state": state, "action": {"kind": "continue"}})
        state = res.json()["state"]
    assert state["phase"] == "completed"
    assert state["outcome"] == "educational"
    assert res.json()["view"]["moral_lesson"] == "Tell an adult."


def test_invalid_action_is_409(raw_story):
    story = _normalized(raw_story)
    state = client.post("/v1/traversal/start", json={"story": story}).json()["state"]
    res = client.post("/v1/traversal/step", json={"story": story, "state": state, "action": {"kind": "resume"}})
    assert res.status_code == 409
    assert res.json()["error_code"] == "INVALID_ACTION"
