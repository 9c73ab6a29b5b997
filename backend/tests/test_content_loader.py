from __future__ import annotations

import json

import pytest

from backend.app.content.loader import list_samples, load_story_document, resolve_story_path
from backend.app.core.normalizer import normalize_story_with_report
from backend.app.core.traversal import play_through


def test_bundled_sample_normalizes_with_repairs() -> None:
    path = resolve_story_path("rani_playground")
    assert path in list_samples()
    story, report = normalize_story_with_report(load_story_document(path))
    assert story.title == "Rani and the Playground"
    assert len(story.slides) == 9
    assert report.dropped == 1
    decision = story.decision_slide
    assert decision.id == 3
    safe, unsafe = decision.choices
    assert (safe.target_slide_id, safe.is_correct) == (5, True)
    assert (unsafe.label, unsafe.target_slide_id, unsafe.is_correct) == ("Go with the person", 4, False)
    assert sum(1 for s in story.slides if s.choices) == 1


def test_bundled_sample_plays_both_branches() -> None:
    story, _ = normalize_story_with_report(load_story_document(resolve_story_path("rani_playground")))
    safe_state, _ = play_through(story, choice_index=0)
    unsafe_state, _ = play_through(story, choice_index=1)
    assert 4 not in safe_state.visited
    assert safe_state.visited == unsafe_state.visited
    assert (safe_state.outcome, unsafe_state.outcome) == ("positive", "educational")


def test_json_and_bare_list_files(tmp_path, make_raw_story) -> None:
    as_object = tmp_path / "story.json"
    as_object.write_text(json.dumps({"title": "T", "slides": make_raw_story(7)}), encoding="utf-8")
    assert load_story_document(as_object)["title"] == "T"

    as_list = tmp_path / "slides.yaml"
    as_list.write_text("- id: 1\n  text: hi\n  imagePrompt: a park\n", encoding="utf-8")
    doc = load_story_document(as_list)
    assert doc["slides"] == [{"id": 1, "text": "hi", "imagePrompt": "a park"}]


def test_unsupported_and_missing_files(tmp_path) -> None:
    bad = tmp_path / "story.txt"
    bad.write_text("hello", encoding="utf-8")
    with pytest.raises(ValueError):
        load_story_document(bad)
    broken = tmp_path / "broken.yml"
    broken.write_text("slides: [unclosed", encoding="utf-8")
    with pytest.raises(ValueError):
        load_story_document(broken)
    with pytest.raises(FileNotFoundError):
        resolve_story_path("no_such_story")
