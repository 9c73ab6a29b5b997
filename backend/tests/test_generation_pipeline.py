"""Tests for the generation pipeline with fake collaborators."""
from __future__ import annotations

import json
import logging

import pytest

from backend.app.core.errors import BlueprintError, GenerationTooShort, IllustrationError
from backend.app.core.pipeline import StoryBlueprint, StoryGenerationInput, StoryGenerationPipeline, parse_blueprint
from backend.app.core.progress import FanoutProgressSink, LoggingProgressSink, RecordingProgressSink
from backend.app.models.events import GenerationProgressEvent

BLUEPRINT = {
    "title": "Rani and the Playground",
    "summary": "Rani meets a stranger at the park.",
    "setting": "A park near a school",
    "moralLesson": "Never go with strangers.",
    "characters": [
        {"name": "Rani", "role": "hero", "traits": ["brave"]},
        {"name": "Mrs. Sharma", "role": "teacher", "traits": ["kind"]},
    ],
}


class FakeBlueprints:
    def __init__(self, payload):
        self.payload = payload
        self.requests = []

    def generate_blueprint(self, request):
        self.requests.append(request)
        return self.payload


class FakeTrees:
    def __init__(self, payload):
        self.payload = payload
        self.blueprints = []

    def generate_story_tree(self, request, blueprint):
        self.blueprints.append(blueprint)
        return self.payload


class FakeIllustrator:
    def __init__(self, fail_on=()):
        self.prompts = []
        self.fail_on = set(fail_on)

    def illustrate(self, prompt):
        self.prompts.append(prompt)
        if len(self.prompts) in self.fail_on:
            raise IllustrationError("image service busy")
        return f"https://img.example/{len(self.prompts)}.png"


@pytest.fixture
def request_input():
    return StoryGenerationInput(topic="Stranger safety", age_group="6-8", character_count=2)


def test_pipeline_reports_every_stage_in_order(request_input, raw_story) -> None:
    sink = RecordingProgressSink()
    pipeline = StoryGenerationPipeline(FakeBlueprints(BLUEPRINT), FakeTrees({"slides": raw_story}), FakeIllustrator(), sink)
    story = pipeline.run(request_input)

    assert sink.stages == [
        "initializing",
        "blueprint-request",
        "blueprint-ready",
        "storytree-request",
        "storytree-ready",
        "images-start",
        *["image-progress"] * 8,
        "images-ready",
        "completed",
    ]
    progress = [e for e in sink.events if e.stage == "image-progress"]
    assert [(e.current, e.total) for e in progress] == [(i, 8) for i in range(1, 9)]
    assert story.title == "Rani and the Playground"
    assert story.moral_lesson == "Never go with strangers."
    assert story.topic == "Stranger safety"
    assert [c.name for c in story.characters] == ["Rani", "Mrs. Sharma"]


def test_pipeline_accepts_raw_model_text(request_input, raw_story) -> None:
    reply = "```json\n" + json.dumps({"title": "ignored", "slides": raw_story}) + "\n```"
    blueprint_reply = json.dumps(BLUEPRINT)
    pipeline = StoryGenerationPipeline(FakeBlueprints(blueprint_reply), FakeTrees(reply), sink=RecordingProgressSink())
    story = pipeline.run(request_input)
    assert story.title == "Rani and the Playground"
    assert len(story.slides) == 8
    # no illustrator: every slide stays text-only
    assert all(s.image_url is None for s in story.slides)


def test_illustration_prompts_carry_style_and_failures_stay_text_only(request_input, raw_story) -> None:
    illustrator = FakeIllustrator(fail_on={2})
    pipeline = StoryGenerationPipeline(FakeBlueprints(BLUEPRINT), FakeTrees(raw_story), illustrator, RecordingProgressSink())
    story = pipeline.run(request_input)
    assert illustrator.prompts[0].startswith("Picture for slide 1. ")
    assert "Children's book style" in illustrator.prompts[0]
    assert story.slides[0].image_url == "https://img.example/1.png"
    assert story.slides[1].image_url is None
    assert story.slides[2].image_url == "https://img.example/3.png"


def test_moral_lesson_falls_back_to_request(raw_story) -> None:
    blueprint = dict(BLUEPRINT, moralLesson="")
    request = StoryGenerationInput(topic="t", age_group="6-8", character_count=2, moral_lesson="Tell an adult.")
    story = StoryGenerationPipeline(FakeBlueprints(blueprint), FakeTrees(raw_story), sink=RecordingProgressSink()).run(request)
    assert story.moral_lesson == "Tell an adult."


def test_short_story_propagates_and_stops_reporting(request_input, make_raw_story) -> None:
    sink = RecordingProgressSink()
    pipeline = StoryGenerationPipeline(FakeBlueprints(BLUEPRINT), FakeTrees(make_raw_story(4)), sink=sink)
    with pytest.raises(GenerationTooShort):
        pipeline.run(request_input)
    assert sink.stages[-1] == "storytree-request"


def test_parse_blueprint_checks_character_count(request_input) -> None:
    assert isinstance(parse_blueprint(BLUEPRINT, request_input), StoryBlueprint)
    with pytest.raises(BlueprintError):
        parse_blueprint(dict(BLUEPRINT, characters=BLUEPRINT["characters"][:1]), request_input)
    with pytest.raises(BlueprintError):
        parse_blueprint({"characters": []}, request_input)
    with pytest.raises(BlueprintError):
        parse_blueprint("not json at all", request_input)
    with pytest.raises(BlueprintError):
        parse_blueprint(["a", "list"], request_input)


def test_logging_and_fanout_sinks(caplog) -> None:
    recorder = RecordingProgressSink()
    sink = FanoutProgressSink(LoggingProgressSink(), recorder)
    with caplog.at_level(logging.INFO, logger="backend.app.core.progress"):
        sink.emit(GenerationProgressEvent(stage="initializing", message="Starting story generation pipeline..."))
    assert recorder.stages == ["initializing"]
    assert "[generation] Starting story generation pipeline..." in caplog.text
