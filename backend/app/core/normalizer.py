"""Story normalizer: repair model-generated slide trees into canonical stories.

Pipeline (deterministic, no I/O, no clock reads):
1. parse raw records into RawSlide/RawChoice, drop slides without text or prompt
2. fail with GenerationTooShort below MIN_SLIDES, truncate above MAX_SLIDES
3. remap original ids to positions (1..N)
4. keep exactly one decision slide, repair its two choices

Only GenerationTooShort and MalformedPayload escape. Every other defect is
repaired and recorded on the NormalizationReport.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError

from backend.app.constants import (
    CHOICES_PER_DECISION,
    DEFAULT_SAFE_LABEL,
    DEFAULT_UNSAFE_LABEL,
    MAX_SLIDES,
    MIN_SLIDES,
    SAFE_FALLBACK_OFFSET,
    UNSAFE_FALLBACK_OFFSET,
)
from backend.app.core.errors import GenerationTooShort, MalformedPayload
from backend.app.models.story import Choice, RawChoice, RawSlide, Slide, Story

logger = logging.getLogger(__name__)

_DATETIME = TypeAdapter(datetime)
_TRUE_STRINGS = frozenset({"true", "yes", "1", "correct", "safe"})


@dataclass
class NormalizationReport:
    raw_count: int = 0
    dropped: int = 0
    truncated: int = 0
    decision_slide_id: int | None = None
    repairs: list[str] = field(default_factory=list)

    def note(self, message: str) -> None:
        logger.debug("normalizer repair: %s", message)
        self.repairs.append(message)


@dataclass
class _Candidate:
    original_id: int
    text: str
    illustration_prompt: str
    image_url: str | None
    created_at: datetime | None
    has_choices: bool
    raw_choices: list[RawChoice]


def parse_int_id(value: Any) -> int | None:
    """Coerce a raw id or target (int, integral float, integer string) to int."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        s = value.strip()
        try:
            return int(s)
        except ValueError:
            pass
        try:
            return parse_int_id(float(s))
        except ValueError:
            return None
    return None


def coerce_flag(value: Any) -> bool:
    """Truthiness for model-supplied correctness flags ("true", 1, True...)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (int, float)):
        return value != 0
    return False


def _clean_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _parse_created_at(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    try:
        return _DATETIME.validate_python(value)
    except ValidationError:
        return None


def parse_raw_slides(raw: Any) -> list[RawSlide]:
    """Validate the payload shape: a list of slide-shaped records."""
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
        raise MalformedPayload(f"Expected a list of slides, got {type(raw).__name__}")
    parsed: list[RawSlide] = []
    for idx, item in enumerate(raw, start=1):
        if isinstance(item, RawSlide):
            parsed.append(item)
            continue
        if isinstance(item, Slide):
            item = item.model_dump(by_alias=True)
        if not isinstance(item, Mapping):
            raise MalformedPayload(f"Slide {idx} is {type(item).__name__}, expected an object")
        parsed.append(RawSlide.model_validate(dict(item)))
    return parsed


def _parse_raw_choices(value: Any) -> tuple[bool, list[RawChoice]]:
    """Return (has non-empty choices list, usable choice records)."""
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)) or not value:
        return False, []
    out: list[RawChoice] = []
    for item in value:
        if isinstance(item, Choice):
            item = item.model_dump(by_alias=True)
        if isinstance(item, Mapping):
            out.append(RawChoice.model_validate(dict(item)))
    return True, out


def _filter_slides(raw_slides: list[RawSlide], report: NormalizationReport) -> list[_Candidate]:
    kept: list[_Candidate] = []
    for position, raw in enumerate(raw_slides, start=1):
        text = _clean_text(raw.text)
        prompt = _clean_text(raw.illustration_prompt)
        if not text or not prompt:
            report.dropped += 1
            report.note(f"dropped raw slide {position}: missing text or illustration prompt")
            continue
        original_id = parse_int_id(raw.id)
        if original_id is None:
            original_id = position
            report.note(f"raw slide {position} has no numeric id; using {position}")
        has_choices, raw_choices = _parse_raw_choices(raw.choices)
        kept.append(
            _Candidate(
                original_id=original_id,
                text=text,
                illustration_prompt=prompt,
                image_url=_clean_text(raw.image_url) or None,
                created_at=_parse_created_at(raw.created_at),
                has_choices=has_choices,
                raw_choices=raw_choices,
            )
        )
    return kept


def _build_id_map(candidates: list[_Candidate], report: NormalizationReport) -> dict[int, int]:
    id_map: dict[int, int] = {}
    for canonical_id, cand in enumerate(candidates, start=1):
        if cand.original_id in id_map:
            report.note(
                f"duplicate id {cand.original_id} on slide {canonical_id}; "
                f"references resolve to slide {id_map[cand.original_id]}"
            )
            continue
        id_map[cand.original_id] = canonical_id
    return id_map


def _select_decision_position(candidates: list[_Candidate], report: NormalizationReport) -> int | None:
    """1-based position of the single decision slide, or None when none qualifies."""
    total = len(candidates)
    decision_assigned = False
    decision_position: int | None = None
    for position, cand in enumerate(candidates, start=1):
        if not cand.has_choices:
            continue
        if decision_assigned:
            report.note(f"cleared choices on slide {position}: story already has a decision point")
            continue
        if position == total:
            report.note(f"cleared choices on slide {position}: last slide cannot branch forward")
            continue
        decision_assigned = True
        decision_position = position
    return decision_position


def fallback_target(position: int, total: int, is_correct: bool) -> int:
    offset = SAFE_FALLBACK_OFFSET if is_correct else UNSAFE_FALLBACK_OFFSET
    return min(position + offset, total)


def _resolve_target(raw_target: Any, position: int, total: int, id_map: dict[int, int]) -> int | None:
    original = parse_int_id(raw_target)
    if original is None:
        return None
    target = id_map.get(original)
    # Forward-only edges: no self-loops, no jumps back into already-read slides
    if target is None or target <= position or target > total:
        return None
    return target


def _repair_choices(
    raw_choices: list[RawChoice],
    position: int,
    total: int,
    id_map: dict[int, int],
    report: NormalizationReport,
) -> list[Choice]:
    if len(raw_choices) > CHOICES_PER_DECISION:
        report.note(f"slide {position}: kept first {CHOICES_PER_DECISION} of {len(raw_choices)} choices")

    # Targets are fixed by the raw flags; a later polarity flip never moves them
    flags: list[bool] = []
    targets: list[int] = []
    labels: list[str] = []
    for idx, raw_choice in enumerate(raw_choices[:CHOICES_PER_DECISION], start=1):
        is_correct = coerce_flag(raw_choice.is_correct)
        target = _resolve_target(raw_choice.target, position, total, id_map)
        if target is None:
            target = fallback_target(position, total, is_correct)
            report.note(f"slide {position} choice {idx}: target {raw_choice.target!r} unresolved; using slide {target}")
        flags.append(is_correct)
        targets.append(target)
        labels.append(_clean_text(raw_choice.label))

    if not flags:
        # Synthesized decision point: lead with the safe branch
        flags.append(True)
        targets.append(fallback_target(position, total, True))
        labels.append("")
        report.note(f"slide {position}: synthesized safe choice")
    while len(flags) < CHOICES_PER_DECISION:
        flags.append(False)
        targets.append(fallback_target(position, total, False))
        labels.append("")
        report.note(f"slide {position}: synthesized unsafe choice")

    if flags[0] == flags[1]:
        flags[1] = not flags[1]
        report.note(f"slide {position}: both choices had the same polarity; flipped the second")

    repaired: list[Choice] = []
    for idx, (label, target, is_correct) in enumerate(zip(labels, targets, flags), start=1):
        if not label:
            label = DEFAULT_SAFE_LABEL if is_correct else DEFAULT_UNSAFE_LABEL
            if idx <= len(raw_choices):
                report.note(f"slide {position} choice {idx}: empty label replaced")
        repaired.append(Choice(label=label, target_slide_id=target, is_correct=is_correct))
    return repaired


def normalize_slides_with_report(raw: Any) -> tuple[list[Slide], NormalizationReport]:
    """Normalize a raw slide list; return canonical slides and what was repaired."""
    raw_slides = parse_raw_slides(raw)
    report = NormalizationReport(raw_count=len(raw_slides))

    candidates = _filter_slides(raw_slides, report)
    if len(candidates) < MIN_SLIDES:
        logger.info(
            "Rejecting generation: %d of %d raw slides usable (need %d)",
            len(candidates), len(raw_slides), MIN_SLIDES,
        )
        raise GenerationTooShort(len(candidates), MIN_SLIDES)
    if len(candidates) > MAX_SLIDES:
        report.truncated = len(candidates) - MAX_SLIDES
        report.note(f"truncated {report.truncated} slides beyond {MAX_SLIDES}")
        candidates = candidates[:MAX_SLIDES]

    total = len(candidates)
    id_map = _build_id_map(candidates, report)
    decision_position = _select_decision_position(candidates, report)
    decision_raw: list[RawChoice] = []
    if decision_position is None:
        decision_position = total // 2
        report.note(f"no usable decision point; synthesized one on slide {decision_position}")
    else:
        decision_raw = candidates[decision_position - 1].raw_choices
    report.decision_slide_id = decision_position

    slides: list[Slide] = []
    for position, cand in enumerate(candidates, start=1):
        choices = None
        if position == decision_position:
            choices = _repair_choices(decision_raw, position, total, id_map, report)
        slides.append(
            Slide(
                id=position,
                text=cand.text,
                illustration_prompt=cand.illustration_prompt,
                image_url=cand.image_url,
                choices=choices,
                created_at=cand.created_at,
            )
        )

    logger.info(
        "Normalized story: %d slides kept (%d raw, %d dropped, %d truncated), decision on slide %d, %d repairs",
        total, report.raw_count, report.dropped, report.truncated, decision_position, len(report.repairs),
    )
    return slides, report


def normalize_slides(raw: Any) -> list[Slide]:
    slides, _ = normalize_slides_with_report(raw)
    return slides


def normalize_story(raw: Any, *, title: str = "", moral_lesson: str | None = None) -> Story:
    """Build a canonical Story from raw generation output.

    ``raw`` is either the slide list itself or a story-tree object carrying
    ``slides`` (and optionally ``title``/``moralLesson``); explicit keyword
    arguments win over values found in the object.
    """
    story, _ = normalize_story_with_report(raw, title=title, moral_lesson=moral_lesson)
    return story


def normalize_story_with_report(
    raw: Any,
    *,
    title: str = "",
    moral_lesson: str | None = None,
) -> tuple[Story, NormalizationReport]:
    slides_raw = raw
    if isinstance(raw, Story):
        raw = raw.model_dump(by_alias=True)
    if isinstance(raw, Mapping):
        if "slides" not in raw:
            raise MalformedPayload("Story object has no 'slides' list")
        slides_raw = raw.get("slides")
        title = title or _clean_text(raw.get("title"))
        moral_lesson = moral_lesson or _clean_text(raw.get("moralLesson") or raw.get("moral_lesson")) or None
    slides, report = normalize_slides_with_report(slides_raw)
    return Story(title=title, moral_lesson=moral_lesson, slides=slides), report
