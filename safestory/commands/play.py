"""``safestory play``: read a story end to end without a UI."""
from __future__ import annotations

import sys
import textwrap

from backend.app.content.loader import load_story_document, resolve_story_path
from backend.app.core.errors import NormalizationError
from backend.app.core.normalizer import normalize_story
from backend.app.core.traversal import play_through


def register(subparsers) -> None:
    p = subparsers.add_parser("play", help="Play a story, picking the same choice at the decision point")
    p.add_argument("story", help="Story file path or bundled sample name")
    p.add_argument("--choose", type=int, default=1, help="Choice number to pick at the decision point (1 or 2, default: 1)")
    p.add_argument("--width", type=int, default=78, help="Wrap slide text at this width")
    p.set_defaults(func=run)


def run(args) -> int:
    if args.choose not in (1, 2):
        print("  ERROR: --choose must be 1 or 2", file=sys.stderr)
        return 1
    try:
        story = normalize_story(load_story_document(resolve_story_path(args.story)))
    except (FileNotFoundError, ValueError) as e:
        print(f"  ERROR: {e}", file=sys.stderr)
        return 1
    except NormalizationError as e:
        print(f"  ERROR [{e.error_code}]: {e}", file=sys.stderr)
        return 2

    if story.title:
        print(f"== {story.title} ==")
    state, views = play_through(story, choice_index=args.choose - 1)
    for step in views:
        if step.completed:
            print(f"\n** Finished: {step.outcome} **")
            if step.moral_lesson:
                print(textwrap.fill(f"Lesson: {step.moral_lesson}", width=args.width))
            continue
        if step.awaiting_resume:
            print("\n  (That was not the safe choice. Let's see what the safe choice looks like.)")
            continue
        slide = step.slide
        tag = " [text only]" if step.text_only else ""
        print(f"\n[{step.position}/{step.total}]{tag}")
        print(textwrap.fill(slide.text, width=args.width))
        if step.is_decision:
            for number, choice in enumerate(slide.choices, start=1):
                marker = ">" if number == args.choose else " "
                print(f"  {marker} {number}. {choice.label}")
    print(f"\n  path: {' -> '.join(str(i) for i in state.visited)} ({state.steps} steps)")
    return 0
