"""``safestory validate``: check a stored story against the story invariants."""
from __future__ import annotations

from pydantic import ValidationError

from backend.app.content.loader import load_story_document, resolve_story_path
from backend.app.core.story_validation import validate_story
from backend.app.models.story import Story


def register(subparsers) -> None:
    p = subparsers.add_parser("validate", help="Check a canonical story file without repairing it")
    p.add_argument("story", help="Story file path (JSON/YAML)")
    p.set_defaults(func=run)


def run(args) -> int:
    try:
        story = Story.model_validate(load_story_document(resolve_story_path(args.story)))
    except ValidationError as e:
        print(f"  [FAIL] not a story: {e.error_count()} schema errors")
        for err in e.errors()[:10]:
            loc = ".".join(str(part) for part in err["loc"])
            print(f"         {loc}: {err['msg']}")
        return 1
    except (FileNotFoundError, ValueError) as e:
        print(f"  ERROR: {e}")
        return 1

    errors = validate_story(story)
    if not errors:
        print(f"  [OK]   {len(story.slides)} slides, canonical")
        return 0
    for err in errors:
        print(f"  [FAIL] {err}")
    return 1
