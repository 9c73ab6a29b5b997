"""``safestory normalize``: repair a raw story file into a canonical story."""
from __future__ import annotations

import sys

from backend.app.content.loader import load_story_document, resolve_story_path
from backend.app.core.errors import NormalizationError
from backend.app.core.normalizer import normalize_story_with_report


def register(subparsers) -> None:
    p = subparsers.add_parser("normalize", help="Repair a raw story file (JSON/YAML) into a canonical story")
    p.add_argument("story", help="Story file path or bundled sample name (e.g. rani_playground)")
    p.add_argument("--output", "-o", type=str, help="Write the canonical story JSON here instead of stdout")
    p.add_argument("--quiet", "-q", action="store_true", help="Do not list repairs")
    p.set_defaults(func=run)


def run(args) -> int:
    try:
        path = resolve_story_path(args.story)
        document = load_story_document(path)
    except (FileNotFoundError, ValueError) as e:
        print(f"  ERROR: {e}", file=sys.stderr)
        return 1

    try:
        story, report = normalize_story_with_report(document)
    except NormalizationError as e:
        print(f"  ERROR [{e.error_code}]: {e}", file=sys.stderr)
        return 2

    if not args.quiet:
        print(
            f"  {len(story.slides)} slides (raw {report.raw_count}, dropped {report.dropped}, "
            f"truncated {report.truncated}); decision on slide {report.decision_slide_id}",
            file=sys.stderr,
        )
        for repair in report.repairs:
            print(f"  - {repair}", file=sys.stderr)

    payload = story.model_dump_json(by_alias=True, indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
    else:
        print(payload)
    return 0
