"""Load raw story documents (generation output) from JSON or YAML files."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from shared.config import SAMPLES_DIR

_SUFFIXES = (".json", ".yml", ".yaml")


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc


def load_document(path: str | Path) -> Any:
    """Parse a .json/.yml/.yaml file as-is."""
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".json":
        return json.loads(p.read_text(encoding="utf-8"))
    if suffix in (".yml", ".yaml"):
        return _load_yaml(p)
    raise ValueError(f"Unsupported story file type: {p.suffix or '(none)'} (expected one of {', '.join(_SUFFIXES)})")


def load_story_document(path: str | Path) -> dict[str, Any]:
    """Load a story file as ``{"title", "moralLesson", "slides"}``.

    A file holding a bare list is treated as the slide list. The slides are
    returned untouched; normalization is the caller's job.
    """
    data = load_document(path)
    if isinstance(data, list):
        return {"title": "", "moralLesson": None, "slides": data}
    if isinstance(data, dict):
        return data
    # Let the normalizer report the malformed payload
    return {"title": "", "moralLesson": None, "slides": data}


def samples_dir() -> Path:
    return Path(SAMPLES_DIR)


def list_samples() -> list[Path]:
    root = samples_dir()
    if not root.is_dir():
        return []
    return sorted(p for p in root.iterdir() if p.suffix.lower() in _SUFFIXES)


def resolve_story_path(name_or_path: str) -> Path:
    """Accept a file path or the stem of a bundled sample (e.g. ``rani_playground``)."""
    p = Path(name_or_path)
    if p.exists():
        return p
    for sample in list_samples():
        if sample.stem == name_or_path or sample.name == name_or_path:
            return sample
    raise FileNotFoundError(f"Story file not found: {name_or_path}")
