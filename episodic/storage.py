"""Writing and reading the collection artifact (one pretty-printed JSON array)."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable

from episodic.models import ItemRecord


def collection_to_json(items: Iterable[ItemRecord]) -> str:
    return json.dumps([item.to_dict() for item in items], indent=2, ensure_ascii=False)


def save_collection(path: Path, items: Iterable[ItemRecord]) -> Path:
    """
    Overwrite path with the collection. Written to a sibling temp file first so a
    reader never sees a half-written artifact. Raises OSError on failure.
    """
    path = Path(path)
    payload = collection_to_json(items)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.write("\n")
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    return path


def load_raw(path: Path) -> Any:
    """Parsed artifact exactly as written. Raises FileNotFoundError / ValueError."""
    return json.loads(Path(path).read_text(encoding="utf-8"))


def load_collection(path: Path) -> list[ItemRecord]:
    data = load_raw(path)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array, got {type(data).__name__}")
    return [ItemRecord.from_dict(d) for d in data]
