"""
Dependency-pattern dictionary storage.

A dictionary maps a concept key (a bracketed OBO URI such as
"<http://purl.obolibrary.org/obo/GO_0005623>") to the dependency patterns
observed for that concept in gold-standard data. On disk it is a JSON object
(optionally gzip-compressed) whose values are either a list of patterns or
an object of pattern -> count.
"""

from __future__ import annotations

import gzip
import json
from collections import Counter
from pathlib import Path
from typing import Iterator, Mapping


class PatternDictionary:
    """Read-only lookup from concept key to its accepted dependency patterns."""

    def __init__(self, counts: Mapping[str, Mapping[str, int]], min_count: int = 1):
        self.min_count = min_count
        self._counts: dict[str, dict[str, int]] = {
            key: dict(patterns) for key, patterns in counts.items()
        }
        self._accepted: dict[str, frozenset[str]] = {
            key: frozenset(p for p, c in patterns.items() if c >= min_count)
            for key, patterns in self._counts.items()
        }

    def __contains__(self, key: object) -> bool:
        return key in self._accepted

    def __len__(self) -> int:
        return len(self._accepted)

    def __iter__(self) -> Iterator[str]:
        return iter(self._accepted)

    def accepted(self, key: str) -> frozenset[str] | None:
        """Accepted patterns for key, or None when the concept is unknown."""
        return self._accepted.get(key)

    def counts(self, key: str) -> dict[str, int]:
        return dict(self._counts.get(key, {}))


def _normalize_entry(key: str, value) -> dict[str, int]:
    if isinstance(value, Mapping):
        out: dict[str, int] = {}
        for pattern, count in value.items():
            if not isinstance(count, int) or isinstance(count, bool):
                raise ValueError(f"Pattern count for {key!r} / {pattern!r} must be an integer")
            out[str(pattern)] = count
        return out
    if isinstance(value, (list, tuple)):
        return {str(pattern): 1 for pattern in value}
    raise ValueError(f"Patterns for {key!r} must be a list or an object of counts")


def load_pattern_dictionary(path: str | Path, min_count: int = 1) -> PatternDictionary:
    """
    Load a pattern dictionary from disk.

    Args:
        path: JSON file (".json") or gzip-compressed JSON (".gz")
        min_count: Patterns seen fewer times than this are not accepted

    Raises:
        FileNotFoundError: if path does not exist
        ValueError: if the content is not a valid pattern dictionary
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Pattern dictionary not found: {path}")

    try:
        if path.suffix == ".gz":
            with gzip.open(path, "rt", encoding="utf-8") as f:
                raw = json.load(f)
        else:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
        raise ValueError(f"Unreadable pattern dictionary {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Pattern dictionary {path} must contain a JSON object")

    counts = {str(key): _normalize_entry(key, value) for key, value in raw.items()}
    return PatternDictionary(counts, min_count=min_count)


def save_pattern_dictionary(counts: Mapping[str, Counter | Mapping[str, int]], path: str | Path) -> Path:
    """Write pattern counts as JSON, gzip-compressed when path ends in ".gz"."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        key: dict(sorted(patterns.items()))
        for key, patterns in sorted(counts.items())
    }
    if path.suffix == ".gz":
        with gzip.open(path, "wt", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    else:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    return path
