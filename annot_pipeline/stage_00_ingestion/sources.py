"""
Document sources for Stage 0.

Supported source types:
- text_folder: one plain-text file per document (doc id = path relative to the
  folder without suffix, e.g. "pmc0001" or "batch2/pmc0001")
- extracted_folder: JSON-lines files with one {"id"/"title", "text"} record per line

A max_docs below zero means "process everything".
"""

from __future__ import annotations

import glob
import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable

from annot_core.document import AnnotatedDocument

# (file path, exception) for a document that could not be read
ReadErrorHandler = Callable[[str, Exception], None]


def iter_text_files(root: str, pattern: str = "*.txt") -> Iterable[str]:
    """Iterate over text files below root in sorted order."""
    for path in sorted(glob.glob(os.path.join(root, "**", pattern), recursive=True)):
        if os.path.isfile(path):
            yield path


def iter_json_files(root: str) -> Iterable[str]:
    """Iterate over JSON files in extracted folder."""
    json_patterns = [
        os.path.join(root, "**", "*.json"),
        os.path.join(root, "**", "*.jsonl"),
    ]
    seen = set()
    for pattern in json_patterns:
        for path in sorted(glob.glob(pattern, recursive=True)):
            if path not in seen and os.path.isfile(path):
                seen.add(path)
                yield path


def iter_json_lines(path: str) -> Iterable[dict]:
    """Iterate over JSON lines in a file, skipping lines that do not parse."""
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                continue


def _limit_reached(ingested: int, max_docs: int) -> bool:
    return max_docs >= 0 and ingested >= max_docs


def text_document_id(root: str, file_path: str) -> str:
    """Path of file_path relative to root, without suffix, with "/" separators."""
    return Path(os.path.relpath(file_path, root)).with_suffix("").as_posix()


def iter_text_folder(
    path: str,
    encoding: str = "utf-8",
    max_docs: int = -1,
    pattern: str = "*.txt",
    on_error: ReadErrorHandler | None = None,
) -> Iterable[AnnotatedDocument]:
    """
    Yield one document per text file below path.

    Args:
        on_error: Called with (file path, exception) for a file that cannot be
            read or decoded; the file then counts towards max_docs. Without a
            handler the exception propagates.
    """
    ingested = 0
    for file_path in iter_text_files(path, pattern):
        if _limit_reached(ingested, max_docs):
            break
        try:
            with open(file_path, "r", encoding=encoding) as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as exc:
            if on_error is None:
                raise
            on_error(file_path, exc)
            ingested += 1
            continue
        if not text.strip():
            continue
        yield AnnotatedDocument(
            doc_id=text_document_id(path, file_path),
            text=text,
            source_path=os.path.abspath(file_path),
        )
        ingested += 1


def iter_extracted_folder(
    path: str,
    max_docs: int = -1,
    on_error: ReadErrorHandler | None = None,
) -> Iterable[AnnotatedDocument]:
    """Yield one document per JSON-lines record; a file that fails to decode is reported once to on_error."""
    ingested = 0
    for file_path in iter_json_files(path):
        if _limit_reached(ingested, max_docs):
            break
        try:
            for record in iter_json_lines(file_path):
                if _limit_reached(ingested, max_docs):
                    break
                doc_id = str(record.get("id") or record.get("title") or "").strip()
                text = record.get("text") or ""
                if not doc_id or not text.strip():
                    continue
                metadata = {"title": record["title"]} if record.get("title") else {}
                yield AnnotatedDocument(doc_id=doc_id, text=text, metadata=metadata)
                ingested += 1
        except (OSError, UnicodeDecodeError) as exc:
            if on_error is None:
                raise
            on_error(file_path, exc)
            ingested += 1


def iter_source(
    source_config: Dict[str, Any],
    on_error: ReadErrorHandler | None = None,
) -> Iterable[AnnotatedDocument]:
    """Dispatch on source_config["type"]."""
    source_type = source_config.get("type")
    max_docs = int(source_config.get("max_docs", -1))
    if source_type == "text_folder":
        return iter_text_folder(
            source_config.get("path", "."),
            encoding=source_config.get("encoding", "utf-8"),
            max_docs=max_docs,
            pattern=source_config.get("pattern", "*.txt"),
            on_error=on_error,
        )
    if source_type == "extracted_folder":
        return iter_extracted_folder(
            source_config.get("path", "extracted"), max_docs=max_docs, on_error=on_error
        )
    raise ValueError(f"Unknown source type: {source_type}")
