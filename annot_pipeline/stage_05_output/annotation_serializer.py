"""
Annotation serialization for Stage 5.

Writes the concept annotations of a document as JSON lines, one annotation
per line, to "<doc_id>-<infix>.annot.jsonl" (".gz" appended when
compressed). Files go next to the source document, or into an output
directory for documents that have no source file.
"""

from __future__ import annotations

import gzip
import json
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from annot_core.document import AnnotatedDocument, ConceptAnnotation

ANNOTATION_FILE_SUFFIX = ".annot.jsonl"


def annotation_file_name(doc_id: str, infix: str, compress: bool) -> str:
    name = f"{doc_id}-{infix}{ANNOTATION_FILE_SUFFIX}" if infix else f"{doc_id}{ANNOTATION_FILE_SUFFIX}"
    return name + ".gz" if compress else name


def annotation_to_dict(annotation: ConceptAnnotation, include_covered_text: bool) -> dict:
    record = {
        "begin": annotation.begin,
        "end": annotation.end,
        "concept_id": annotation.concept_id,
        "annotator_id": annotation.annotator_id,
    }
    if include_covered_text:
        record["text"] = annotation.text
    return record


def write_annotation_file(
    path: str | Path,
    annotations: Iterable[ConceptAnnotation],
    include_covered_text: bool = False,
) -> Path:
    """Write annotations to path, gzip-compressed when path ends in ".gz"."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    opener = gzip.open if path.suffix == ".gz" else open
    with opener(path, "wt", encoding="utf-8") as f:
        for annotation in annotations:
            f.write(json.dumps(annotation_to_dict(annotation, include_covered_text)) + "\n")
    return path


def read_annotation_file(path: str | Path, text: str | None = None) -> list[ConceptAnnotation]:
    """
    Read annotations written by write_annotation_file.

    Args:
        path: Annotation file (plain or ".gz")
        text: Document text, used to fill in covered text when it was not serialized
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Annotation file not found: {path}")

    opener = gzip.open if path.suffix == ".gz" else open
    annotations: list[ConceptAnnotation] = []
    with opener(path, "rt", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
                begin = int(record["begin"])
                end = int(record["end"])
                covered = record.get("text")
                if covered is None:
                    covered = text[begin:end] if text is not None else ""
                annotations.append(
                    ConceptAnnotation(
                        begin=begin,
                        end=end,
                        text=covered,
                        concept_id=str(record["concept_id"]),
                        annotator_id=int(record["annotator_id"]),
                    )
                )
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"Malformed annotation record at {path}:{line_no}: {exc}") from exc
    return annotations


class AnnotationSerializer:
    """Pipeline stage writing each document's concept annotations to disk."""

    name = "serialize"

    def __init__(
        self,
        output_infix: str = "",
        compress: bool = True,
        include_covered_text: bool = False,
        output_dir: str | Path | None = None,
        save_to_source_directory: bool = True,
    ):
        self.output_infix = output_infix
        self.compress = compress
        self.include_covered_text = include_covered_text
        self.output_dir = Path(output_dir) if output_dir else None
        self.save_to_source_directory = save_to_source_directory

    def output_path_for(self, document: AnnotatedDocument) -> Path:
        if self.save_to_source_directory and document.source_path:
            # doc ids of nested text files carry their subdirectory
            file_name = annotation_file_name(Path(document.doc_id).name, self.output_infix, self.compress)
            return Path(document.source_path).parent / file_name
        file_name = annotation_file_name(document.doc_id, self.output_infix, self.compress)
        if self.output_dir is None:
            raise ValueError(
                f"Document {document.doc_id} has no source file and no output_dir is configured"
            )
        return self.output_dir / file_name

    def process(self, document: AnnotatedDocument) -> AnnotatedDocument:
        path = write_annotation_file(
            self.output_path_for(document),
            document.concepts,
            include_covered_text=self.include_covered_text,
        )
        metadata = dict(document.metadata)
        metadata["output_path"] = str(path)
        return replace(document, metadata=metadata)
