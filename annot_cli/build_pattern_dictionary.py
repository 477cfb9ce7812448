#!/usr/bin/env python3
"""
Build a dependency-pattern dictionary from gold-standard annotations.

Every "<doc_id>.txt" in the text directory is parsed, its gold annotation
file "<doc_id>[-<infix>].annot.jsonl[.gz]" is read from the annotations
directory, and the pattern counts per concept are written as JSON.
"""
import argparse
import sys
from pathlib import Path

from annot_core.document import GOLD_ANNOTATOR_ID
from annot_pipeline.stage_00_ingestion.sources import iter_text_folder
from annot_pipeline.stage_03_dependencies.dependency_parser import parse_dependencies
from annot_pipeline.stage_04_filter.pattern_builder import collect_patterns
from annot_pipeline.stage_04_filter.pattern_dictionary import save_pattern_dictionary
from annot_pipeline.stage_05_output.annotation_serializer import annotation_file_name, read_annotation_file
from annot_pipeline.utils.spacy_processing import get_spacy_model, has_dependency_parse


def find_annotation_file(annotations_dir: Path, doc_id: str, infix: str) -> Path | None:
    for compress in (True, False):
        candidate = annotations_dir / annotation_file_name(doc_id, infix, compress)
        if candidate.is_file():
            return candidate
    return None


def iter_gold_documents(text_dir: str, annotations_dir: str, infix: str, nlp):
    annotations_path = Path(annotations_dir)
    for document in iter_text_folder(text_dir):
        annotation_file = find_annotation_file(annotations_path, document.doc_id, infix)
        if annotation_file is None:
            print(f"[Patterns] No annotation file for {document.doc_id}, skipping")
            continue
        annotations = read_annotation_file(annotation_file, text=document.text)
        tokens = parse_dependencies(document.text, nlp)
        print(f"[Patterns] {document.doc_id}: {len(annotations)} annotations, {len(tokens)} tokens")
        yield tokens, annotations


def main():
    parser = argparse.ArgumentParser(description="Build a dependency-pattern dictionary from gold annotations")
    parser.add_argument("--text-dir", required=True, help="Directory of <doc_id>.txt documents")
    parser.add_argument("--annotations-dir", required=True, help="Directory of gold annotation files")
    parser.add_argument("--output", required=True, help="Output dictionary (.json or .json.gz)")
    parser.add_argument("--infix", default="", help="Infix of the annotation file names")
    parser.add_argument("--spacy-model", default=None, help="spaCy model providing the dependency parse")
    parser.add_argument(
        "--all-annotators",
        action="store_true",
        help=f"Count annotations from every annotator, not only gold ({GOLD_ANNOTATOR_ID})",
    )
    args = parser.parse_args()

    nlp = get_spacy_model(args.spacy_model)
    if not has_dependency_parse(nlp):
        print("Error: the selected spaCy model has no dependency parser")
        sys.exit(1)

    gold_id = None if args.all_annotators else GOLD_ANNOTATOR_ID
    try:
        counts = collect_patterns(
            iter_gold_documents(args.text_dir, args.annotations_dir, args.infix, nlp),
            gold_annotator_id=gold_id,
        )
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    path = save_pattern_dictionary(counts, args.output)
    total = sum(len(patterns) for patterns in counts.values())
    print(f"[Patterns] Wrote {total} patterns for {len(counts)} concepts to {path}")


if __name__ == "__main__":
    main()
