#!/usr/bin/env python3
"""
Inspect the dependency patterns of the concepts found in a text and what the
filter would decide for each of them.
"""
import argparse
import sys

from annot_core.document import AnnotatedDocument, covered_tokens
from annot_pipeline.stage_01_sentences.sentence_detector import detect_sentences
from annot_pipeline.stage_02_concepts.concept_dictionary import ConceptMapperParams, load_concept_dictionary
from annot_pipeline.stage_02_concepts.concept_mapper import ConceptMapper
from annot_pipeline.stage_03_dependencies.dependency_parser import format_relations, parse_dependencies
from annot_pipeline.stage_04_filter.dependency_filter import (
    annotation_pattern,
    concept_key,
    filter_annotations,
)
from annot_pipeline.stage_04_filter.pattern_dictionary import load_pattern_dictionary
from annot_pipeline.utils.spacy_processing import get_spacy_model


def inspect_text(text: str, mapper: ConceptMapper, dictionary, nlp, unknown_concept_policy: str = "remove"):
    sentences = detect_sentences(text, nlp=nlp)
    tokens = parse_dependencies(text, nlp)
    document = AnnotatedDocument(doc_id="inspect", text=text, sentences=tuple(sentences), tokens=tuple(tokens))
    concepts = mapper.find_concepts(document.text, document.sentences)
    result = filter_annotations(concepts, tokens, dictionary, unknown_concept_policy=unknown_concept_policy)
    removed = {id(r.annotation): r for r in result.removed}

    print(f"Found {len(concepts)} concepts in {len(sentences)} sentences\n")
    for annotation in concepts:
        key = concept_key(annotation.concept_id)
        pattern = annotation_pattern(annotation, tokens)
        print(f"{'='*80}")
        print(f"'{annotation.text}' [{annotation.begin}:{annotation.end}] {annotation.concept_id}")
        for token in covered_tokens(tokens, annotation.begin, annotation.end):
            print(f"  {token.text}\t{token.pos}")
        for relation in format_relations(covered_tokens(tokens, annotation.begin, annotation.end)):
            print(f"  {relation}")
        print(f"  Pattern: '{pattern}'")
        accepted = dictionary.accepted(key)
        if accepted is not None:
            print(f"  Known patterns: {', '.join(sorted(accepted)[:5])}")
        decision = removed.get(id(annotation))
        print(f"  Decision: {'REMOVE (' + decision.reason + ')' if decision else 'KEEP'}")
        print()
    return result


def main():
    parser = argparse.ArgumentParser(description="Show dependency patterns and filter decisions for a text")
    parser.add_argument("text_file", help="Plain-text document")
    parser.add_argument("--concept-dictionary", required=True, help="ConceptMapper XML dictionary")
    parser.add_argument("--pattern-dictionary", required=True, help="Dependency-pattern dictionary")
    parser.add_argument("--spacy-model", default=None)
    parser.add_argument("--min-count", type=int, default=1)
    parser.add_argument("--keep-unknown", action="store_true", help="Keep concepts missing from the pattern dictionary")
    args = parser.parse_args()

    try:
        with open(args.text_file, "r", encoding="utf-8") as f:
            text = f.read()
        nlp = get_spacy_model(args.spacy_model)
        entries = load_concept_dictionary(args.concept_dictionary)
        dictionary = load_pattern_dictionary(args.pattern_dictionary, min_count=args.min_count)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    mapper = ConceptMapper(entries, ConceptMapperParams(name="inspect"), nlp=nlp)
    inspect_text(text, mapper, dictionary, nlp, "keep" if args.keep_unknown else "remove")


if __name__ == "__main__":
    main()
