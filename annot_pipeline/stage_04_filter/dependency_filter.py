"""
Dependency-pattern post-filter for Stage 4.

Concept annotations produced by the dictionary tagger are checked against the
dependency patterns seen for the same concept in gold-standard data. The
pattern of an annotation is the "|"-joined list of relation labels of the
tokens it covers, e.g. "amod|nsubj".

Decision per annotation:
- gold-standard annotations are always kept
- unknown concept (key not in the dictionary): removed, or kept under the
  "keep" policy
- non-empty pattern not accepted for the concept: removed
- anything else is kept; an empty pattern means the parser produced no
  relations and is never a reason for removal
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Sequence

from annot_core.document import (
    AnnotatedDocument,
    ConceptAnnotation,
    RemovedAnnotation,
    Token,
    GOLD_ANNOTATOR_ID,
    covered_tokens,
)
from annot_pipeline.stage_04_filter.pattern_dictionary import PatternDictionary

PATTERN_SEPARATOR = "|"
OBO_URI_PREFIX = "<http://purl.obolibrary.org/obo/"
OBO_URI_SUFFIX = ">"

UNKNOWN_CONCEPT_POLICIES = ("remove", "keep")

REASON_UNKNOWN_CONCEPT = "unknown_concept"
REASON_PATTERN_MISMATCH = "pattern_mismatch"


@dataclass(slots=True)
class FilterResult:
    retained: list[ConceptAnnotation] = field(default_factory=list)
    removed: list[RemovedAnnotation] = field(default_factory=list)

    @property
    def removed_unknown(self) -> int:
        return sum(1 for r in self.removed if r.reason == REASON_UNKNOWN_CONCEPT)

    @property
    def removed_mismatch(self) -> int:
        return sum(1 for r in self.removed if r.reason == REASON_PATTERN_MISMATCH)


def build_dependency_pattern(tokens: Sequence[Token]) -> str:
    pattern = ""
    for token in tokens:
        for relation in token.relations:
            pattern += relation.label + PATTERN_SEPARATOR
    if pattern:
        pattern = pattern[: -len(PATTERN_SEPARATOR)]
    return pattern


def concept_key(concept_id: str, prefix: str = OBO_URI_PREFIX, suffix: str = OBO_URI_SUFFIX) -> str:
    """Turn a concept identifier such as "GO:0005623" into its dictionary key."""
    return prefix + concept_id.replace(":", "_") + suffix


def annotation_pattern(annotation: ConceptAnnotation, tokens: Sequence[Token]) -> str:
    return build_dependency_pattern(covered_tokens(tokens, annotation.begin, annotation.end))


def _check_policy(unknown_concept_policy: str):
    if unknown_concept_policy not in UNKNOWN_CONCEPT_POLICIES:
        raise ValueError(
            f"unknown_concept_policy must be one of {UNKNOWN_CONCEPT_POLICIES}, got {unknown_concept_policy!r}"
        )


def filter_annotations(
    annotations: Sequence[ConceptAnnotation],
    tokens: Sequence[Token],
    dictionary: PatternDictionary,
    *,
    unknown_concept_policy: str = "remove",
    gold_annotator_id: int = GOLD_ANNOTATOR_ID,
    key_prefix: str = OBO_URI_PREFIX,
    key_suffix: str = OBO_URI_SUFFIX,
) -> FilterResult:
    """
    Split annotations into retained and removed ones.

    Args:
        annotations: Concept annotations of one document
        tokens: Tokens of the same document, with dependency relations
        dictionary: Accepted patterns per concept key
        unknown_concept_policy: "remove" or "keep" concepts missing from the dictionary
        gold_annotator_id: Annotations from this annotator are never filtered

    Returns:
        FilterResult; retained keeps the input order.
    """
    _check_policy(unknown_concept_policy)

    result = FilterResult()
    for annotation in annotations:
        if annotation.annotator_id == gold_annotator_id:
            result.retained.append(annotation)
            continue

        pattern = annotation_pattern(annotation, tokens)
        accepted = dictionary.accepted(concept_key(annotation.concept_id, key_prefix, key_suffix))

        if accepted is None:
            if unknown_concept_policy == "remove":
                result.removed.append(RemovedAnnotation(annotation, REASON_UNKNOWN_CONCEPT, pattern))
            else:
                result.retained.append(annotation)
        elif pattern and pattern not in accepted:
            result.removed.append(RemovedAnnotation(annotation, REASON_PATTERN_MISMATCH, pattern))
        else:
            result.retained.append(annotation)
    return result


class DependencyFilter:
    """Pipeline stage removing concept annotations whose dependency pattern is implausible."""

    name = "dependency_filter"

    def __init__(
        self,
        dictionary: PatternDictionary,
        unknown_concept_policy: str = "remove",
        gold_annotator_id: int = GOLD_ANNOTATOR_ID,
        verbose: bool = False,
    ):
        _check_policy(unknown_concept_policy)
        self.dictionary = dictionary
        self.unknown_concept_policy = unknown_concept_policy
        self.gold_annotator_id = gold_annotator_id
        self.verbose = verbose

    def process(self, document: AnnotatedDocument) -> AnnotatedDocument:
        result = filter_annotations(
            document.concepts,
            document.tokens,
            self.dictionary,
            unknown_concept_policy=self.unknown_concept_policy,
            gold_annotator_id=self.gold_annotator_id,
        )
        if self.verbose:
            for removed in result.removed:
                ann = removed.annotation
                print(
                    f"[DepFilter] {document.doc_id}: removed '{ann.text}' ({ann.concept_id}) "
                    f"reason={removed.reason} pattern='{removed.pattern}'"
                )
            print(
                f"[DepFilter] {document.doc_id}: kept {len(result.retained)}, "
                f"removed {result.removed_mismatch} mismatched + {result.removed_unknown} unknown"
            )
        return replace(
            document,
            concepts=tuple(result.retained),
            removed=document.removed + tuple(result.removed),
        )
