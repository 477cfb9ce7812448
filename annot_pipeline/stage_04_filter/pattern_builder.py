"""
Builds a dependency-pattern dictionary from gold-standard annotations.

For every gold annotation the covered tokens' relation labels are joined into
a pattern and counted per concept key. Empty patterns carry no information
and are skipped.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Iterable, Sequence

from annot_core.document import ConceptAnnotation, Token, GOLD_ANNOTATOR_ID
from annot_pipeline.stage_04_filter.dependency_filter import (
    OBO_URI_PREFIX,
    OBO_URI_SUFFIX,
    annotation_pattern,
    concept_key,
)


def collect_patterns(
    documents: Iterable[tuple[Sequence[Token], Sequence[ConceptAnnotation]]],
    gold_annotator_id: int | None = GOLD_ANNOTATOR_ID,
    key_prefix: str = OBO_URI_PREFIX,
    key_suffix: str = OBO_URI_SUFFIX,
) -> dict[str, Counter]:
    """
    Count dependency patterns per concept key.

    Args:
        documents: (tokens, annotations) pairs, one per document
        gold_annotator_id: Only annotations from this annotator are counted (None = all)

    Returns:
        Mapping of concept key -> Counter of pattern strings
    """
    counts: dict[str, Counter] = defaultdict(Counter)
    for tokens, annotations in documents:
        for annotation in annotations:
            if gold_annotator_id is not None and annotation.annotator_id != gold_annotator_id:
                continue
            pattern = annotation_pattern(annotation, tokens)
            if not pattern:
                continue
            counts[concept_key(annotation.concept_id, key_prefix, key_suffix)][pattern] += 1
    return dict(counts)
