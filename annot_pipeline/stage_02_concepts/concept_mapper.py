"""
Dictionary-based concept tagging for Stage 2.

Matches dictionary variants against the document with spaCy's PhraseMatcher.
Matches are limited to sentence spans, so a concept never crosses a
sentence boundary.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from typing import Sequence

from spacy.language import Language
from spacy.matcher import PhraseMatcher
from spacy.util import filter_spans

from annot_core.document import (
    AnnotatedDocument,
    ConceptAnnotation,
    Sentence,
    CONCEPT_MAPPER_ANNOTATOR_ID,
    is_covered,
)
from annot_pipeline.stage_02_concepts.concept_dictionary import ConceptEntry, ConceptMapperParams
from annot_pipeline.utils.spacy_processing import get_spacy_model


class ConceptMapper:
    """Pipeline stage adding ConceptAnnotation objects for dictionary matches."""

    name = "concepts"

    def __init__(
        self,
        entries: Sequence[ConceptEntry],
        params: ConceptMapperParams,
        nlp: Language | None = None,
        annotator_id: int = CONCEPT_MAPPER_ANNOTATOR_ID,
    ):
        self.params = params
        self.nlp = nlp or get_spacy_model()
        self.annotator_id = annotator_id
        attr = "ORTH" if params.case_sensitive else "LOWER"
        self.matcher = PhraseMatcher(self.nlp.vocab, attr=attr)
        for entry in entries:
            patterns = [self.nlp.make_doc(variant) for variant in entry.variants]
            self.matcher.add(entry.concept_id, patterns)
        self.concept_count = len(entries)

    def find_concepts(self, text: str, sentences: Sequence[Sentence]) -> list[ConceptAnnotation]:
        """
        Find dictionary concepts in text.

        Args:
            text: Document text
            sentences: Sentence spans that bound the matches

        Returns:
            Concept annotations sorted by (begin, end, concept_id)
        """
        if not text or not sentences:
            return []

        doc = self.nlp.make_doc(text)

        # several concepts may share one surface form
        ids_by_span: dict[tuple[int, int], set[str]] = defaultdict(set)
        for match_id, start, end in self.matcher(doc):
            span = doc[start:end]
            if not any(is_covered(span.start_char, span.end_char, s.begin, s.end) for s in sentences):
                continue
            ids_by_span[(start, end)].add(self.nlp.vocab.strings[match_id])

        spans = [doc[start:end] for start, end in ids_by_span]
        if self.params.longest_match:
            spans = filter_spans(spans)

        annotations: list[ConceptAnnotation] = []
        for span in spans:
            for concept_id in ids_by_span[(span.start, span.end)]:
                annotations.append(
                    ConceptAnnotation(
                        begin=span.start_char,
                        end=span.end_char,
                        text=span.text,
                        concept_id=concept_id,
                        annotator_id=self.annotator_id,
                    )
                )
        annotations.sort(key=lambda a: (a.begin, a.end, a.concept_id))
        return annotations

    def process(self, document: AnnotatedDocument) -> AnnotatedDocument:
        found = self.find_concepts(document.text, document.sentences)
        return replace(document, concepts=document.concepts + tuple(found))
