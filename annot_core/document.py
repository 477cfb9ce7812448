"""
In-memory annotation graph for a single document.

All types are immutable; pipeline stages return a new AnnotatedDocument
(via dataclasses.replace) instead of mutating the one they were given.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Annotator identifiers
CONCEPT_MAPPER_ANNOTATOR_ID = 1
GOLD_ANNOTATOR_ID = 99099099


@dataclass(frozen=True)
class DependencyRelation:
    label: str
    head_index: int | None  # None = synthetic TOP node

    @property
    def is_root(self) -> bool:
        return self.head_index is None


@dataclass(frozen=True)
class Token:
    index: int
    begin: int
    end: int
    text: str
    pos: str = ""
    relations: tuple[DependencyRelation, ...] = ()


@dataclass(frozen=True)
class Sentence:
    begin: int
    end: int
    text: str


@dataclass(frozen=True)
class ConceptAnnotation:
    begin: int
    end: int
    text: str
    concept_id: str
    annotator_id: int = CONCEPT_MAPPER_ANNOTATOR_ID

    @property
    def is_gold(self) -> bool:
        return self.annotator_id == GOLD_ANNOTATOR_ID


@dataclass(frozen=True)
class RemovedAnnotation:
    annotation: ConceptAnnotation
    reason: str  # "unknown_concept" | "pattern_mismatch"
    pattern: str


@dataclass(frozen=True)
class AnnotatedDocument:
    doc_id: str
    text: str
    source_path: str | None = None
    sentences: tuple[Sentence, ...] = ()
    tokens: tuple[Token, ...] = ()
    concepts: tuple[ConceptAnnotation, ...] = ()
    removed: tuple[RemovedAnnotation, ...] = ()
    metadata: dict = field(default_factory=dict, compare=False)


def is_covered(inner_begin: int, inner_end: int, outer_begin: int, outer_end: int) -> bool:
    """True when [inner_begin, inner_end) lies inside [outer_begin, outer_end)."""
    return outer_begin <= inner_begin and inner_end <= outer_end


def covered_tokens(tokens: tuple[Token, ...] | list[Token], begin: int, end: int) -> list[Token]:
    """Tokens fully covered by the span, in document order."""
    return [t for t in tokens if is_covered(t.begin, t.end, begin, end)]
