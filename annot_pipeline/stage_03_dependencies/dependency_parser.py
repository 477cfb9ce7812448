"""
Tokenization, part-of-speech tagging and dependency parsing for Stage 3.

Every token receives the relations linking it to its syntactic head. The
sentence root is linked to a synthetic TOP node (head_index None) with the
relation label "root".
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from spacy.language import Language
from spacy.tokens import Doc

from annot_core.document import AnnotatedDocument, DependencyRelation, Token
from annot_pipeline.utils.spacy_processing import get_spacy_model

ROOT_LABEL = "root"


def tokens_from_doc(doc: Doc) -> list[Token]:
    """
    Convert a spaCy Doc into Token objects with dependency relations.

    Whitespace tokens are dropped. A Doc without a dependency parse yields
    tokens without relations, which later produce empty dependency patterns.
    """
    parsed = doc.has_annotation("DEP")
    tokens: list[Token] = []
    for tok in doc:
        if tok.is_space:
            continue
        relations: tuple[DependencyRelation, ...] = ()
        if parsed and tok.dep_:
            if tok.dep_ == "ROOT" or tok.head.i == tok.i:
                relations = (DependencyRelation(label=ROOT_LABEL, head_index=None),)
            else:
                relations = (DependencyRelation(label=tok.dep_, head_index=tok.head.i),)
        tokens.append(
            Token(
                index=tok.i,
                begin=tok.idx,
                end=tok.idx + len(tok.text),
                text=tok.text,
                pos=tok.tag_ or tok.pos_,
                relations=relations,
            )
        )
    return tokens


def parse_dependencies(text: str, nlp: Language | None = None) -> list[Token]:
    """Parse text and return its tokens with dependency relations."""
    if not text:
        return []
    nlp = nlp or get_spacy_model()
    return tokens_from_doc(nlp(text))


def format_relation(token: Token, relation: DependencyRelation, tokens: Sequence[Token]) -> str:
    """Render a relation as "label(head, dependent)", or "label(TOP, dependent)" for the root."""
    if relation.is_root:
        return f"{relation.label}(TOP, {token.text})"
    head = next((t for t in tokens if t.index == relation.head_index), None)
    head_text = head.text if head is not None else "?"
    return f"{relation.label}({head_text}, {token.text})"


def format_relations(tokens: Sequence[Token]) -> list[str]:
    return [format_relation(token, rel, tokens) for token in tokens for rel in token.relations]


class DependencyParser:
    """Pipeline stage adding Token annotations with dependency relations."""

    name = "dependencies"

    def __init__(self, nlp: Language | None = None):
        self.nlp = nlp or get_spacy_model()

    def process(self, document: AnnotatedDocument) -> AnnotatedDocument:
        tokens = parse_dependencies(document.text, self.nlp)
        return replace(document, tokens=tuple(tokens))
