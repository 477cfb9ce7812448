"""
Sentence detection for Stage 1.

Uses spaCy's sentence segmentation. Line breaks can additionally be treated
as hard sentence boundaries, which suits text extracted from article XML
where every paragraph and heading sits on its own line.
"""

from __future__ import annotations

from dataclasses import replace

from spacy.language import Language

from annot_core.document import AnnotatedDocument, Sentence
from annot_pipeline.utils.spacy_processing import get_spacy_model


def _split_on_line_breaks(text: str, start: int, end: int) -> list[tuple[int, int]]:
    """Split [start, end) of text at newlines, trimming whitespace from each piece."""
    pieces: list[tuple[int, int]] = []
    piece_start = start
    for i in range(start, end + 1):
        if i == end or text[i] == "\n":
            b, e = piece_start, i
            while b < e and text[b].isspace():
                b += 1
            while e > b and text[e - 1].isspace():
                e -= 1
            if b < e:
                pieces.append((b, e))
            piece_start = i + 1
    return pieces


def detect_sentences(
    text: str,
    nlp: Language | None = None,
    treat_line_breaks_as_sentence_boundaries: bool = True,
) -> list[Sentence]:
    """
    Detect sentences in text.

    Args:
        text: Document text
        nlp: spaCy pipeline providing sentence boundaries (cached default if None)
        treat_line_breaks_as_sentence_boundaries: Also split at every newline

    Returns:
        Sentences in document order; offsets are relative to text and
        sentence.text == text[sentence.begin:sentence.end].
    """
    if not text or not text.strip():
        return []

    nlp = nlp or get_spacy_model()
    doc = nlp(text)

    sentences: list[Sentence] = []
    for sent in doc.sents:
        if treat_line_breaks_as_sentence_boundaries:
            spans = _split_on_line_breaks(text, sent.start_char, sent.end_char)
        else:
            spans = _split_on_line_breaks(text.replace("\n", " "), sent.start_char, sent.end_char)
        for begin, end in spans:
            sentences.append(Sentence(begin=begin, end=end, text=text[begin:end]))
    return sentences


class SentenceDetector:
    """Pipeline stage adding Sentence annotations to a document."""

    name = "sentences"

    def __init__(self, nlp: Language | None = None, treat_line_breaks_as_sentence_boundaries: bool = True):
        self.nlp = nlp
        self.treat_line_breaks_as_sentence_boundaries = treat_line_breaks_as_sentence_boundaries

    def process(self, document: AnnotatedDocument) -> AnnotatedDocument:
        sentences = detect_sentences(
            document.text,
            nlp=self.nlp,
            treat_line_breaks_as_sentence_boundaries=self.treat_line_breaks_as_sentence_boundaries,
        )
        return replace(document, sentences=tuple(sentences))
