from __future__ import annotations

from functools import lru_cache

import spacy
from spacy.language import Language

from annot_core.config import settings

SPACY_MODEL_CANDIDATES = [
    "en_core_web_sm",
    "en_core_web_md",
    "en_core_web_lg",
]

BLANK_PREFIX = "blank:"


def _blank_model(lang: str = "en") -> Language:
    nlp = spacy.blank(lang)
    if "sentencizer" not in nlp.pipe_names:
        nlp.add_pipe("sentencizer")
    return nlp


@lru_cache(maxsize=4)
def get_spacy_model(name: str | None = None) -> Language:
    """
    Load and cache a spaCy Language pipeline.

    An explicit name (or SPACY_MODEL) is tried first, then progressively larger
    English models, falling back to a blank model with a sentencizer.
    "blank:<lang>" selects the blank pipeline directly.
    """
    name = name or settings.SPACY_MODEL
    if name and name.startswith(BLANK_PREFIX):
        return _blank_model(name[len(BLANK_PREFIX):] or "en")

    candidates = [name] if name else []
    candidates += [c for c in SPACY_MODEL_CANDIDATES if c != name]
    for candidate in candidates:
        try:
            # NER is not used anywhere in the pipeline
            return spacy.load(candidate, exclude=["ner"])
        except OSError:  # model not installed locally
            continue

    # Fall back to a blank English model with sentencizer if the pre-trained
    # packages are unavailable. No dependency parse is produced in that case.
    return _blank_model("en")


def has_dependency_parse(nlp: Language) -> bool:
    return "parser" in nlp.pipe_names
