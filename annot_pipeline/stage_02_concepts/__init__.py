"""
Stage 2: Dictionary-based concept tagging

Loads a ConceptMapper-style XML dictionary and tags every variant found
inside a sentence with the concept identifier it belongs to.
"""

from annot_pipeline.stage_02_concepts.concept_dictionary import (
    ConceptEntry,
    ConceptMapperParams,
    dictionary_file_for,
    load_concept_dictionary,
)
from annot_pipeline.stage_02_concepts.concept_mapper import ConceptMapper

__all__ = [
    "ConceptEntry",
    "ConceptMapperParams",
    "ConceptMapper",
    "dictionary_file_for",
    "load_concept_dictionary",
]
