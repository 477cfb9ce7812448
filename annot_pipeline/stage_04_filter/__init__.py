"""
Stage 4: Dependency-pattern filter

Removes concept annotations whose dependency pattern was never seen for the
concept in gold-standard data, using a precomputed pattern dictionary.
"""

from annot_pipeline.stage_04_filter.dependency_filter import (
    DependencyFilter,
    FilterResult,
    build_dependency_pattern,
    concept_key,
    filter_annotations,
)
from annot_pipeline.stage_04_filter.pattern_builder import collect_patterns
from annot_pipeline.stage_04_filter.pattern_dictionary import (
    PatternDictionary,
    load_pattern_dictionary,
    save_pattern_dictionary,
)

__all__ = [
    "DependencyFilter",
    "FilterResult",
    "build_dependency_pattern",
    "concept_key",
    "filter_annotations",
    "collect_patterns",
    "PatternDictionary",
    "load_pattern_dictionary",
    "save_pattern_dictionary",
]
