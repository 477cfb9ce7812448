"""
Stage 3: Dependency parsing

Tokenizes, tags and parses each document with spaCy and stores every token
with the labelled relation to its head.
"""

from annot_pipeline.stage_03_dependencies.dependency_parser import (
    DependencyParser,
    format_relation,
    format_relations,
    parse_dependencies,
    tokens_from_doc,
)

__all__ = [
    "DependencyParser",
    "format_relation",
    "format_relations",
    "parse_dependencies",
    "tokens_from_doc",
]
