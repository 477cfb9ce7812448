"""
Annot CLI - Command-line entrypoints around the pipeline.

This package contains CLI scripts for:
- Building dependency-pattern dictionaries from gold annotations
- Inspecting the dependency patterns and filter decisions for a text
"""
