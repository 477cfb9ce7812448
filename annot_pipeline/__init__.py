"""
Annot Pipeline - Concept annotation stages and the YAML-driven runner.

This package contains:
- stage_00_ingestion: Document sources (text folders, JSON-lines folders)
- stage_01_sentences: Sentence detection
- stage_02_concepts: Dictionary-based concept tagging
- stage_03_dependencies: Dependency parsing
- stage_04_filter: Dependency-pattern post-filter and pattern dictionaries
- stage_05_output: Annotation serialization and the run catalog
- deployment: Service deployment parameters and descriptors
- utils: Shared spaCy helpers
"""
