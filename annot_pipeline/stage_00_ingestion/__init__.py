"""
Stage 0: Ingestion.

This module handles:
- Reading documents from plain-text folders
- Reading documents from extracted JSON-lines folders
"""

from annot_pipeline.stage_00_ingestion.sources import iter_extracted_folder, iter_source, iter_text_folder

__all__ = ["iter_extracted_folder", "iter_source", "iter_text_folder"]
