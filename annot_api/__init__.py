"""
Annot API - FastAPI REST API around the annotation pipeline.

This package contains:
- FastAPI application (main.py)
- Endpoints for annotating text and browsing the run catalog
"""
