"""
Annot Core - Shared types, config, catalog models, and schemas.

This package contains:
- In-memory annotation types (document.py)
- Catalog models (SQLAlchemy)
- Database connection and session management
- Configuration settings
- Pydantic schemas for API
"""

from annot_core.config import settings
from annot_core.db import Base, engine, SessionLocal, init_db
from annot_core.document import (
    AnnotatedDocument,
    ConceptAnnotation,
    DependencyRelation,
    RemovedAnnotation,
    Sentence,
    Token,
    CONCEPT_MAPPER_ANNOTATOR_ID,
    GOLD_ANNOTATOR_ID,
)
from annot_core.models import PipelineRun, CatalogEntry

__all__ = [
    "settings",
    "Base",
    "engine",
    "SessionLocal",
    "init_db",
    "AnnotatedDocument",
    "ConceptAnnotation",
    "DependencyRelation",
    "RemovedAnnotation",
    "Sentence",
    "Token",
    "CONCEPT_MAPPER_ANNOTATOR_ID",
    "GOLD_ANNOTATOR_ID",
    "PipelineRun",
    "CatalogEntry",
]
