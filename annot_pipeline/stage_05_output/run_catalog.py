"""Run catalog for Stage 5: records pipeline runs and the annotation files they produce."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from annot_core.document import AnnotatedDocument
from annot_core.models import CatalogEntry, PipelineRun


def start_run(session: Session, pipeline_key: str, description: str | None = None) -> PipelineRun:
    run = PipelineRun(
        pipeline_key=pipeline_key,
        description=description,
        status="running",
        documents_processed=0,
        documents_failed=0,
    )
    session.add(run)
    session.flush()  # Flush to get the run ID
    return run


def catalog_document(session: Session, run: PipelineRun, document: AnnotatedDocument) -> CatalogEntry:
    """Add a catalog entry for a processed document."""
    entry = CatalogEntry(
        run_id=run.id,
        document_id=document.doc_id,
        source_path=document.source_path,
        output_path=document.metadata.get("output_path"),
        annotation_count=len(document.concepts),
        removed_count=len(document.removed),
    )
    session.add(entry)
    return entry


def finish_run(
    session: Session,
    run: PipelineRun,
    processed: int,
    failed: int,
    status: str = "complete",
) -> PipelineRun:
    run.documents_processed = processed
    run.documents_failed = failed
    run.status = status
    run.finished_at = datetime.now()
    session.flush()
    return run


class RunCatalog:
    """Pipeline stage cataloging each document's annotation output under the current run."""

    name = "catalog"

    def __init__(self, session: Session | None = None, run: PipelineRun | None = None):
        self.session = session
        self.run = run

    def bind(self, session: Session, run: PipelineRun) -> None:
        self.session = session
        self.run = run

    def process(self, document: AnnotatedDocument) -> AnnotatedDocument:
        if self.session is None or self.run is None:
            raise RuntimeError("RunCatalog used before a run was started")
        catalog_document(self.session, self.run, document)
        return document
