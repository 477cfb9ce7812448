import os
import uuid
from functools import lru_cache

from fastapi import FastAPI, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from annot_core.config import settings
from annot_core.db import SessionLocal, init_db
from annot_core.document import AnnotatedDocument
from annot_core.models import CatalogEntry, PipelineRun
from annot_core.schemas import (
    AnnotateRequest,
    AnnotateResult,
    CatalogEntryOut,
    ConceptAnnotationOut,
    PipelineRunOut,
    RemovedAnnotationOut,
)
from annot_pipeline.pipeline_runner import PipelineRunner

# stages that only make sense for on-disk batch runs
BATCH_ONLY_STAGES = ["serialize", "catalog"]

app = FastAPI(title="Annot API")

def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

@lru_cache(maxsize=1)
def get_runner() -> PipelineRunner:
    config_path = settings.PIPELINE_CONFIG
    if not config_path or not os.path.exists(config_path):
        raise RuntimeError("PIPELINE_CONFIG must point to a pipeline YAML file")
    runner = PipelineRunner(config_path, skip_stages=BATCH_ONLY_STAGES)
    runner.initialize()
    return runner

@app.on_event("startup")
def startup():
    init_db()

@app.post("/annotate", response_model=AnnotateResult)
def annotate(payload: AnnotateRequest, runner: PipelineRunner = Depends(get_runner)):
    if not payload.text.strip():
        raise HTTPException(status_code=422, detail="text must not be empty")
    doc_id = payload.doc_id or uuid.uuid4().hex
    document = runner.run_stages(AnnotatedDocument(doc_id=doc_id, text=payload.text))
    return AnnotateResult(
        doc_id=doc_id,
        num_sentences=len(document.sentences),
        num_tokens=len(document.tokens),
        concepts=[
            ConceptAnnotationOut(
                begin=a.begin, end=a.end, text=a.text, concept_id=a.concept_id, annotator_id=a.annotator_id
            )
            for a in document.concepts
        ],
        removed=[
            RemovedAnnotationOut(
                begin=r.annotation.begin,
                end=r.annotation.end,
                text=r.annotation.text,
                concept_id=r.annotation.concept_id,
                annotator_id=r.annotation.annotator_id,
                reason=r.reason,
                pattern=r.pattern,
            )
            for r in document.removed
        ],
    )

@app.get("/runs", response_model=list[PipelineRunOut])
def list_runs(limit: int = 20, db: Session = Depends(get_db)):
    runs = db.scalars(select(PipelineRun).order_by(PipelineRun.id.desc()).limit(limit)).all()
    return [
        PipelineRunOut(
            id=r.id,
            pipeline_key=r.pipeline_key,
            status=r.status,
            started_at=r.started_at,
            finished_at=r.finished_at,
            documents_processed=r.documents_processed,
            documents_failed=r.documents_failed,
        )
        for r in runs
    ]

@app.get("/runs/{run_id}/entries", response_model=list[CatalogEntryOut])
def list_run_entries(run_id: int, db: Session = Depends(get_db)):
    run = db.get(PipelineRun, run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Run not found")
    entries = db.scalars(
        select(CatalogEntry).where(CatalogEntry.run_id == run_id).order_by(CatalogEntry.id)
    ).all()
    return [
        CatalogEntryOut(
            id=e.id,
            document_id=e.document_id,
            source_path=e.source_path,
            output_path=e.output_path,
            annotation_count=e.annotation_count,
            removed_count=e.removed_count,
        )
        for e in entries
    ]

def serve():
    import argparse

    parser = argparse.ArgumentParser(description="Run the annotation API server")
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        help="The port number to run the server on",
        default=8000,
    )
    args = parser.parse_args()

    import uvicorn

    uvicorn.run("annot_api.main:app", host="0.0.0.0", port=args.port)

if __name__ == "__main__":
    serve()
