from datetime import datetime

from pydantic import BaseModel

class AnnotateRequest(BaseModel):
    text: str
    doc_id: str | None = None

class ConceptAnnotationOut(BaseModel):
    begin: int
    end: int
    text: str
    concept_id: str
    annotator_id: int

class RemovedAnnotationOut(ConceptAnnotationOut):
    reason: str
    pattern: str

class AnnotateResult(BaseModel):
    doc_id: str
    num_sentences: int
    num_tokens: int
    concepts: list[ConceptAnnotationOut]
    removed: list[RemovedAnnotationOut]

class PipelineRunOut(BaseModel):
    id: int
    pipeline_key: str
    status: str
    started_at: datetime | None = None
    finished_at: datetime | None = None
    documents_processed: int
    documents_failed: int

class CatalogEntryOut(BaseModel):
    id: int
    document_id: str
    source_path: str | None = None
    output_path: str | None = None
    annotation_count: int
    removed_count: int
