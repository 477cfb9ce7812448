"""Tests for annotation serialization and the run catalog (Stage 5)."""

import gzip
import json

import pytest
from sqlalchemy import select

from annot_core.document import AnnotatedDocument, ConceptAnnotation, RemovedAnnotation
from annot_core.models import CatalogEntry, PipelineRun
from annot_pipeline.stage_05_output.annotation_serializer import (
    AnnotationSerializer,
    annotation_file_name,
    read_annotation_file,
    write_annotation_file,
)
from annot_pipeline.stage_05_output.run_catalog import RunCatalog, finish_run, start_run

TEXT = "Mitochondria produce energy in the cell."
ANNOTATIONS = [
    ConceptAnnotation(0, 12, "Mitochondria", "GO:0005739"),
    ConceptAnnotation(35, 39, "cell", "CL:0000000", annotator_id=99099099),
]


def test_annotation_file_name():
    assert annotation_file_name("pmc1", "GO_BP", True) == "pmc1-GO_BP.annot.jsonl.gz"
    assert annotation_file_name("pmc1", "GO_BP", False) == "pmc1-GO_BP.annot.jsonl"
    assert annotation_file_name("pmc1", "", False) == "pmc1.annot.jsonl"


def test_write_and_read_annotation_file(tmp_path):
    path = write_annotation_file(tmp_path / "d.annot.jsonl.gz", ANNOTATIONS)

    with gzip.open(path, "rt", encoding="utf-8") as f:
        records = [json.loads(line) for line in f]
    assert records[0] == {"begin": 0, "end": 12, "concept_id": "GO:0005739", "annotator_id": 1}

    # covered text comes from the document when it was not serialized
    assert read_annotation_file(path, text=TEXT) == ANNOTATIONS


def test_read_annotation_file_with_covered_text(tmp_path):
    path = write_annotation_file(tmp_path / "d.annot.jsonl", ANNOTATIONS, include_covered_text=True)

    assert read_annotation_file(path) == ANNOTATIONS


def test_read_annotation_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_annotation_file(tmp_path / "missing.annot.jsonl")

    bad = tmp_path / "bad.annot.jsonl"
    bad.write_text('{"begin": 0, "end": 4, "concept_id": "GO:1", "annotator_id": 1}\n{"begin": 0}\n', encoding="utf-8")
    with pytest.raises(ValueError, match=":2"):
        read_annotation_file(bad)


def test_serializer_writes_beside_source(tmp_path):
    source = tmp_path / "pmc1.txt"
    source.write_text(TEXT, encoding="utf-8")
    document = AnnotatedDocument(doc_id="pmc1", text=TEXT, source_path=str(source), concepts=tuple(ANNOTATIONS))

    result = AnnotationSerializer(output_infix="GO_BP").process(document)

    expected = tmp_path / "pmc1-GO_BP.annot.jsonl.gz"
    assert result.metadata["output_path"] == str(expected)
    assert read_annotation_file(expected, text=TEXT) == ANNOTATIONS
    assert "output_path" not in document.metadata


def test_serializer_output_dir(tmp_path):
    document = AnnotatedDocument(doc_id="pmc2", text=TEXT, concepts=tuple(ANNOTATIONS))
    serializer = AnnotationSerializer(compress=False, output_dir=tmp_path / "out")

    result = serializer.process(document)

    assert result.metadata["output_path"] == str(tmp_path / "out" / "pmc2.annot.jsonl")


def test_serializer_nested_document_ids(tmp_path):
    source = tmp_path / "batch2" / "pmc1.txt"
    source.parent.mkdir()
    source.write_text(TEXT, encoding="utf-8")
    document = AnnotatedDocument(doc_id="batch2/pmc1", text=TEXT, source_path=str(source), concepts=tuple(ANNOTATIONS))

    beside_source = AnnotationSerializer(output_infix="GO_BP").process(document)
    in_output_dir = AnnotationSerializer(
        output_infix="GO_BP", output_dir=tmp_path / "out", save_to_source_directory=False
    ).process(document)

    assert beside_source.metadata["output_path"] == str(tmp_path / "batch2" / "pmc1-GO_BP.annot.jsonl.gz")
    assert in_output_dir.metadata["output_path"] == str(tmp_path / "out" / "batch2" / "pmc1-GO_BP.annot.jsonl.gz")
    assert read_annotation_file(in_output_dir.metadata["output_path"], text=TEXT) == ANNOTATIONS


def test_serializer_requires_destination():
    document = AnnotatedDocument(doc_id="pmc3", text=TEXT)

    with pytest.raises(ValueError):
        AnnotationSerializer().process(document)


def test_run_catalog(db_session):
    run = start_run(db_session, "CONCEPTMAPPER_GO_BP", "Test run")
    assert run.id is not None

    catalog = RunCatalog()
    catalog.bind(db_session, run)
    document = AnnotatedDocument(
        doc_id="pmc1",
        text=TEXT,
        source_path="/corpus/pmc1.txt",
        concepts=(ANNOTATIONS[0],),
        removed=(RemovedAnnotation(ANNOTATIONS[1], "pattern_mismatch", "pobj"),),
        metadata={"output_path": "/corpus/pmc1-GO_BP.annot.jsonl.gz"},
    )
    assert catalog.process(document) is document
    finish_run(db_session, run, processed=1, failed=0)
    db_session.commit()

    stored = db_session.get(PipelineRun, run.id)
    assert stored.status == "complete"
    assert stored.documents_processed == 1
    assert stored.finished_at is not None
    entries = db_session.scalars(select(CatalogEntry).where(CatalogEntry.run_id == run.id)).all()
    assert len(entries) == 1
    assert entries[0].document_id == "pmc1"
    assert entries[0].output_path == "/corpus/pmc1-GO_BP.annot.jsonl.gz"
    assert entries[0].annotation_count == 1
    assert entries[0].removed_count == 1


def test_run_catalog_unbound():
    with pytest.raises(RuntimeError):
        RunCatalog().process(AnnotatedDocument(doc_id="pmc1", text=TEXT))
