"""Tests for the annotation API."""

import pytest
from fastapi.testclient import TestClient

from annot_api.main import BATCH_ONLY_STAGES, app, get_db, get_runner
from annot_pipeline.pipeline_runner import PipelineRunner
from annot_pipeline.stage_05_output.run_catalog import catalog_document, finish_run, start_run
from annot_core.document import AnnotatedDocument
from tests.utils.pipeline_test_utils import create_test_pipeline_config, use_fixed_parse


@pytest.fixture
def client(tmp_path, session_factory, concept_dictionary_dir, pattern_dictionary_path):
    config_path = create_test_pipeline_config(
        [
            {"name": "sentences"},
            {"name": "concepts", "params": {"name": "TEST", "dictionary_dir": str(concept_dictionary_dir)}},
            {"name": "dependencies"},
            {"name": "dependency_filter", "params": {"dictionary_path": pattern_dictionary_path}},
            {"name": "serialize"},
            {"name": "catalog"},
        ],
        directory=str(tmp_path),
    )
    runner = PipelineRunner(config_path, skip_stages=BATCH_ONLY_STAGES)
    use_fixed_parse(runner)

    def override_get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        finally:
            db.close()

    app.dependency_overrides[get_runner] = lambda: runner
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_annotate(client):
    response = client.post(
        "/annotate", json={"text": "Mitochondria produce energy in the cell.", "doc_id": "api-1"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["doc_id"] == "api-1"
    assert body["num_sentences"] == 1
    assert body["num_tokens"] == 7
    assert [c["concept_id"] for c in body["concepts"]] == ["GO:0005739"]
    assert body["concepts"][0]["text"] == "Mitochondria"
    assert {(r["concept_id"], r["reason"], r["pattern"]) for r in body["removed"]} == {
        ("CHEBI:33250", "unknown_concept", "dobj"),
        ("CL:0000000", "pattern_mismatch", "pobj"),
    }


def test_annotate_generates_doc_id(client):
    response = client.post("/annotate", json={"text": "The cell membrane surrounds the cell."})

    assert response.status_code == 200
    body = response.json()
    assert body["doc_id"]
    assert [c["concept_id"] for c in body["concepts"]] == ["GO:0005886", "CL:0000000"]
    assert body["removed"] == []


def test_annotate_rejects_empty_text(client):
    response = client.post("/annotate", json={"text": "   "})

    assert response.status_code == 422


def test_runs_and_entries(client, session_factory):
    with session_factory() as session:
        run = start_run(session, "CONCEPTMAPPER_TEST", "API test run")
        catalog_document(
            session,
            run,
            AnnotatedDocument(doc_id="pmc1", text="The cell grows.", metadata={"output_path": "/out/pmc1.annot.jsonl"}),
        )
        finish_run(session, run, processed=1, failed=0)
        session.commit()
        run_id = run.id

    runs = client.get("/runs").json()
    assert [r["id"] for r in runs] == [run_id]
    assert runs[0]["status"] == "complete"
    assert runs[0]["documents_processed"] == 1

    entries = client.get(f"/runs/{run_id}/entries").json()
    assert [(e["document_id"], e["output_path"]) for e in entries] == [("pmc1", "/out/pmc1.annot.jsonl")]


def test_entries_for_unknown_run(client):
    response = client.get("/runs/999/entries")

    assert response.status_code == 404
