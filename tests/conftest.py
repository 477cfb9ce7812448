import os

# keep the catalog engine created at import time off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from annot_core.db import init_db
from tests.fixtures.test_documents import CONCEPT_ENTRIES, PATTERN_COUNTS
from tests.utils.pipeline_test_utils import write_concept_dictionary, write_pattern_counts


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker[Session](bind=db_engine, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def blank_nlp():
    from annot_pipeline.utils.spacy_processing import get_spacy_model

    return get_spacy_model("blank:en")


@pytest.fixture
def concept_dictionary_dir(tmp_path):
    directory = tmp_path / "dictionaries"
    directory.mkdir()
    write_concept_dictionary(str(directory / "cmDict-TEST.xml"), CONCEPT_ENTRIES)
    return directory


@pytest.fixture
def pattern_dictionary_path(tmp_path):
    return write_pattern_counts(str(tmp_path / "patterns.json"), PATTERN_COUNTS)
