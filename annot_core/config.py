from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///annot_catalog.db"
    SPACY_MODEL: str | None = None
    PATTERN_DICTIONARY_PATH: str | None = None
    BROKER_URL: str = "tcp://localhost:61616"
    CAS_POOL_SIZE: int = 4
    GOLD_ANNOTATOR_ID: int = 99099099
    PIPELINE_CONFIG: str | None = None

settings = Settings()
