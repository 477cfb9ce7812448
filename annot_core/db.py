from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

from annot_core.config import settings

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker[Session](bind=engine, expire_on_commit=False)

class Base(DeclarativeBase):
    pass

def init_db(bind=None):
    """Create catalog tables if they do not exist yet."""
    # models must be imported so their tables are registered on Base.metadata
    import annot_core.models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
