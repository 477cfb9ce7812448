from sqlalchemy import (
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Index,
    func,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from annot_core.db import Base

class PipelineRun(Base):
    __tablename__ = "pipeline_run"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    pipeline_key: Mapped[str] = mapped_column(String(128), index=True)
    description: Mapped[str | None] = mapped_column(Text)
    started_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
    finished_at: Mapped[DateTime | None] = mapped_column(DateTime)
    status: Mapped[str] = mapped_column(String(16), default="running")  # running | complete | aborted
    documents_processed: Mapped[int] = mapped_column(Integer, default=0)
    documents_failed: Mapped[int] = mapped_column(Integer, default=0)

    entries: Mapped[list["CatalogEntry"]] = relationship(back_populates="run", cascade="all, delete-orphan")

class CatalogEntry(Base):
    __tablename__ = "catalog_entry"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    run_id: Mapped[int] = mapped_column(ForeignKey("pipeline_run.id", ondelete="CASCADE"), index=True)
    document_id: Mapped[str] = mapped_column(String(255), index=True)
    source_path: Mapped[str | None] = mapped_column(Text)
    output_path: Mapped[str | None] = mapped_column(Text)
    annotation_count: Mapped[int] = mapped_column(Integer, default=0)
    removed_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())

    run: Mapped[PipelineRun] = relationship(back_populates="entries")

    __table_args__ = (
        Index("ix_catalog_entry_run_doc", "run_id", "document_id"),
    )
