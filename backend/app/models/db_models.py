# backend/app/models/db_models.py

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Column, JSON, Text
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadedDocument(SQLModel, table=True):
    __tablename__ = "uploaded_documents"

    id: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)

    file_name: str
    file_type: str = Field(index=True)  # 'cv' | 'project'
    storage_path: str
    file_size: int = Field(default=0)
    mime_type: Optional[str] = None

    # originalName / uploadedAt; "metadata" is reserved on declarative classes
    doc_metadata: Dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON))


class EvaluationJob(SQLModel, table=True):
    __tablename__ = "evaluation_jobs"

    id: str = Field(primary_key=True)
    cv_document_id: str = Field(index=True)
    project_document_id: str = Field(index=True)
    job_title: str
    status: str = Field(default="queued", index=True)

    cv_match_rate: Optional[float] = None
    cv_feedback: Optional[str] = Field(default=None, sa_column=Column(Text))
    cv_calculation_detail: Optional[str] = Field(default=None, sa_column=Column(Text))
    project_score: Optional[float] = None
    project_feedback: Optional[str] = Field(default=None, sa_column=Column(Text))
    project_calculation_detail: Optional[str] = Field(default=None, sa_column=Column(Text))
    overall_summary: Optional[str] = Field(default=None, sa_column=Column(Text))

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)
    finished_at: Optional[datetime] = None


class EvaluationRecord(SQLModel, table=True):
    __tablename__ = "evaluations"

    id: str = Field(primary_key=True)
    job_id: str = Field(index=True)
    type: str  # 'cv' | 'project' | 'overall'
    status: str = Field(default="completed")
    result: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    document_id: Optional[str] = None
    finished_at: datetime = Field(default_factory=utcnow, nullable=False)
