
#backend/app/models/job_models.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any, List
from enum import Enum
from uuid import UUID

from backend.app.models.evaluation_schemas import CriteriaEvaluation

class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

TERMINAL_STATUSES = {JobStatus.COMPLETED.value, JobStatus.FAILED.value}

RESULT_FIELDS = (
    "cv_match_rate",
    "cv_feedback",
    "cv_calculation_detail",
    "project_score",
    "project_feedback",
    "project_calculation_detail",
    "overall_summary",
)

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

class CreateEvaluationRequest(_CamelModel):
    cv_document_id: UUID = Field(..., alias="cvDocumentId", description="CV document id")
    project_document_id: UUID = Field(..., alias="projectDocumentId", description="Project document id")
    job_title: str = Field(..., alias="jobTitle", min_length=1, description="e.g. Product Engineer (Backend)")

class StandaloneEvaluationRequest(_CamelModel):
    document_id: UUID = Field(..., alias="documentId")
    job_title: str = Field(..., alias="jobTitle", min_length=1)

class UploadResponse(BaseModel):
    id: str

class IngestResponse(BaseModel):
    filename: str
    document_type: str
    chunks: int

class SearchResponse(BaseModel):
    query: str
    filter: Optional[str] = None
    summary: str

class JobSubmitResponse(BaseModel):
    id: str
    status: JobStatus

class JobResult(BaseModel):
    cv_match_rate: Optional[float] = None
    cv_feedback: Optional[str] = None
    cv_calculation_detail: Optional[str] = None
    project_score: Optional[float] = None
    project_feedback: Optional[str] = None
    project_calculation_detail: Optional[str] = None
    overall_summary: Optional[str] = None

class JobStatusResponse(BaseModel):
    id: str
    status: JobStatus
    result: Optional[JobResult] = None

class StandaloneEvaluationResponse(BaseModel):
    document_id: str = Field(..., serialization_alias="documentId")
    evaluation: CriteriaEvaluation

class ErrorData(BaseModel):
    status_code: int
    timestamp: str
    path: str
    stack: Optional[str] = None

class ErrorResponse(BaseModel):
    message: str
    data: ErrorData

class WelcomeResponse(BaseModel):
    message: str
    data: Dict[str, Any]

class EvaluationRecordOut(BaseModel):
    type: str
    status: str
    document_id: Optional[str] = None
    result: Dict[str, Any]
    finished_at: str

class EvaluationRecordsResponse(BaseModel):
    job_id: str
    evaluations: List[EvaluationRecordOut]
