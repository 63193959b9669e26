#backend/app/api/routes.py

from io import BytesIO
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response

from backend.app.config import settings
from backend.app.core.artifacts import PDFRenderer, render_json, render_markdown
from backend.app.core.document_store import DocumentStore
from backend.app.core.errors import JobNotReady, ValidationError
from backend.app.core.jobs import JobService
from backend.app.core.knowledge_retriever import KnowledgeRetriever
from backend.app.core.scoring import ScoringEngine
from backend.app.api.dependencies import (
    get_document_store,
    get_job_service,
    get_retriever,
    get_standalone_scoring,
)
from backend.app.models.evaluation_schemas import ReferenceDocumentType, UploadType
from backend.app.models.job_models import (
    CreateEvaluationRequest,
    ErrorResponse,
    EvaluationRecordOut,
    EvaluationRecordsResponse,
    IngestResponse,
    JobStatus,
    JobStatusResponse,
    JobSubmitResponse,
    SearchResponse,
    StandaloneEvaluationRequest,
    StandaloneEvaluationResponse,
    UploadResponse,
    WelcomeResponse,
)


ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 404, 409, 500, 502, 503, 504)
}

api_router = APIRouter(responses=ERROR_RESPONSES)
_pdf = PDFRenderer()

REPORT_MEDIA_TYPES = {
    "md": "text/markdown",
    "json": "application/json",
    "pdf": "application/pdf",
}

@api_router.get("/", response_model=WelcomeResponse, tags=["Health"])
def welcome():
    return WelcomeResponse(
        message="success",
        data={
            "message": "Welcome to CV AI Evaluation API",
            "docs_url": f"{settings.APP_URL}/docs",
            "healthy": True,
        },
    )

@api_router.get("/health", tags=["Health"])
def health_check():
    return {"status": "ok"}

# ---------------- Candidate documents ----------------

@api_router.post("/upload", response_model=UploadResponse, tags=["Evaluations"])
async def upload_document(
    file: UploadFile = File(..., description="Document file in PDF format"),
    type: UploadType = Form(..., description="Type of document"),
    documents: DocumentStore = Depends(get_document_store),
):
    """Upload a CV or project report; returns the document id used by /evaluate."""
    content = await file.read()
    if not content:
        raise ValidationError("Uploaded file is empty")
    document_id = await documents.upload(
        content,
        filename=file.filename or f"{type.value}.pdf",
        declared_type=type.value,
        content_type=file.content_type,
    )
    return UploadResponse(id=document_id)

# ---------------- Jobs ----------------

@api_router.post("/evaluate", response_model=JobSubmitResponse, tags=["Evaluations"])
async def create_evaluation(
    request: CreateEvaluationRequest,
    jobs: JobService = Depends(get_job_service),
):
    """Start an evaluation for two uploaded documents and a job title."""
    created = await jobs.create_and_queue_job(
        cv_document_id=str(request.cv_document_id),
        project_document_id=str(request.project_document_id),
        job_title=request.job_title,
    )
    return JobSubmitResponse(**created)

@api_router.get(
    "/result/{job_id}",
    response_model=JobStatusResponse,
    response_model_exclude_unset=True,
    tags=["Evaluations"],
)
async def get_evaluation_result(job_id: str, jobs: JobService = Depends(get_job_service)):
    status = await jobs.get_job_status(job_id)
    return JobStatusResponse(**status)

@api_router.get("/result/{job_id}/evaluations", response_model=EvaluationRecordsResponse, tags=["Evaluations"])
async def get_evaluation_records(job_id: str, jobs: JobService = Depends(get_job_service)):
    """Per-stage evaluation records (cv, project, overall) written for a job."""
    await jobs.get_job(job_id)
    records = await jobs.list_evaluations(job_id)
    return EvaluationRecordsResponse(
        job_id=job_id,
        evaluations=[
            EvaluationRecordOut(
                type=r.type,
                status=r.status,
                document_id=r.document_id,
                result=r.result,
                finished_at=r.finished_at.isoformat(),
            )
            for r in sorted(records, key=lambda r: r.finished_at)
        ],
    )

@api_router.get("/result/{job_id}/report", tags=["Evaluations"])
async def download_report(
    job_id: str,
    format: str = Query("md", pattern="^(md|json|pdf)$", description="Download format: md, json, or pdf"),
    jobs: JobService = Depends(get_job_service),
):
    """
    Download a completed job's result as Markdown (md), JSON (json), or PDF (pdf).
    """
    job = await jobs.get_job(job_id)
    if job.status != JobStatus.COMPLETED.value:
        raise JobNotReady(f"Job not finished yet (status={job.status})")
    status = await jobs.get_job_status(job_id)
    result = status["result"]

    if format == "pdf":
        buffer = BytesIO()
        _pdf.build_report_pdf(buffer, job_id, job.job_title, result)
        content = buffer.getvalue()
    elif format == "json":
        content = render_json(job_id, job.job_title, result)
    else:
        content = render_markdown(job_id, job.job_title, result)

    filename = f"evaluation_report_{job_id}.{format}"
    return Response(
        content=content,
        media_type=REPORT_MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

# ---------------- Standalone scoring (no job record) ----------------

@api_router.post(
    "/test/cv",
    response_model=StandaloneEvaluationResponse,
    response_model_by_alias=True,
    tags=["Test Evaluations"],
)
async def test_cv_evaluation(
    request: StandaloneEvaluationRequest,
    scoring: ScoringEngine = Depends(get_standalone_scoring),
):
    result = await scoring.score_cv(str(request.document_id), request.job_title)
    return StandaloneEvaluationResponse(document_id=str(request.document_id), evaluation=result)

@api_router.post(
    "/test/project",
    response_model=StandaloneEvaluationResponse,
    response_model_by_alias=True,
    tags=["Test Evaluations"],
)
async def test_project_evaluation(
    request: StandaloneEvaluationRequest,
    scoring: ScoringEngine = Depends(get_standalone_scoring),
):
    result = await scoring.score_project(str(request.document_id), request.job_title)
    return StandaloneEvaluationResponse(document_id=str(request.document_id), evaluation=result)

# ---------------- Reference documents ----------------

@api_router.post("/internal-documents/upload", response_model=IngestResponse, tags=["Internal Documents"])
async def upload_internal_document(
    documentType: ReferenceDocumentType = Form(...),
    document: UploadFile = File(..., description="Reference document in PDF format"),
    retriever: KnowledgeRetriever = Depends(get_retriever),
):
    """Index a rubric, job description or case study brief."""
    content = await document.read()
    if not content:
        raise ValidationError("Uploaded file is empty")
    filename = document.filename or "document.pdf"
    chunks = await retriever.ingest(documentType.value, content, filename)
    return IngestResponse(filename=filename, document_type=documentType.value, chunks=chunks)

@api_router.get("/internal-documents/search", response_model=SearchResponse, tags=["Internal Documents"])
async def query_internal_documents(
    query: str = Query(..., min_length=1),
    filter: Optional[ReferenceDocumentType] = Query(default=None),
    retriever: KnowledgeRetriever = Depends(get_retriever),
):
    summary = await retriever.query(query, filter.value if filter else None)
    return SearchResponse(query=query, filter=filter.value if filter else None, summary=summary)

# ------------ Warmup ------------
@api_router.post("/warmup", tags=["Health"])
def warmup():
    """
    Enqueue a warmup task for the active model.
    """
    from backend.worker.worker import celery_app

    async_res = celery_app.send_task("warmup_llm", queue="evaluation", routing_key="evaluation")
    return {"job_id": async_res.id}
