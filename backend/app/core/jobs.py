# backend/app/core/jobs.py

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from backend.app.core.database import Database
from backend.app.core.errors import (
    ExternalCallTimeout,
    InvalidJobTransition,
    NotFound,
    PersistenceError,
    QueueError,
    ValidationError,
)
from backend.app.core.timeouts import bounded
from backend.app.models.db_models import EvaluationJob, EvaluationRecord, utcnow
from backend.app.models.job_models import JobStatus, RESULT_FIELDS, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

_ORDER = {
    JobStatus.QUEUED.value: 0,
    JobStatus.PROCESSING.value: 1,
    JobStatus.COMPLETED.value: 2,
    JobStatus.FAILED.value: 2,
}


def can_transition(current: str, target: JobStatus) -> bool:
    """queued -> processing -> completed|failed; terminal states never change."""
    if current in TERMINAL_STATUSES:
        return False
    return _ORDER[JobStatus(target).value] >= _ORDER.get(current, 0)


class JobEnqueuer(Protocol):
    def enqueue_evaluation(self, payload: Dict[str, Any]) -> str: ...


class JobService:
    """Job rows, their status transitions, and the evaluation-record sink."""

    def __init__(self, db: Database, queue: JobEnqueuer):
        self.db = db
        self.queue = queue

    async def create_and_queue_job(self, cv_document_id: str, project_document_id: str, job_title: str) -> Dict[str, str]:
        job_id = str(uuid.uuid4())
        logger.info("Creating evaluation job job_id=%s job_title=%s", job_id, job_title)

        # The row starts in "processing"; callers are told "queued".
        job = EvaluationJob(
            id=job_id,
            cv_document_id=cv_document_id,
            project_document_id=project_document_id,
            job_title=job_title,
            status=JobStatus.PROCESSING.value,
        )

        def _insert(session):
            session.add(job)
            session.commit()

        try:
            await self.db.run(_insert, what="insert evaluation_jobs")
        except SQLAlchemyError as e:
            logger.error("Failed to create evaluation job job_id=%s error=%s", job_id, e)
            raise PersistenceError(f"Failed to create evaluation job: {e}") from e

        payload = {
            "job_id": job_id,
            "cv_document_id": cv_document_id,
            "project_document_id": project_document_id,
            "job_title": job_title,
        }
        try:
            await bounded(asyncio.to_thread(self.queue.enqueue_evaluation, payload), what="enqueue evaluation")
        except QueueError:
            # no worker will ever pick this row up
            await self.update_job_status(job_id, JobStatus.FAILED)
            raise
        except ExternalCallTimeout as e:
            logger.error("Enqueue timed out job_id=%s error=%s", job_id, e)
            await self.update_job_status(job_id, JobStatus.FAILED)
            raise QueueError(f"Failed to enqueue evaluation job: {e}") from e
        logger.info("Job created and queued job_id=%s", job_id)
        return {"id": job_id, "status": JobStatus.QUEUED.value}

    async def get_job(self, job_id: str) -> EvaluationJob:
        try:
            job = await self.db.run(lambda s: s.get(EvaluationJob, job_id), what="select evaluation_jobs")
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read job {job_id}: {e}") from e
        if job is None:
            logger.error("Job not found job_id=%s", job_id)
            raise NotFound(f"Job not found: {job_id}")
        return job

    async def get_job_status(self, job_id: str) -> Dict[str, Any]:
        job = await self.get_job(job_id)
        response: Dict[str, Any] = {"id": job.id, "status": job.status}
        if job.status == JobStatus.COMPLETED.value:
            response["result"] = {name: getattr(job, name) for name in RESULT_FIELDS}
        return response

    async def update_job_status(self, job_id: str, status: JobStatus, result: Optional[Dict[str, Any]] = None) -> None:
        status = JobStatus(status)
        if result and status is not JobStatus.COMPLETED:
            raise ValidationError(f"Result fields are only stored with status completed, got {status.value}")
        unknown = set(result or {}) - set(RESULT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown result fields: {sorted(unknown)}")

        def _update(session):
            job = session.get(EvaluationJob, job_id)
            if job is None:
                raise NotFound(f"Job not found: {job_id}")
            if not can_transition(job.status, status):
                raise InvalidJobTransition(f"Job {job_id} is already {job.status}; cannot move to {status.value}")
            now = utcnow()
            job.status = status.value
            job.updated_at = now
            if status is JobStatus.COMPLETED:
                job.finished_at = now
            for name, value in (result or {}).items():
                setattr(job, name, value)
            session.add(job)
            session.commit()

        try:
            await self.db.run(_update, what="update evaluation_jobs")
        except SQLAlchemyError as e:
            logger.error("Failed to update job status job_id=%s error=%s", job_id, e)
            raise PersistenceError(f"Failed to update job status: {e}") from e

        logger.info("Job status updated job_id=%s status=%s", job_id, status.value)

    async def record_evaluation(
        self,
        job_id: str,
        evaluation_type: str,
        payload: Dict[str, Any],
        document_id: Optional[str] = None,
    ) -> None:
        record = EvaluationRecord(
            id=str(uuid.uuid4()),
            job_id=job_id,
            type=evaluation_type,
            status=JobStatus.COMPLETED.value,
            result=payload,
            document_id=document_id,
        )

        def _insert(session):
            session.add(record)
            session.commit()

        try:
            await self.db.run(_insert, what="insert evaluations")
        except SQLAlchemyError as e:
            logger.error("Failed to store evaluation job_id=%s type=%s error=%s", job_id, evaluation_type, e)
            raise PersistenceError(f"Failed to store {evaluation_type} evaluation: {e}") from e
        logger.info("Evaluation stored job_id=%s type=%s", job_id, evaluation_type)

    async def list_evaluations(self, job_id: str) -> List[EvaluationRecord]:
        def _select(session):
            return list(session.exec(select(EvaluationRecord).where(EvaluationRecord.job_id == job_id)))

        try:
            return await self.db.run(_select, what="select evaluations")
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read evaluations for {job_id}: {e}") from e
