
# backend/app/core/pipeline.py
import logging
from typing import Any, Dict

from backend.app.core.concurrency import gather_or_cancel
from backend.app.core.errors import InvalidJobTransition
from backend.app.core.jobs import JobService
from backend.app.core.scoring import ScoringEngine
from backend.app.models.job_models import JobStatus

logger = logging.getLogger(__name__)


class EvaluationPipeline:
    """Drives one evaluation job: CV and project scoring side by side, then the
    overall fusion, with status writes around them."""

    def __init__(self, jobs: JobService, scoring: ScoringEngine):
        self.jobs = jobs
        self.scoring = scoring

    async def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        job_id = payload["job_id"]
        cv_document_id = payload["cv_document_id"]
        project_document_id = payload["project_document_id"]
        job_title = payload["job_title"]
        logger.info('Processing evaluation job job_id=%s job_title="%s"', job_id, job_title)

        try:
            await self.jobs.update_job_status(job_id, JobStatus.PROCESSING)
        except InvalidJobTransition as e:
            # redelivered task for a job that already finished
            logger.warning("Skipping finished job job_id=%s reason=%s", job_id, e)
            return {"job_id": job_id, "status": "skipped"}

        stage = "cv+project"
        try:
            cv_result, project_result = await gather_or_cancel(
                self.scoring.score_cv(cv_document_id, job_title, job_id=job_id),
                self.scoring.score_project(project_document_id, job_title, job_id=job_id),
            )
            stage = "overall"
            overall = await self.scoring.score_overall(cv_result, project_result, job_title, job_id=job_id)
            stage = "complete"
            await self.jobs.update_job_status(job_id, JobStatus.COMPLETED, overall.model_dump())
        except Exception as e:
            logger.error(
                "Evaluation job failed job_id=%s stage=%s error_type=%s error=%s",
                job_id, stage, type(e).__name__, e,
            )
            # a failure to record the failure propagates as well
            await self.jobs.update_job_status(job_id, JobStatus.FAILED)
            raise

        logger.info("Overall evaluation completed job_id=%s", job_id)
        return {"job_id": job_id, "status": JobStatus.COMPLETED.value}
