# backend/app/core/async_queue.py

import logging
from typing import Dict, Any
from kombu.exceptions import KombuError, OperationalError
from backend.app.core.errors import QueueError
from backend.app.core.tasks import run_evaluation_job

logger = logging.getLogger(__name__)

EVALUATION_QUEUE = "evaluation"


class AsyncJobQueueCelery:
    """Hands evaluation jobs to Celery on the dedicated evaluation queue."""

    def enqueue_evaluation(self, payload: Dict[str, Any]) -> str:
        try:
            async_result = run_evaluation_job.apply_async(
                args=[dict(payload)],
                queue=EVALUATION_QUEUE,
                routing_key=EVALUATION_QUEUE,
            )
        except (KombuError, OperationalError, ConnectionError) as e:
            logger.error("Failed to enqueue evaluation job_id=%s error=%s", payload.get("job_id"), e)
            raise QueueError(f"Failed to enqueue evaluation job: {e}") from e
        logger.info("Evaluation enqueued job_id=%s task_id=%s", payload.get("job_id"), async_result.id)
        return async_result.id


# Singleton
queue = AsyncJobQueueCelery()
