# backend/app/core/tasks.py

import asyncio
from celery.utils.log import get_task_logger
from backend.worker.worker import celery_app
from backend.app.config import settings
import litellm

logger = get_task_logger(__name__)

@celery_app.task(
    name="run_evaluation_job",
    bind=False,
    # no autoretry: a retried job would find its row already failed
    soft_time_limit=settings.CELERY_SOFT_TIME_LIMIT,  #  900s
    time_limit=settings.CELERY_HARD_TIME_LIMIT,       #  960s
    acks_late=False,
)
def run_evaluation_job(payload: dict):
    logger.info("Starting evaluation job_id=%s", payload.get("job_id"))
    result = asyncio.run(_run_pipeline(payload))
    logger.info("Finished evaluation job_id=%s status=%s", payload.get("job_id"), result.get("status"))
    return result


async def _run_pipeline(payload: dict) -> dict:
    from backend.app.core.container import get_services

    services = get_services()
    # index client is bound to this event loop
    index = services.new_index()
    try:
        return await services.pipeline(index).run(payload)
    finally:
        await index.close()


@celery_app.task(
    name="warmup_llm",
    bind=False,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_jitter=True,
    retry_kwargs={"max_retries": 0},
    soft_time_limit=180,
    time_limit=240,
)
def warmup_llm():
    """
    Pre-load the model via a tiny LiteLLM call.
    """
    model_id = settings.full_model_id()
    logger.info("Warming up LLM model_id=%s base_url=%s", model_id, settings.LLM_BASE_URL)

    resp = litellm.completion(
        model=model_id,
        api_base=settings.LLM_BASE_URL,
        api_key=settings.LLM_API_KEY or None,
        timeout=settings.LLM_REQUEST_TIMEOUT,
        messages=[{"role": "user", "content": settings.WARMUP_PROMPT}],
        temperature=0.0,
        max_tokens=16,
    )
    txt = resp.choices[0].message.content if resp.choices else ""
    logger.info("Warmup response (truncated): %s", (txt or "")[:120])
    return {"status": "ok", "model": model_id}
