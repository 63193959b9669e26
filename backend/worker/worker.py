# backend/worker/worker.py

from celery import Celery
from celery.signals import worker_ready, worker_process_init
from backend.app.config import settings, configure_logging

# Create Celery app
celery_app = Celery("cv_evaluator")
celery_app.config_from_object("backend.celeryconfig")

# Ensure tasks are imported on worker start
import backend.app.core.tasks       # noqa: F401

@worker_process_init.connect
def _init_worker_process(sender=None, **kwargs):
    """Each pool process logs at the configured level and has its tables."""
    configure_logging()
    from backend.app.core.container import get_services
    get_services().db.init_db()

@worker_ready.connect
def _warmup_on_ready(sender=None, **kwargs):
    """
    When the worker starts, auto-warm the active LLM model.
    """
    if not settings.WARMUP_ENABLED:
        return
    # Send to evaluation queue so it runs on the worker that does the LLM calls
    try:
        celery_app.send_task("warmup_llm", queue="evaluation", routing_key="evaluation")
    except Exception:
        # If routing not set or worker not bound to evaluation, still try default
        celery_app.send_task("warmup_llm")
