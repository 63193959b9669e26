# backend/celeryconfig.py

import os
from kombu import Queue, Exchange

from backend.app.config import settings

# use "redis://redis:6379/0" when redis runs in its own container

BROKER_URL = os.getenv("CELERY_BROKER_URL", settings.REDIS_URL)
RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", BROKER_URL)

broker_url = BROKER_URL
result_backend = RESULT_BACKEND


task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]
timezone = "UTC"
enable_utc = True

# -------- Queues & Routing --------
# Exchanges (direct for simple routing)

default_exchange = Exchange("default", type="direct")
evaluation_exchange = Exchange("evaluation", type="direct")

# Declare queues
task_queues = (
    Queue("default", exchange=default_exchange, routing_key="default"),
    Queue("evaluation", exchange=evaluation_exchange, routing_key="evaluation"),
)

# Default routing if a task has no explicit route
task_default_queue = "default"
task_default_exchange = "default"
task_default_routing_key = "default"

task_routes = {
    "run_evaluation_job": {"queue": "evaluation", "routing_key": "evaluation"},
    "warmup_llm": {"queue": "evaluation", "routing_key": "evaluation"},
}

# Job status lives in the database; the result backend only mirrors it
task_track_started = True
worker_prefetch_multiplier = 1
