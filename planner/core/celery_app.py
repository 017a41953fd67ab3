"""
Celery configuration for async task processing.
"""

from celery import Celery

from planner.core.config import REDIS_URL, SESSION_QUEUE

# Create Celery app
celery_app = Celery(
    "session_planner",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["planner.tasks.session_tasks"]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_default_queue=SESSION_QUEUE,
    task_time_limit=120,  # Generation is CPU-bound; cap it from the outside
    task_soft_time_limit=90,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=200,
)
