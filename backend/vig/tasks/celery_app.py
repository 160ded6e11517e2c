"""Celery application configuration."""
from celery import Celery

from vig.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "vig",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["vig.tasks.maintenance"],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,  # 10 minutes hard limit
    task_soft_time_limit=300,  # 5 minutes soft limit

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=3600,  # 1 hour

    beat_schedule={
        "cleanup-expired-artifacts": {
            "task": "vig.tasks.maintenance.cleanup_expired_artifacts",
            "schedule": float(settings.artifact_sweep_interval_seconds),
        },
    },
)
