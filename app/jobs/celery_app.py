"""Celery application configuration"""

from celery import Celery
from celery.signals import setup_logging

from app.config import settings
from app.logging_setup import configure_logging

# Create Celery app
celery_app = Celery(
    "ordertrack",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "app.jobs.tasks",
    ],
)

beat_schedule = {
    "prune-expired-lookup-otps": {
        "task": "prune_expired_lookup_otps",
        "schedule": 300.0,  # Every 5 minutes
    },
}

# Demo / staging only
if settings.tracking_simulation_enabled:
    beat_schedule["advance-tracking-simulation"] = {
        "task": "advance_tracking_simulation",
        "schedule": settings.tracking_simulation_interval_seconds,
        "options": {"expires": settings.tracking_simulation_interval_seconds},
    }

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule for periodic tasks
    beat_schedule=beat_schedule,
)


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging()
