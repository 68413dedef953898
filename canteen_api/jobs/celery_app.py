"""Celery application configuration"""

from celery import Celery
from celery.signals import setup_logging

from canteen_api.config import get_settings
from canteen_api.log_config import configure_logging

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "canteen_orders",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "canteen_api.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=60,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_ignore_result=True,

    # Beat schedule for periodic tasks
    beat_schedule={
        "expire-stale-orders": {
            "task": "expire_stale_orders",
            "schedule": settings.order_sweep_interval_seconds,
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging(settings.log_level, settings.log_format)
