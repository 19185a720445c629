"""
Celery configuration for background tasks
"""
from celery import Celery
import logging

from kiosk_pricing.core.config import settings

logger = logging.getLogger(__name__)

redis_url = settings.redis_url

# Create Celery instance
celery_app = Celery(
    "kiosk_pricing",
    broker=redis_url,
    backend=redis_url,
    include=[
        "kiosk_pricing.modules.pricing.tasks",
    ]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,  # 10 minutes
    task_soft_time_limit=8 * 60,  # 8 minutes
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    # Result backend settings
    result_expires=3600,  # 1 hour

    task_routes={
        "kiosk_pricing.modules.pricing.tasks.*": {"queue": "pricing"},
    },

    # Beat schedule for periodic tasks
    beat_schedule={
        "reconcile-usage-counters": {
            "task": "kiosk_pricing.modules.pricing.tasks.reconcile_usage_counters",
            "schedule": settings.USAGE_RECONCILE_INTERVAL,
        }
    }
)

if __name__ == "__main__":
    celery_app.start()
