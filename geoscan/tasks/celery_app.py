from celery import Celery
from celery.signals import worker_process_init

from geoscan.core.config import settings

celery_app = Celery(
    "geoscan",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)

celery_app.conf.include = [
    "geoscan.tasks.scan_tasks",
]


@worker_process_init.connect
def _init_worker(**kwargs):
    from geoscan.core.config import validate_settings_for_production
    from geoscan.core.logging import setup_logging
    from geoscan.core.sentry import init_sentry

    setup_logging()
    validate_settings_for_production()
    init_sentry()
