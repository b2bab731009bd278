"""
Celery application for outbound email.

The API only enqueues; a worker started with
``celery -A agencyos.workers.celery_app worker -Q email`` does the sending.
"""

from celery import Celery

from agencyos.core.config import settings

EMAIL_QUEUE = "email"

celery_app = Celery(
    "agencyos",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["agencyos.workers.email_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    enable_utc=True,
    timezone="UTC",
    # Send results are only inspected while debugging
    result_expires=6 * 3600,
    # A message is acked after the provider accepted it, not when picked up
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_time_limit=120,
    broker_connection_retry_on_startup=True,
    task_default_queue=EMAIL_QUEUE,
    task_routes={"agencyos.workers.email_tasks.*": {"queue": EMAIL_QUEUE}},
)
