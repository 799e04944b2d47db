"""Celery application for periodic housekeeping."""
from celery import Celery

from taskrelay.config import settings

celery_app = Celery(
    "taskrelay",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["taskrelay.tasks.sessions"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "sweep-expired-sessions": {
            "task": "taskrelay.tasks.sessions.sweep_expired_sessions",
            "schedule": float(settings.SESSION_SWEEP_INTERVAL_SECONDS),
        },
    },
)
