# checkout/celery_worker.py
from celery import Celery

from checkout.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, CELERY_TASK_ALWAYS_EAGER

celery_app = Celery(
    "checkout",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks are listed explicitly so the worker registers them
celery_app.conf.imports = (
    "checkout.tasks.invoices",
    "checkout.services.notification_service",
)

celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
celery_app.conf.task_acks_late = True
celery_app.conf.task_serializer = "json"
celery_app.conf.timezone = "UTC"
