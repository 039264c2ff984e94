# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, SWEEP_INTERVAL_SECONDS

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks are only registered once their module is imported
celery_app.conf.imports = ("storefront.tasks.sweep",)

celery_app.conf.beat_schedule = {
    "sweep-orphaned-shared-orders": {
        "task": "storefront.tasks.sweep.sweep_orphaned_shared_orders_task",
        "schedule": float(SWEEP_INTERVAL_SECONDS),
    },
}

celery_app.conf.timezone = "UTC"
