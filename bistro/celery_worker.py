# bistro/celery_worker.py
from celery import Celery

from bistro.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "bistro",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAŻNE: Explicite importuj taski, żeby Celery je zarejestrował
celery_app.conf.imports = (
    "bistro.tasks.reconcile",
    "bistro.services.notification_service",
)

# Zamowienia online, ktore nie dostaly potwierdzenia (zgubiony redirect)
celery_app.conf.beat_schedule = {
    "reconcile-pending-payments-every-5-minutes": {
        "task": "bistro.tasks.reconcile.reconcile_pending_payments_task",
        "schedule": 300.0,
    },
}

celery_app.conf.timezone = "UTC"
