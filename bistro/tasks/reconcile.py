# bistro/tasks/reconcile.py
from bistro.celery_worker import celery_app
from bistro.data.database import SessionLocal
from bistro.services.order_service import OrderService
from bistro.services.payment_gateway import PaymentGateway
from bistro.utils.logging import get_logger

logger = get_logger(__name__)


def reconcile_pending_payments(db=None, gateway: PaymentGateway | None = None) -> dict:
    """Jeden przebieg reconcile - wydzielony z taska zeby dalo sie go wywolac bez brokera."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        svc = OrderService(db=db, gateway=gateway or PaymentGateway())
        return svc.reconcile_pending_payments()
    finally:
        if own_session:
            db.close()


@celery_app.task(name="bistro.tasks.reconcile.reconcile_pending_payments_task")
def reconcile_pending_payments_task():
    logger.info("Reconcile pending payments task started")
    return reconcile_pending_payments()
