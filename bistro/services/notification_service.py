# bistro/services/notification_service.py
from bistro.celery_worker import celery_app
from bistro.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Używa Celery do asynchronicznego przetwarzania.
    Powiadomienie jest best-effort - brak brokera nie cofa zamowienia.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int):
        try:
            send_order_notification_task.delay(user_id, order_id)
        except Exception as e:
            logger.warning(f"Nie udalo sie zlecic powiadomienia o zamowieniu {order_id}: {e}")

    @staticmethod
    def send_payment_confirmed(user_id: int, order_id: int):
        try:
            send_payment_confirmed_task.delay(user_id, order_id)
        except Exception as e:
            logger.warning(f"Nie udalo sie zlecic powiadomienia o platnosci {order_id}: {e}")


@celery_app.task(name="bistro.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int):
    logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} placed")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}


@celery_app.task(name="bistro.services.notification_service.send_payment_confirmed_task")
def send_payment_confirmed_task(user_id: int, order_id: int):
    logger.info(f"[NOTIFICATION] User {user_id}: payment for order {order_id} confirmed")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
