# storefront/services/notification_service.py
from kombu.exceptions import OperationalError

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysylania powiadomien o zamowieniach.
    Uzywa Celery do asynchronicznego przetwarzania. Best-effort: awaria brokera
    jest logowana i nie cofa zamowienia.
    """

    @staticmethod
    def send_order_placed(user_id: str, order_id: int):
        try:
            send_order_placed_task.delay(user_id, order_id)
        except OperationalError as e:
            logger.warning(f"Could not queue placed notification for order {order_id}: {e}")

    @staticmethod
    def send_order_cancelled(user_id: str, order_id: int):
        try:
            send_order_cancelled_task.delay(user_id, order_id)
        except OperationalError as e:
            logger.warning(f"Could not queue cancel notification for order {order_id}: {e}")


@celery_app.task(name="storefront.services.notification_service.send_order_placed_task")
def send_order_placed_task(user_id: str, order_id: int):
    """
    Celery task - w prawdziwym systemie wyslalby email/SMS/push.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} has been placed")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_order_cancelled_task")
def send_order_cancelled_task(user_id: str, order_id: int):
    logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} has been cancelled")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
