# dokon/api/routers/telegram.py
from fastapi import APIRouter, Body, Depends

from dokon.api.deps import get_courier_service, get_notifier, get_storage
from dokon.repos.storage import Storage
from dokon.services.courier_service import CourierService
from dokon.services.notification_service import NotificationService
from dokon.services.telegram_bot import TelegramBotService
from dokon.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/telegram-webhook", tags=["telegram"])


@router.post("")
def telegram_webhook(
    update: dict = Body(...),
    storage: Storage = Depends(get_storage),
    notifier: NotificationService = Depends(get_notifier),
    couriers: CourierService = Depends(get_courier_service),
):
    """Always answers ok, otherwise Telegram keeps redelivering the update."""
    bot = TelegramBotService(storage, notifier, couriers)
    try:
        outcome = bot.handle(update)
        logger.info(f"Telegram update {update.get('update_id')}: {outcome}")
    except Exception:
        logger.exception(f"Telegram update {update.get('update_id')} failed")
    return {"ok": True}
