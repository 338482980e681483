# dokon/services/newsletter_service.py
from dokon.domain.schemas import BroadcastResult, NewsletterCreate
from dokon.repos.storage import Storage
from dokon.services.notification_service import NotificationService
from dokon.utils.logging import get_logger

logger = get_logger(__name__)


def _is_remote(url: str | None) -> bool:
    # data: URIs cannot be passed to sendPhoto by reference
    return bool(url) and url.startswith(("http://", "https://"))


class NewsletterService:
    def __init__(self, storage: Storage, notifier: NotificationService):
        self.storage = storage
        self.notifier = notifier

    def _deliver(self, chat_id: str, text: str, image_url: str | None) -> bool:
        if _is_remote(image_url):
            return self.notifier.send_photo(chat_id, image_url, text)
        return self.notifier.send(chat_id, text)

    def send_newsletter(self, data: NewsletterCreate) -> BroadcastResult:
        """
        Fan out to every bot user and persist the newsletter.
        The record is stored even when nobody received it.
        """
        if not self.notifier.bot_token():
            raise ValueError("Telegram bot token not configured")

        users = self.storage.get_telegram_users()
        text = f"{data.title}\n\n{data.message}"

        sent = 0
        for user in users:
            if self._deliver(user.telegram_id, text, data.image_url):
                sent += 1

        self.storage.create_newsletter(data)
        logger.info(f"Newsletter '{data.title}' sent to {sent}/{len(users)} users")

        return BroadcastResult(
            message=f"Newsletter sent to {sent} out of {len(users)} users",
            sent_count=sent,
            total_users=len(users),
        )

    def send_courier_broadcast(self, data: NewsletterCreate) -> BroadcastResult:
        if not self.notifier.bot_token():
            raise ValueError("Telegram bot not configured")

        couriers = [c for c in self.storage.get_couriers() if c.is_active and c.telegram_id]
        if not couriers:
            raise ValueError("No active couriers found")

        text = f"📢 *{data.title}*\n\n{data.message}"
        sent = 0
        for courier in couriers:
            if self._deliver(courier.telegram_id, text, data.image_url):
                sent += 1

        logger.info(f"Courier broadcast '{data.title}' sent to {sent}/{len(couriers)} couriers")
        return BroadcastResult(
            message=f"Rassilka {sent} ta kuryerga yuborildi",
            sent_count=sent,
            total_users=len(couriers),
        )
