# dokon/services/telegram_bot.py
from dokon.domain.schemas import TelegramUserCreate
from dokon.repos.storage import Storage
from dokon.services.courier_service import CourierService
from dokon.services.notification_service import NotificationService
from dokon.utils.logging import get_logger
from dokon.utils.settings import SITE_URL

logger = get_logger(__name__)

WELCOME = "*Do'kon-ga Xush Kelibsiz!* 🛍️\n\nMahsulotlarni ko'ring va buyurtma bering."
COURIER_WELCOME = "*Xush Kelibsiz, Kuryer!* 🚚\n\nYetkazish paneli"
ASK_LOCATION = "📍 Iltimos, joylashuvingizni ulashing. Bu yaqin buyurtmalarni topish uchun zarur."
LOCATION_SAVED = "✅ Joylashuvingiz saqlandi! Yaqin buyurtmalarni qabul qila olasiz."


class TelegramBotService:
    """Dispatches incoming bot updates (webhook payloads)."""

    def __init__(self, storage: Storage, notifier: NotificationService, couriers: CourierService, site_url: str = SITE_URL):
        self.storage = storage
        self.notifier = notifier
        self.couriers = couriers
        self.site_url = site_url.rstrip("/")

    def handle(self, update: dict) -> str:
        if update.get("callback_query"):
            return self._callback(update["callback_query"])

        message = update.get("message") or {}
        chat_id = str((message.get("chat") or {}).get("id") or "")
        if not chat_id:
            return "ignored"

        if message.get("location"):
            return self._location(chat_id, message["location"])

        text = message.get("text") or ""
        if text == "/start":
            return self._start(chat_id, (message.get("from") or {}).get("first_name"))
        if text.startswith("/cat_"):
            return self._category(chat_id, text[len("/cat_"):])

        self.notifier.send(chat_id, WELCOME, reply_markup=self._shop_button(chat_id))
        return "menu"

    def _callback(self, query: dict) -> str:
        data = query.get("data") or ""
        if not data.startswith("courier_"):
            return "ignored"

        parts = data[len("courier_"):].split("_")
        if len(parts) != 3:
            return "ignored"
        action, order_id, courier_id = parts

        courier = self.storage.get_courier(courier_id)
        assignment = self.storage.get_assignment(order_id)
        if not courier or not assignment or assignment.status != "pending":
            return "stale"

        if action == "accept":
            self.couriers.accept(order_id, assignment.id, courier.telegram_id)
            return "accepted"
        if action == "reject":
            self.couriers.reject(order_id, assignment.id, courier.telegram_id)
            return "rejected"
        return "ignored"

    def _location(self, chat_id: str, location: dict) -> str:
        courier = self.storage.get_courier_by_telegram_id(chat_id)
        if not courier:
            return "ignored"
        self.couriers.update_location(chat_id, location["latitude"], location["longitude"])
        self.notifier.send(chat_id, LOCATION_SAVED, reply_markup={"remove_keyboard": True})
        return "location"

    def _start(self, chat_id: str, first_name: str | None) -> str:
        self.storage.create_telegram_user(TelegramUserCreate(telegram_id=chat_id, first_name=first_name))

        if self.storage.get_courier_by_telegram_id(chat_id):
            app_url = f"{self.site_url}/courier/payme?telegramId={chat_id}"
            self.notifier.send(
                chat_id,
                COURIER_WELCOME,
                reply_markup={"inline_keyboard": [[{"text": "💳 TaayyorCash", "web_app": {"url": app_url}}]]},
            )
            self.notifier.send(
                chat_id,
                ASK_LOCATION,
                reply_markup={
                    "keyboard": [[{"text": "📍 Joylashuvni Ulashing", "request_location": True}]],
                    "one_time_keyboard": True,
                    "resize_keyboard": True,
                },
            )
            return "courier"

        self.notifier.send(chat_id, WELCOME, reply_markup=self._shop_button(chat_id))
        return "customer"

    def _category(self, chat_id: str, category_id: str) -> str:
        products = self.storage.get_products(category_id=category_id, limit=5)
        if not products:
            self.notifier.send(chat_id, "Bu kategoriyada mahsulot topilmadi.")
            return "category"

        for product in products:
            self.notifier.send(
                chat_id,
                f"{product.name}\n\nNarx: {product.price:g} so'm\n\n{product.description or ''}",
                reply_markup={
                    "inline_keyboard": [[{"text": "Saytda Ko'rish", "url": f"{self.site_url}/product/{product.slug}"}]]
                },
            )
        return "category"

    def _shop_button(self, chat_id: str) -> dict:
        url = f"{self.site_url}/?telegramId={chat_id}"
        return {"inline_keyboard": [[{"text": "📱 Do'kon Ochish", "web_app": {"url": url}}]]}
