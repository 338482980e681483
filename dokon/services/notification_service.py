# dokon/services/notification_service.py
from typing import Iterable, Optional

from requests import RequestException

from dokon.domain.schemas import CourierOut, OrderOut
from dokon.repos.storage import Storage
from dokon.services.telegram_client import TelegramClient
from dokon.utils.logging import get_logger
from dokon.utils.settings import TELEGRAM_BOT_TOKEN

logger = get_logger(__name__)

PAYMENT_LABELS = {"cash": "Naqd", "card": "Karta"}
DELIVERY_LABELS = {"courier": "Kuryer", "pickup": "Olib ketish"}
BOT_COMMANDS = [
    {"command": "start", "description": "Do'konni ochish"},
    {"command": "help", "description": "Yordam"},
]


def _phone(value: str) -> str:
    return "".join(value.split())


class NotificationService:
    """
    Telegram side channel. Every send is best-effort: failures are logged
    and reported as False, never raised to the caller.
    """

    def __init__(self, storage: Storage, client: Optional[TelegramClient], fallback_token: Optional[str] = TELEGRAM_BOT_TOKEN):
        self.storage = storage
        self.client = client
        self.fallback_token = fallback_token

    def bot_token(self) -> Optional[str]:
        return self.storage.get_settings().telegram_bot_token or self.fallback_token

    def send(self, chat_id: Optional[str], text: str, reply_markup: dict | None = None) -> bool:
        token = self.bot_token()
        if not (token and chat_id and self.client):
            return False
        try:
            self.client.send_message(token, chat_id, text, reply_markup=reply_markup)
            return True
        except RequestException as e:
            logger.warning(f"Telegram sendMessage to {chat_id} failed: {e}")
            return False

    def send_photo(self, chat_id: str, photo: str, caption: str) -> bool:
        token = self.bot_token()
        if not (token and chat_id and self.client):
            return False
        try:
            self.client.send_photo(token, chat_id, photo, caption)
            return True
        except RequestException as e:
            logger.warning(f"Telegram sendPhoto to {chat_id} failed: {e}")
            return False

    def send_to_group(self, text: str) -> bool:
        return self.send(self.storage.get_settings().telegram_group_id, text)

    def setup_webhook(self, url: str) -> dict:
        """
        Point the bot at url and publish its command menu. Unlike the sends
        above, Bot API failures propagate as requests.RequestException.
        """
        token = self.bot_token()
        if not token:
            raise ValueError("Telegram bot token is not configured")
        if not self.client:
            raise RuntimeError("Telegram client is not available")

        result = self.client.set_webhook(token, url)
        self.client.set_my_commands(token, BOT_COMMANDS)
        logger.info(f"Telegram webhook set to {url}: ok={result.get('ok')}")
        return result

    # order lifecycle
    def notify_new_order(self, order: OrderOut, category_name: str) -> bool:
        items = "\n".join(f"• {line.product_name} x{line.quantity}" for line in order.line_items())
        text = (
            "📦 *YANGI BUYURTMA*\n\n"
            f"Raqam: #{order.order_number}\n"
            f"👤 Mijoz: {order.customer_name}\n"
            f"📞 Tel: {_phone(order.customer_phone)}\n"
            f"📍 Manzil: {order.customer_address}\n"
            f"📂 Kategoriya: {category_name}\n\n"
            f"🛍️ *Mahsulotlar:*\n{items}\n\n"
            f"💰 Jami: {order.total:g} so'm\n"
            f"💳 To'lov: {PAYMENT_LABELS.get(order.payment_type, order.payment_type)}\n"
            f"🚚 Yetkazish: {DELIVERY_LABELS.get(order.delivery_type, order.delivery_type)}\n\n"
            "✅ Holati: Yangi"
        )
        return self.send_to_group(text)

    def offer_to_couriers(self, order: OrderOut, couriers: Iterable[CourierOut], category_name: str) -> int:
        sent = 0
        for courier in couriers:
            text = (
                "🎯 *YANGI BUYURTMA MAVJUD*\n\n"
                f"📋 #{order.order_number}\n"
                f"👤 {order.customer_name} - {_phone(order.customer_phone)}\n"
                f"📍 {order.customer_address}\n"
                f"📂 {category_name}\n\n"
                f"💰 {order.total:g} so'm\n\n"
                "Qabul qilamizmi?"
            )
            keyboard = {
                "inline_keyboard": [
                    [
                        {"text": "✅ Qabul qilish", "callback_data": f"courier_accept_{order.id}_{courier.id}"},
                        {"text": "❌ Rad etish", "callback_data": f"courier_reject_{order.id}_{courier.id}"},
                    ]
                ]
            }
            if self.send(courier.telegram_id, text, reply_markup=keyboard):
                sent += 1
        logger.info(f"Order {order.order_number} offered to {sent} couriers")
        return sent

    def notify_courier_assigned(self, order: OrderOut, courier: CourierOut) -> bool:
        text = (
            "📦 *SIZGA BUYURTMA BIRIKTIRILDI*\n\n"
            f"Raqam: #{order.order_number}\n"
            f"👤 Mijoz: {order.customer_name}\n"
            f"📞 Telefon: {_phone(order.customer_phone)}\n"
            f"📍 Manzil: {order.customer_address}\n\n"
            f"💰 Jami: {order.total:g} so'm"
        )
        return self.send(courier.telegram_id, text)

    def notify_order_accepted(self, order: OrderOut, courier: CourierOut, fee: float):
        self.send(
            order.customer_telegram_id,
            "✅ *SIZNING BUYURTMANGIZ QABUL QILINDI*\n\n"
            f"Buyurtma raqam: #{order.order_number}\n"
            f"👤 Kuryer: {courier.name}\n"
            f"📞 Kuryer telefon: {courier.phone}\n\n"
            "Kuryer tez orada yetkazib beradi!",
        )
        self.send(
            courier.telegram_id,
            "✅ *BUYURTMA SIZGA BIRIKTIRILDI*\n\n"
            f"Buyurtma raqam: #{order.order_number}\n"
            f"👤 Mijoz: {order.customer_name}\n"
            f"📞 Telefon: {order.customer_phone}\n"
            f"📍 Manzil: {order.customer_address}\n"
            f"💰 Yetkazish haqi: {fee:g} so'm",
        )
        self.send_to_group(
            "✅ *BUYURTMA QABUL QILINDI*\n\n"
            f"Raqam: #{order.order_number}\n"
            f"👤 Kuryer: {courier.name}\n"
            f"📞 Tel: {courier.phone}\n"
            f"💰 Jami: {order.total:g} so'm"
        )

    def notify_order_rejected(self, order: OrderOut, courier: CourierOut) -> bool:
        return self.send_to_group(
            "❌ *BUYURTMA RAD ETILDI*\n\n"
            f"Buyurtma: #{order.order_number}\n"
            f"👤 Kuryer: {courier.name}"
        )

    def notify_status_change(self, order: OrderOut) -> bool:
        if order.status == "shipping":
            text = (
                "🚗 *BUYURTMA YO'LDA*\n\n"
                f"Buyurtma raqam: #{order.order_number}\n"
                "Kuryer sizga olib kelmoqda!\n\n"
                f"📍 Manzil: {order.customer_address}"
            )
        elif order.status == "delivered":
            text = (
                "✅ *BUYURTMA MUVAFFAQIYATLI YETKAZILDI!*\n\n"
                f"Buyurtma #{order.order_number} yetkazildi.\n"
                f"• Jami narx: {order.total:g} so'm\n"
                f"• Manzil: {order.customer_address}\n\n"
                "Xizmatdan foydalanganingiz uchun rahmat! 🙏"
            )
        else:
            return False
        return self.send(order.customer_telegram_id, text)
