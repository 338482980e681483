import pytest
import requests
from fastapi.testclient import TestClient

from dokon.api import create_app
from dokon.data.database import make_engine
from dokon.repos.mem_storage import MemStorage
from dokon.repos.sql_storage import SqlStorage
from dokon.services.site_settings import default_site_settings

BOT_TOKEN = "123:test-token"
GROUP_ID = "-100500"


class FakeTelegram:
    """Records Bot API calls instead of sending them."""

    def __init__(self):
        self.messages = []
        self.photos = []
        self.failing_chats = set()
        self.webhooks = []
        self.commands = []
        self.webhook_error = None

    def _check(self, chat_id):
        if chat_id in self.failing_chats:
            raise requests.ConnectionError(f"chat {chat_id} unreachable")

    def send_message(self, token, chat_id, text, reply_markup=None, parse_mode="Markdown"):
        self._check(chat_id)
        self.messages.append({"token": token, "chat_id": chat_id, "text": text, "reply_markup": reply_markup})
        return {"ok": True}

    def send_photo(self, token, chat_id, photo, caption, parse_mode="Markdown"):
        self._check(chat_id)
        self.photos.append({"token": token, "chat_id": chat_id, "photo": photo, "caption": caption})
        return {"ok": True}

    def set_webhook(self, token, url):
        if self.webhook_error:
            raise self.webhook_error
        self.webhooks.append({"token": token, "url": url})
        return {"ok": True, "result": True, "description": "Webhook was set"}

    def set_my_commands(self, token, commands):
        self.commands = list(commands)
        return {"ok": True, "result": True}

    def sent_to(self, chat_id):
        return [m for m in self.messages if m["chat_id"] == chat_id]


def make_storage(kind):
    settings = default_site_settings(telegram_bot_token=None)
    if kind == "memory":
        return MemStorage(settings, default_courier_balance=10000)
    return SqlStorage(make_engine("sqlite://"), settings, default_courier_balance=10000)


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    return make_storage(request.param)


@pytest.fixture
def telegram():
    return FakeTelegram()


@pytest.fixture
def client(storage, telegram):
    app = create_app(storage=storage, telegram_client=telegram, seed=False)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def bot_enabled(storage):
    storage.update_settings({"telegram_bot_token": BOT_TOKEN, "telegram_group_id": GROUP_ID})


# small payload builders shared by the API tests
def category_payload(**overrides):
    data = {"name": "Elektronika", "slug": "elektronika"}
    data.update(overrides)
    return data


def product_payload(category_id, **overrides):
    data = {
        "name": "Smartfon",
        "slug": "smartfon",
        "price": 100000,
        "categoryId": category_id,
        "images": ["https://example.com/phone.jpg"],
        "stock": 5,
    }
    data.update(overrides)
    return data


def order_payload(**overrides):
    data = {
        "customerName": "Aziz",
        "customerPhone": "+998900000000",
        "customerAddress": "Toshkent, Chilonzor 5",
        "deliveryType": "courier",
        "paymentType": "cash",
        "subtotal": 100000,
        "deliveryPrice": 15000,
        "discount": 0,
        "total": 115000,
        "items": "[]",
    }
    data.update(overrides)
    return data


def courier_payload(**overrides):
    data = {
        "name": "Bekzod",
        "phone": "+998901112233",
        "telegramId": "5001",
        "cardNumber": "8600000000000001",
    }
    data.update(overrides)
    return data
