from datetime import datetime, timezone

import pytest
import requests

from conftest import BOT_TOKEN, FakeTelegram, make_storage
from dokon.domain.schemas import CartItemCreate, CategoryCreate, OrderCreate, ProductCreate, PromoCodeCreate
from dokon.services import telegram_client
from dokon.services.cart_service import CartService, summarize
from dokon.services.checkout_service import CheckoutService
from dokon.services.notification_service import NotificationService
from dokon.services.telegram_client import TelegramClient
from dokon.utils.helpers import container_price, generate_order_number, haversine_km


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {"ok": True}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


@pytest.fixture
def shop():
    storage = make_storage("memory")
    cat = storage.create_category(CategoryCreate(name="Ichimliklar", slug="ichimliklar"))
    product = storage.create_product(
        ProductCreate(name="Sharbat", slug="sharbat", price=12000, category_id=cat.id, images=["s.jpg"])
    )
    return storage, product


def test_order_number_format():
    number = generate_order_number(datetime(2024, 3, 9, tzinfo=timezone.utc))
    assert number.startswith("240309-")
    assert len(number) == 11


def test_haversine_tashkent_samarkand():
    assert haversine_km(41.2995, 69.2401, 39.6270, 66.9750) == pytest.approx(270, abs=10)
    assert haversine_km(41.0, 69.0, 41.0, 69.0) == 0


@pytest.mark.parametrize(
    "value, price",
    [("Quti|5000", 5000), ("Quti", 0), (None, 0), ("Shisha|abc", 0), ("Katta|2500.5", 2500.5)],
)
def test_container_price(value, price):
    assert container_price(value) == price


def test_summarize_adds_container_to_line(shop):
    storage, product = shop
    cart = CartService(storage)
    cart.add(CartItemCreate(session_id="s", product_id=product.id, quantity=3))
    cart.add(
        CartItemCreate(session_id="s", product_id=product.id, selected_size="1L", selected_container="Shisha|3000")
    )

    summary = summarize(storage.get_cart_items("s"))

    assert summary.item_count == 4
    assert summary.subtotal == 3 * 12000 + 15000


def test_cart_service_errors(shop):
    storage, _ = shop
    cart = CartService(storage)

    with pytest.raises(ValueError):
        cart.get_items("")
    with pytest.raises(LookupError):
        cart.set_quantity("missing", 2)
    with pytest.raises(LookupError):
        cart.remove("missing")


def test_quote_rounds_discount(shop):
    storage, product = shop
    storage.add_to_cart(CartItemCreate(session_id="s", product_id=product.id, quantity=1))
    storage.create_promo_code(PromoCodeCreate(code="P7", discount_percent=7))

    quote = CheckoutService(storage).quote("s", "pickup", "p7")

    assert quote.discount == 840
    assert quote.delivery_price == 0
    assert quote.total == 11160
    assert quote.discount_percent == 7


def test_quote_ignores_unusable_promo(shop):
    storage, product = shop
    storage.add_to_cart(CartItemCreate(session_id="s", product_id=product.id))
    storage.create_promo_code(PromoCodeCreate(code="OFF", discount_percent=50, is_active=False))

    quote = CheckoutService(storage).quote("s", "courier", "OFF")

    assert quote.discount == 0
    assert quote.promo_code is None
    assert quote.total == 12000 + 15000


def test_validate_promo_requires_code(shop):
    storage, _ = shop
    with pytest.raises(ValueError):
        CheckoutService(storage).validate_promo("")


def test_notifier_is_silent_without_token(shop):
    storage, _ = shop
    telegram = FakeTelegram()

    assert NotificationService(storage, telegram, fallback_token=None).send("1", "salom") is False
    assert telegram.messages == []


def test_notifier_falls_back_to_configured_token(shop):
    storage, _ = shop
    telegram = FakeTelegram()

    assert NotificationService(storage, telegram, fallback_token=BOT_TOKEN).send("1", "salom") is True
    assert telegram.messages[0]["token"] == BOT_TOKEN


def test_notifier_status_change_only_for_shipping_and_delivered(shop):
    storage, _ = shop
    telegram = FakeTelegram()
    notifier = NotificationService(storage, telegram, fallback_token=BOT_TOKEN)
    order = storage.create_order(
        OrderCreate(
            customer_name="Aziz",
            customer_phone="+998 90 000 00 00",
            customer_telegram_id="9001",
            delivery_type="courier",
            payment_type="cash",
            subtotal=1000,
            total=1000,
        )
    )

    assert notifier.notify_status_change(order) is False
    order.status = "delivered"
    assert notifier.notify_status_change(order) is True
    assert "YETKAZILDI" in telegram.sent_to("9001")[0]["text"]


def test_telegram_client_posts_to_bot_api(monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json, timeout))
        return FakeResponse(payload={"ok": True, "result": {"message_id": 1}})

    monkeypatch.setattr(telegram_client.requests, "post", fake_post)

    result = TelegramClient(base_url="https://bot.test/", timeout=2).send_message(
        "TOKEN", "42", "salom", reply_markup={"remove_keyboard": True}
    )

    assert result["result"]["message_id"] == 1
    url, payload, timeout = calls[0]
    assert url == "https://bot.test/botTOKEN/sendMessage"
    assert payload == {
        "chat_id": "42",
        "text": "salom",
        "parse_mode": "Markdown",
        "reply_markup": {"remove_keyboard": True},
    }
    assert timeout == 2


def test_telegram_client_retries_then_raises(monkeypatch):
    attempts = []

    def failing_post(url, json=None, timeout=None):
        attempts.append(url)
        return FakeResponse(status_code=502)

    monkeypatch.setattr(telegram_client.requests, "post", failing_post)

    with pytest.raises(requests.HTTPError):
        TelegramClient(base_url="https://bot.test").send_photo("TOKEN", "42", "https://x/p.jpg", "caption")

    assert len(attempts) == 3


def test_telegram_client_recovers_after_transient_error(monkeypatch):
    responses = [requests.ConnectionError("reset"), FakeResponse()]

    def flaky_post(url, json=None, timeout=None):
        outcome = responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(telegram_client.requests, "post", flaky_post)

    assert TelegramClient(base_url="https://bot.test").send_message("TOKEN", "42", "hi") == {"ok": True}


def test_telegram_client_sets_webhook_and_commands(monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json))
        return FakeResponse()

    monkeypatch.setattr(telegram_client.requests, "post", fake_post)
    client = TelegramClient(base_url="https://bot.test")

    client.set_webhook("TOKEN", "https://shop.test/api/telegram-webhook")
    client.set_my_commands("TOKEN", [{"command": "start", "description": "Do'konni ochish"}])

    assert calls == [
        ("https://bot.test/botTOKEN/setWebhook", {"url": "https://shop.test/api/telegram-webhook", "drop_pending_updates": False}),
        ("https://bot.test/botTOKEN/setMyCommands", {"commands": [{"command": "start", "description": "Do'konni ochish"}]}),
    ]
