# dokon/services/checkout_service.py
from typing import Optional

from dokon.domain.schemas import CheckoutQuoteOut, PromoValidateOut
from dokon.repos.storage import Storage
from dokon.services.cart_service import summarize


class CheckoutService:
    def __init__(self, storage: Storage):
        self.storage = storage

    def validate_promo(self, code: Optional[str]) -> PromoValidateOut:
        if not code:
            raise ValueError("Code required")

        promo = self.storage.get_promo_code_by_code(code)
        if not promo:
            return PromoValidateOut(valid=False, error="Invalid code")
        if not promo.is_active:
            return PromoValidateOut(valid=False, error="Code is not active")
        if not promo.is_usable():
            return PromoValidateOut(valid=False, error="Code usage limit reached")

        return PromoValidateOut(valid=True, discount_percent=promo.discount_percent, code=promo.code)

    def delivery_price(self, subtotal: float, delivery_type: str) -> float:
        if delivery_type == "pickup":
            return 0.0
        settings = self.storage.get_settings()
        threshold = settings.free_delivery_threshold
        if threshold is not None and subtotal >= threshold:
            return 0.0
        return settings.delivery_price

    def quote(self, session_id: str, delivery_type: str = "courier", promo_code: Optional[str] = None) -> CheckoutQuoteOut:
        cart = summarize(self.storage.get_cart_items(session_id))
        if not cart.items:
            raise ValueError("Cart is empty")

        delivery = self.delivery_price(cart.subtotal, delivery_type)

        percent = 0
        applied = None
        if promo_code:
            check = self.validate_promo(promo_code)
            if check.valid:
                percent = check.discount_percent
                applied = check.code

        discount = float(round(cart.subtotal * percent / 100))
        return CheckoutQuoteOut(
            subtotal=cart.subtotal,
            delivery_price=delivery,
            discount=discount,
            discount_percent=percent,
            total=cart.subtotal + delivery - discount,
            promo_code=applied,
        )
