# dokon/services/cart_service.py
from typing import List

from dokon.domain.schemas import CartItemCreate, CartItemWithProduct, CartSummaryOut
from dokon.repos.storage import Storage
from dokon.utils.helpers import container_price
from dokon.utils.logging import get_logger

logger = get_logger(__name__)


def line_total(item: CartItemWithProduct) -> float:
    return (item.product.price + container_price(item.selected_container)) * item.quantity


def summarize(items: List[CartItemWithProduct]) -> CartSummaryOut:
    """Item count and subtotal, derived from the rows on every read."""
    return CartSummaryOut(
        items=items,
        item_count=sum(i.quantity for i in items),
        subtotal=sum(line_total(i) for i in items),
    )


class CartService:
    def __init__(self, storage: Storage):
        self.storage = storage

    def get_items(self, session_id: str) -> List[CartItemWithProduct]:
        if not session_id:
            raise ValueError("Session ID required")
        return self.storage.get_cart_items(session_id)

    def summary(self, session_id: str) -> CartSummaryOut:
        return summarize(self.get_items(session_id))

    def add(self, data: CartItemCreate):
        item = self.storage.add_to_cart(data)
        logger.info(f"Cart {data.session_id}: product {data.product_id} -> quantity {item.quantity}")
        return item

    def set_quantity(self, item_id: str, quantity: int):
        item = self.storage.update_cart_item(item_id, quantity)
        if not item:
            raise LookupError("Cart item not found")
        return item

    def remove(self, item_id: str):
        if not self.storage.remove_from_cart(item_id):
            raise LookupError("Cart item not found")

    def clear(self, session_id: str):
        self.storage.clear_cart(session_id)
        logger.info(f"Cart {session_id} cleared")
