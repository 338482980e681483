# dokon/services/order_service.py
from typing import List, Optional

from dokon.domain.schemas import (
    AssignmentWithOrder,
    CategoryOut,
    CourierAssignmentCreate,
    CourierAssignmentOut,
    OrderCreate,
    OrderOut,
    OrderUpdate,
)
from dokon.repos.storage import Storage
from dokon.services.notification_service import NotificationService
from dokon.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_CATEGORY = "Noma'lum"


class OrderService:
    """
    Use cases around orders: placement, admin edits and manual
    courier assignment.
    """

    def __init__(self, storage: Storage, notifier: NotificationService):
        self.storage = storage
        self.notifier = notifier

    # =====================================================
    # QUERY
    # =====================================================
    def list_orders(self, status: Optional[str] = None, limit: Optional[int] = None) -> List[OrderOut]:
        return self.storage.get_orders(status=status, limit=limit)

    def get_order(self, order_id: str) -> OrderOut:
        order = self.storage.get_order(order_id)
        if not order:
            raise LookupError("Order not found")
        return order

    def list_assignments(self) -> List[AssignmentWithOrder]:
        result = []
        for assignment in self.storage.get_assignments():
            result.append(
                AssignmentWithOrder(
                    **assignment.model_dump(),
                    order=self.storage.get_order(assignment.order_id),
                    courier=self.storage.get_courier(assignment.courier_id) if assignment.courier_id else None,
                )
            )
        return result

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(self, data: OrderCreate) -> OrderOut:
        if data.order_number and self.storage.get_order_by_number(data.order_number):
            raise RuntimeError(f"Order number {data.order_number} already exists")

        order = self.storage.create_order(data)
        logger.info(f"Order {order.order_number} created ({order.delivery_type}, total {order.total})")

        main_category = self._main_category(order)
        if main_category and main_category.latitude is not None and main_category.longitude is not None:
            order = self.storage.update_order(
                order.id,
                {"latitude": main_category.latitude, "longitude": main_category.longitude},
            )
        else:
            logger.info(f"Order {order.order_number}: main category has no location")

        if order.promo_code:
            promo = self.storage.get_promo_code_by_code(order.promo_code)
            if promo:
                self.storage.increment_promo_usage(promo.id)
                logger.info(f"Promo {promo.code} used by order {order.order_number}")

        category_name = main_category.name if main_category else UNKNOWN_CATEGORY
        self.notifier.notify_new_order(order, category_name)

        if order.delivery_type == "courier":
            self.storage.create_assignment(CourierAssignmentCreate(order_id=order.id, status="pending"))
            couriers = [c for c in self.storage.get_couriers() if c.is_active and c.telegram_id]
            self.notifier.offer_to_couriers(order, couriers, category_name)

        return order

    def update_order(self, order_id: str, data: OrderUpdate) -> OrderOut:
        order = self.storage.update_order(order_id, data)
        if not order:
            raise LookupError("Order not found")
        logger.info(f"Order {order.order_number} updated, status={order.status}")
        return order

    def assign_courier(self, order_id: str, courier_id: str) -> CourierAssignmentOut:
        order = self.storage.get_order(order_id)
        if not order:
            raise LookupError("Order not found")
        courier = self.storage.get_courier(courier_id)
        if not courier:
            raise LookupError("Courier not found")

        self.storage.delete_assignments_for_order(order_id)
        assignment = self.storage.create_assignment(
            CourierAssignmentCreate(order_id=order_id, courier_id=courier_id, status="pending")
        )
        self.storage.update_order(order_id, {"status": "processing"})

        logger.info(f"Order {order.order_number} assigned to courier {courier.name}")
        self.notifier.notify_courier_assigned(order, courier)
        return assignment

    # =====================================================
    # HELPERS
    # =====================================================
    def _main_category(self, order: OrderOut) -> Optional[CategoryOut]:
        """Top-level category of the order, falling back to its products."""
        categories = {c.id: c for c in self.storage.get_categories()}

        category = categories.get(order.category_id) if order.category_id else None
        if category is None:
            for line in order.line_items():
                product = self.storage.get_product(line.product_id)
                if product and product.category_id in categories:
                    category = categories[product.category_id]
                    break

        if category is not None and category.parent_id in categories:
            return categories[category.parent_id]
        return category
