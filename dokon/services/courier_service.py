# dokon/services/courier_service.py
from dokon.domain.schemas import (
    AssignmentWithOrder,
    CourierCreate,
    CourierDashboardOut,
    CourierOut,
    CourierUpdate,
)
from dokon.repos.storage import Storage
from dokon.services.notification_service import NotificationService
from dokon.utils.helpers import haversine_km
from dokon.utils.logging import get_logger
from dokon.utils.settings import COURIER_DELIVERY_FEE

logger = get_logger(__name__)


class CourierService:
    """
    Courier side of delivery: the dashboard, claiming and rejecting
    orders, status updates and the simulated balance.

    Accepting is a race between couriers; storage.claim_assignment is
    the only write that decides the winner.
    """

    def __init__(self, storage: Storage, notifier: NotificationService, delivery_fee: float = COURIER_DELIVERY_FEE):
        self.storage = storage
        self.notifier = notifier
        self.delivery_fee = delivery_fee

    def _courier_by_telegram(self, telegram_id: str) -> CourierOut:
        courier = self.storage.get_courier_by_telegram_id(telegram_id)
        if not courier:
            raise LookupError("Courier not found")
        return courier

    # =====================================================
    # ADMIN
    # =====================================================
    def get(self, courier_id: str) -> CourierOut:
        courier = self.storage.get_courier(courier_id)
        if not courier:
            raise LookupError("Courier not found")
        return courier

    def create(self, data: CourierCreate) -> CourierOut:
        courier = self.storage.create_courier(data)
        logger.info(f"Courier {courier.name} registered (telegram {courier.telegram_id})")
        return courier

    def update(self, courier_id: str, data: CourierUpdate) -> CourierOut:
        courier = self.storage.update_courier(courier_id, data)
        if not courier:
            raise LookupError("Courier not found")
        return courier

    def adjust_balance(self, courier_id: str, amount: float, direction: str) -> CourierOut:
        if amount <= 0:
            raise ValueError("Amount must be greater than 0")

        if direction == "credit":
            courier = self.storage.credit_courier_balance(courier_id, amount, "admin_credit", "Admin tomonidan to'ldirildi")
        elif direction == "debit":
            courier = self.storage.debit_courier_balance(courier_id, amount, "admin_debit", "Admin tomonidan yechildi")
        else:
            raise ValueError("type must be credit or debit")

        if not courier:
            raise LookupError("Courier not found")
        logger.info(f"Courier {courier.name} balance {direction} {amount:g} -> {courier.balance:g}")
        return courier

    # =====================================================
    # COURIER APP
    # =====================================================
    def dashboard(self, telegram_id: str) -> CourierDashboardOut:
        courier = self._courier_by_telegram(telegram_id)

        assignments = []
        for a in self.storage.get_assignments():
            open_offer = a.status == "pending" and a.courier_id is None
            if not (open_offer or a.courier_id == courier.id):
                continue

            order = self.storage.get_order(a.order_id)
            distance = a.distance
            if (
                distance is None
                and order is not None
                and None not in (order.latitude, order.longitude, courier.latitude, courier.longitude)
            ):
                distance = round(haversine_km(courier.latitude, courier.longitude, order.latitude, order.longitude), 2)

            fields = a.model_dump()
            fields["distance"] = distance
            assignments.append(AssignmentWithOrder(**fields, order=order))

        return CourierDashboardOut(courier=courier, assignments=assignments)

    def accept(self, order_id: str, assignment_id: str, telegram_id: str):
        courier = self._courier_by_telegram(telegram_id)
        if not courier.is_active:
            raise PermissionError("Courier is not active")

        order = self.storage.get_order(order_id)
        if not order:
            raise LookupError("Order not found")
        assignment = self.storage.get_assignment_by_id(assignment_id)
        if not assignment or assignment.order_id != order_id:
            raise LookupError("Assignment not found")

        if courier.balance < self.delivery_fee:
            raise ValueError("Insufficient balance")

        distance = None
        if None not in (order.latitude, order.longitude, courier.latitude, courier.longitude):
            distance = round(haversine_km(courier.latitude, courier.longitude, order.latitude, order.longitude), 2)

        claimed = self.storage.claim_assignment(assignment_id, courier.id, distance)
        if not claimed:
            raise RuntimeError("Order already taken by another courier")

        charged = self.storage.charge_courier_balance(
            courier.id,
            self.delivery_fee,
            "order_debit",
            f"#{order.order_number} yetkazish haqi",
        )
        if not charged:
            # balance went below the fee between the check and the claim
            self.storage.update_assignment(
                assignment_id,
                {"courier_id": assignment.courier_id, "status": "pending", "distance": assignment.distance},
            )
            logger.warning(f"Courier {courier.name} could not pay for order {order.order_number}, offer reopened")
            raise ValueError("Insufficient balance")

        order = self.storage.update_order(order_id, {"status": "processing"})
        logger.info(f"Courier {courier.name} accepted order {order.order_number}")

        self.notifier.notify_order_accepted(order, courier, self.delivery_fee)
        return claimed

    def reject(self, order_id: str, assignment_id: str, telegram_id: str):
        courier = self._courier_by_telegram(telegram_id)
        assignment = self.storage.get_assignment_by_id(assignment_id)
        if not assignment or assignment.order_id != order_id:
            raise LookupError("Assignment not found")

        rejected = self.storage.reject_assignment(assignment_id, courier.id)
        if not rejected:
            raise RuntimeError("Assignment is no longer open to this courier")

        # order keeps its status, "rejected" is an assignment state only
        order = self.storage.get_order(order_id)
        if order:
            self.notifier.notify_order_rejected(order, courier)
        logger.info(f"Courier {courier.name} rejected assignment {assignment_id}")
        return rejected

    def update_status(self, order_id: str, status: str):
        order = self.storage.update_order(order_id, {"status": status})
        if not order:
            raise LookupError("Order not found")

        assignment = self.storage.get_assignment(order_id)
        if assignment and status in ("shipping", "delivered"):
            self.storage.update_assignment(assignment.id, {"status": status})

        logger.info(f"Order {order.order_number} -> {status}")
        self.notifier.notify_status_change(order)
        return order

    def transfer(self, from_telegram_id: str, to_card_number: str, amount: float):
        if amount <= 0:
            raise ValueError("Amount must be greater than 0")

        sender = self._courier_by_telegram(from_telegram_id)
        if sender.balance < amount:
            raise ValueError("Insufficient balance")

        receiver = self.storage.get_courier_by_card_number(to_card_number)
        if not receiver:
            raise LookupError("Receiver courier not found")
        if receiver.id == sender.id:
            raise ValueError("Cannot transfer to yourself")

        charged = self.storage.charge_courier_balance(
            sender.id,
            amount,
            "transfer_out",
            f"{receiver.name} - {receiver.card_number} ga {amount:g} so'm o'tkazildi",
        )
        if not charged:
            raise ValueError("Insufficient balance")
        sender = charged
        receiver = self.storage.credit_courier_balance(
            receiver.id,
            amount,
            "transfer_in",
            f"{sender.name} - {sender.card_number} dan {amount:g} so'm qabul qilindi",
        )
        logger.info(f"Transfer {amount:g} from {sender.name} to {receiver.name}")

        return {
            "success": True,
            "message": f"O'tkazildi: {receiver.name} ga {amount:g} so'm",
            "senderBalance": sender.balance,
            "receiverBalance": receiver.balance,
        }

    def update_location(self, telegram_id: str, latitude: float, longitude: float) -> CourierOut:
        courier = self._courier_by_telegram(telegram_id)
        updated = self.storage.update_courier(courier.id, {"latitude": latitude, "longitude": longitude})
        logger.info(f"Courier {courier.name} location updated ({latitude}, {longitude})")
        return updated

