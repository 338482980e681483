# dokon/repos/storage.py
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

from pydantic import BaseModel, ValidationError

from dokon.domain.schemas import (
    AdvertisementCreate,
    AdvertisementOut,
    AdvertisementUpdate,
    CartItemCreate,
    CartItemOut,
    CartItemWithProduct,
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    ChatMessageCreate,
    ChatMessageOut,
    ChatRoomOut,
    CourierAssignmentCreate,
    CourierAssignmentOut,
    CourierAssignmentUpdate,
    CourierCreate,
    CourierOut,
    CourierTransactionOut,
    CourierUpdate,
    CustomerCreate,
    CustomerOut,
    CustomerUpdate,
    DashboardStats,
    DaySales,
    NewsletterCreate,
    NewsletterOut,
    OrderCreate,
    OrderOut,
    OrderUpdate,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    PromoCodeCreate,
    PromoCodeOut,
    PromoCodeUpdate,
    ReviewCreate,
    ReviewOut,
    SiteSettingsOut,
    SiteSettingsUpdate,
    TelegramUserCreate,
    TelegramUserOut,
    TopProduct,
    UserCreate,
    UserOut,
)
from dokon.utils.helpers import as_utc, generate_order_number, utcnow


Patch = BaseModel | Mapping[str, Any]
M = TypeVar("M", bound=BaseModel)

# YYMMDD-RRRR leaves 10k numbers per day
ORDER_NUMBER_ATTEMPTS = 20


def patch_dict(data: Patch) -> Dict[str, Any]:
    """Partial update -> dict with only the fields the caller actually set."""
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


def merged(current: M, data: Patch) -> M:
    """Apply a partial update and re-check the result against the stored shape."""
    fields = current.model_dump()
    fields.update(patch_dict(data))
    try:
        return type(current).model_validate(fields)
    except ValidationError as e:
        raise ValueError(_first_error(e)) from e


def free_order_number(taken: Callable[[str], bool]) -> str:
    """Draw order numbers until one is not taken yet."""
    for _ in range(ORDER_NUMBER_ATTEMPTS):
        candidate = generate_order_number()
        if not taken(candidate):
            return candidate
    raise RuntimeError("Could not allocate a free order number")


def _first_error(error: ValidationError) -> str:
    detail = error.errors()[0]
    field = ".".join(str(part) for part in detail.get("loc", ()))
    return f"{field}: {detail['msg']}" if field else detail["msg"]


class Storage(ABC):
    """
    Uniform storage contract used by every router and service.

    Lookups by id return None when the row is missing, deletes return
    False; neither raises. Uniqueness violations raise ValueError.
    """

    # Users
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserOut]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserOut]: ...

    @abstractmethod
    def create_user(self, data: UserCreate) -> UserOut: ...

    # Products
    @abstractmethod
    def get_products(
        self,
        category_id: Optional[str] = None,
        popular: bool = False,
        new: bool = False,
        limit: Optional[int] = None,
    ) -> List[ProductOut]: ...

    @abstractmethod
    def get_product(self, product_id: str) -> Optional[ProductOut]: ...

    @abstractmethod
    def get_product_by_slug(self, slug: str) -> Optional[ProductOut]: ...

    @abstractmethod
    def create_product(self, data: ProductCreate) -> ProductOut: ...

    @abstractmethod
    def update_product(self, product_id: str, data: ProductUpdate | Patch) -> Optional[ProductOut]: ...

    @abstractmethod
    def delete_product(self, product_id: str) -> bool: ...

    # Categories
    @abstractmethod
    def get_categories(self) -> List[CategoryOut]: ...

    @abstractmethod
    def get_category(self, category_id: str) -> Optional[CategoryOut]: ...

    @abstractmethod
    def get_category_by_slug(self, slug: str) -> Optional[CategoryOut]: ...

    @abstractmethod
    def create_category(self, data: CategoryCreate) -> CategoryOut: ...

    @abstractmethod
    def update_category(self, category_id: str, data: CategoryUpdate | Patch) -> Optional[CategoryOut]: ...

    @abstractmethod
    def delete_category(self, category_id: str) -> bool: ...

    @abstractmethod
    def reorder_categories(self, orders: Iterable[Tuple[str, int]]) -> int: ...

    # Cart
    @abstractmethod
    def get_cart_items(self, session_id: str) -> List[CartItemWithProduct]: ...

    @abstractmethod
    def get_cart_item(self, item_id: str) -> Optional[CartItemOut]: ...

    @abstractmethod
    def add_to_cart(self, data: CartItemCreate) -> CartItemOut: ...

    @abstractmethod
    def update_cart_item(self, item_id: str, quantity: int) -> Optional[CartItemOut]: ...

    @abstractmethod
    def remove_from_cart(self, item_id: str) -> bool: ...

    @abstractmethod
    def clear_cart(self, session_id: str) -> bool: ...

    # Orders
    @abstractmethod
    def get_orders(self, status: Optional[str] = None, limit: Optional[int] = None) -> List[OrderOut]: ...

    @abstractmethod
    def get_order(self, order_id: str) -> Optional[OrderOut]: ...

    @abstractmethod
    def get_order_by_number(self, order_number: str) -> Optional[OrderOut]: ...

    @abstractmethod
    def create_order(self, data: OrderCreate) -> OrderOut: ...

    @abstractmethod
    def update_order(self, order_id: str, data: OrderUpdate | Patch) -> Optional[OrderOut]: ...

    # Customers
    @abstractmethod
    def get_customers(self) -> List[CustomerOut]: ...

    @abstractmethod
    def get_customer(self, customer_id: str) -> Optional[CustomerOut]: ...

    @abstractmethod
    def get_customer_by_phone(self, phone: str) -> Optional[CustomerOut]: ...

    @abstractmethod
    def create_customer(self, data: CustomerCreate) -> CustomerOut: ...

    @abstractmethod
    def update_customer(self, customer_id: str, data: CustomerUpdate | Patch) -> Optional[CustomerOut]: ...

    # Promo codes
    @abstractmethod
    def get_promo_codes(self) -> List[PromoCodeOut]: ...

    @abstractmethod
    def get_promo_code(self, promo_id: str) -> Optional[PromoCodeOut]: ...

    @abstractmethod
    def get_promo_code_by_code(self, code: str) -> Optional[PromoCodeOut]: ...

    @abstractmethod
    def create_promo_code(self, data: PromoCodeCreate) -> PromoCodeOut: ...

    @abstractmethod
    def update_promo_code(self, promo_id: str, data: PromoCodeUpdate | Patch) -> Optional[PromoCodeOut]: ...

    @abstractmethod
    def delete_promo_code(self, promo_id: str) -> bool: ...

    @abstractmethod
    def increment_promo_usage(self, promo_id: str) -> Optional[PromoCodeOut]: ...

    # Reviews
    @abstractmethod
    def get_reviews(self, product_id: str) -> List[ReviewOut]: ...

    @abstractmethod
    def create_review(self, data: ReviewCreate) -> ReviewOut: ...

    # Advertisements
    @abstractmethod
    def get_advertisements(self, active_only: bool = True) -> List[AdvertisementOut]: ...

    @abstractmethod
    def get_advertisement(self, ad_id: str) -> Optional[AdvertisementOut]: ...

    @abstractmethod
    def create_advertisement(self, data: AdvertisementCreate) -> AdvertisementOut: ...

    @abstractmethod
    def update_advertisement(self, ad_id: str, data: AdvertisementUpdate | Patch) -> Optional[AdvertisementOut]: ...

    @abstractmethod
    def delete_advertisement(self, ad_id: str) -> bool: ...

    # Newsletters
    @abstractmethod
    def get_newsletters(self) -> List[NewsletterOut]: ...

    @abstractmethod
    def create_newsletter(self, data: NewsletterCreate) -> NewsletterOut: ...

    # Settings
    @abstractmethod
    def get_settings(self) -> SiteSettingsOut: ...

    @abstractmethod
    def update_settings(self, data: SiteSettingsUpdate | Patch) -> SiteSettingsOut: ...

    # Couriers
    @abstractmethod
    def get_couriers(self, category_id: Optional[str] = None) -> List[CourierOut]: ...

    @abstractmethod
    def get_courier(self, courier_id: str) -> Optional[CourierOut]: ...

    @abstractmethod
    def get_courier_by_telegram_id(self, telegram_id: str) -> Optional[CourierOut]: ...

    @abstractmethod
    def get_courier_by_card_number(self, card_number: str) -> Optional[CourierOut]: ...

    @abstractmethod
    def create_courier(self, data: CourierCreate) -> CourierOut: ...

    @abstractmethod
    def update_courier(self, courier_id: str, data: CourierUpdate | Patch) -> Optional[CourierOut]: ...

    @abstractmethod
    def delete_courier(self, courier_id: str) -> bool: ...

    @abstractmethod
    def credit_courier_balance(
        self, courier_id: str, amount: float, tx_type: str, description: str = ""
    ) -> Optional[CourierOut]: ...

    @abstractmethod
    def debit_courier_balance(
        self, courier_id: str, amount: float, tx_type: str, description: str = ""
    ) -> Optional[CourierOut]: ...

    @abstractmethod
    def charge_courier_balance(
        self, courier_id: str, amount: float, tx_type: str, description: str = ""
    ) -> Optional[CourierOut]:
        """Debit only if the balance covers the amount; check and write are one step. None otherwise."""

    @abstractmethod
    def get_courier_transactions(self, courier_id: Optional[str] = None) -> List[CourierTransactionOut]: ...

    # Courier assignments
    @abstractmethod
    def create_assignment(self, data: CourierAssignmentCreate) -> CourierAssignmentOut: ...

    @abstractmethod
    def get_assignments(self) -> List[CourierAssignmentOut]: ...

    @abstractmethod
    def get_assignment(self, order_id: str) -> Optional[CourierAssignmentOut]: ...

    @abstractmethod
    def get_assignment_by_id(self, assignment_id: str) -> Optional[CourierAssignmentOut]: ...

    @abstractmethod
    def update_assignment(
        self, assignment_id: str, data: CourierAssignmentUpdate | Patch
    ) -> Optional[CourierAssignmentOut]: ...

    @abstractmethod
    def claim_assignment(
        self, assignment_id: str, courier_id: str, distance: Optional[float] = None
    ) -> Optional[CourierAssignmentOut]:
        """
        Set courier only if the assignment is still pending and either unclaimed
        or addressed to this very courier. None means somebody else won.
        """

    @abstractmethod
    def reject_assignment(self, assignment_id: str, courier_id: str) -> Optional[CourierAssignmentOut]:
        """
        Mark rejected under the same condition claim_assignment uses: still
        pending, and unclaimed or addressed to this courier. None otherwise.
        """

    @abstractmethod
    def delete_assignments_for_order(self, order_id: str) -> int: ...

    # Telegram users
    @abstractmethod
    def get_telegram_users(self) -> List[TelegramUserOut]: ...

    @abstractmethod
    def create_telegram_user(self, data: TelegramUserCreate) -> TelegramUserOut: ...

    # Support chat
    @abstractmethod
    def create_chat_message(self, data: ChatMessageCreate) -> ChatMessageOut: ...

    @abstractmethod
    def get_chat_messages(self, customer_phone: Optional[str] = None) -> List[ChatMessageOut]:
        """Oldest first; every conversation when no phone is given."""

    @abstractmethod
    def mark_chat_read(self, customer_phone: str) -> int:
        """Flag the customer's unread messages as read, returns how many changed."""

    def get_chat_rooms(self) -> List[ChatRoomOut]:
        """One room per customer phone, the most recently active first."""
        threads: Dict[str, List[ChatMessageOut]] = defaultdict(list)
        for message in self.get_chat_messages():
            threads[message.customer_phone].append(message)

        rooms = []
        for phone, messages in threads.items():
            last = messages[-1]
            unread = sum(1 for m in messages if m.sender_type == "customer" and not m.is_read)
            rooms.append(
                ChatRoomOut(customer_phone=phone, customer_name=last.customer_name, last_message=last, unread_count=unread)
            )
        rooms.sort(key=lambda room: as_utc(room.last_message.created_at), reverse=True)
        return rooms

    # Dashboard
    def get_dashboard_stats(self) -> DashboardStats:
        """
        Aggregate over orders, products and customers.

        Revenue and sales skip cancelled orders. Top products are ranked by
        units sold according to the order line snapshots.
        """
        orders = self.get_orders()
        products = {p.id: p for p in self.get_products()}
        customers = self.get_customers()

        counted = [o for o in orders if o.status != "cancelled"]
        total_revenue = sum(o.total for o in counted)
        new_orders_count = sum(1 for o in orders if o.status == "new")

        sales: Dict[str, int] = defaultdict(int)
        for order in counted:
            for line in order.line_items():
                sales[line.product_id] += line.quantity

        ranked = sorted(
            ((pid, qty) for pid, qty in sales.items() if pid in products and qty > 0),
            key=lambda pair: (-pair[1], products[pair[0]].name),
        )
        top_products = [TopProduct(product=products[pid], sales_count=qty) for pid, qty in ranked[:5]]

        today = utcnow().date()
        days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
        per_day = {day: 0.0 for day in days}
        for order in counted:
            created = as_utc(order.created_at).date()
            if created in per_day:
                per_day[created] += order.total

        return DashboardStats(
            total_orders=len(orders),
            total_revenue=total_revenue,
            total_customers=len(customers),
            total_products=len(products),
            new_orders_count=new_orders_count,
            recent_orders=orders[:5],
            top_products=top_products,
            sales_by_day=[DaySales(date=day.isoformat(), total=per_day[day]) for day in days],
        )
