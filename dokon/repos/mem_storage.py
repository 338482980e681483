# dokon/repos/mem_storage.py
import functools
import threading
from typing import Dict, Iterable, List, Optional, Tuple, TypeVar

from pydantic import BaseModel

from dokon.domain.schemas import (
    AdvertisementCreate,
    AdvertisementOut,
    CartItemCreate,
    CartItemOut,
    CartItemWithProduct,
    CategoryCreate,
    CategoryOut,
    ChatMessageCreate,
    ChatMessageOut,
    CourierAssignmentCreate,
    CourierAssignmentOut,
    CourierCreate,
    CourierOut,
    CourierTransactionOut,
    CustomerCreate,
    CustomerOut,
    NewsletterCreate,
    NewsletterOut,
    OrderCreate,
    OrderOut,
    ProductCreate,
    ProductOut,
    PromoCodeCreate,
    PromoCodeOut,
    ReviewCreate,
    ReviewOut,
    SiteSettingsOut,
    TelegramUserCreate,
    TelegramUserOut,
    UserCreate,
    UserOut,
)
from dokon.repos.storage import Patch, Storage, free_order_number, merged, patch_dict
from dokon.utils.helpers import new_id, utcnow
from dokon.utils.logging import get_logger
from dokon.utils.settings import DEFAULT_COURIER_BALANCE

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def synchronized(method):
    """Every public call runs under the store lock (handlers run on a threadpool)."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


def _copy(item: Optional[M]) -> Optional[M]:
    return item.model_copy(deep=True) if item is not None else None


def _same_line(item: CartItemOut, data: CartItemCreate) -> bool:
    # container is not part of the key; a missing variant counts as ""
    return (
        item.session_id == data.session_id
        and item.product_id == data.product_id
        and (item.selected_color or "") == (data.selected_color or "")
        and (item.selected_size or "") == (data.selected_size or "")
    )


def _newest_first(items: Iterable[M], attr: str = "created_at") -> List[M]:
    # reversed first so that equal timestamps keep "last inserted first"
    return sorted(list(items)[::-1], key=lambda i: getattr(i, attr), reverse=True)


class MemStorage(Storage):
    """
    Reference implementation: one dict per entity keyed by id,
    filters are linear scans.
    """

    def __init__(
        self,
        settings: Optional[SiteSettingsOut] = None,
        default_courier_balance: float = DEFAULT_COURIER_BALANCE,
    ):
        self._lock = threading.RLock()
        self.default_courier_balance = default_courier_balance

        self.users: Dict[str, UserOut] = {}
        self.products: Dict[str, ProductOut] = {}
        self.categories: Dict[str, CategoryOut] = {}
        self.cart_items: Dict[str, CartItemOut] = {}
        self.orders: Dict[str, OrderOut] = {}
        self.customers: Dict[str, CustomerOut] = {}
        self.promo_codes: Dict[str, PromoCodeOut] = {}
        self.reviews: Dict[str, ReviewOut] = {}
        self.advertisements: Dict[str, AdvertisementOut] = {}
        self.newsletters: Dict[str, NewsletterOut] = {}
        self.couriers: Dict[str, CourierOut] = {}
        self.assignments: Dict[str, CourierAssignmentOut] = {}
        self.courier_transactions: Dict[str, CourierTransactionOut] = {}
        self.telegram_users: Dict[str, TelegramUserOut] = {}
        self.chat_messages: Dict[str, ChatMessageOut] = {}
        self.settings = settings or SiteSettingsOut()

    # generic helpers
    @staticmethod
    def _merge(current: M, data: Patch) -> M:
        return merged(current, data)

    @staticmethod
    def _find(collection: Dict[str, M], **match) -> Optional[M]:
        for item in collection.values():
            if all(getattr(item, k) == v for k, v in match.items()):
                return item
        return None

    def _ensure_unique(self, collection: Dict[str, M], field: str, value, exclude_id: Optional[str] = None):
        if value is None:
            return
        existing = self._find(collection, **{field: value})
        if existing is not None and existing.id != exclude_id:
            raise ValueError(f"{field} '{value}' already exists")

    # Users
    @synchronized
    def get_user(self, user_id):
        return _copy(self.users.get(user_id))

    @synchronized
    def get_user_by_username(self, username):
        return _copy(self._find(self.users, username=username))

    @synchronized
    def create_user(self, data: UserCreate):
        self._ensure_unique(self.users, "username", data.username)
        user = UserOut(id=new_id(), **data.model_dump())
        self.users[user.id] = user
        return _copy(user)

    # Products
    @synchronized
    def get_products(self, category_id=None, popular=False, new=False, limit=None):
        products = list(self.products.values())

        if category_id:
            products = [p for p in products if p.category_id == category_id]
        if popular:
            products = [p for p in products if p.is_popular]
        if new:
            products = [p for p in products if p.is_new]

        products = _newest_first(products)
        if limit:
            products = products[:limit]
        return [_copy(p) for p in products]

    @synchronized
    def get_product(self, product_id):
        return _copy(self.products.get(product_id))

    @synchronized
    def get_product_by_slug(self, slug):
        return _copy(self._find(self.products, slug=slug))

    @synchronized
    def create_product(self, data: ProductCreate):
        self._ensure_unique(self.products, "slug", data.slug)
        product = ProductOut(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.products[product.id] = product
        return _copy(product)

    @synchronized
    def update_product(self, product_id, data):
        product = self.products.get(product_id)
        if not product:
            return None
        patch = patch_dict(data)
        self._ensure_unique(self.products, "slug", patch.get("slug"), exclude_id=product_id)
        updated = self._merge(product, patch)
        self.products[product_id] = updated
        return _copy(updated)

    @synchronized
    def delete_product(self, product_id):
        return self.products.pop(product_id, None) is not None

    # Categories
    @synchronized
    def get_categories(self):
        return [_copy(c) for c in self.categories.values()]

    @synchronized
    def get_category(self, category_id):
        return _copy(self.categories.get(category_id))

    @synchronized
    def get_category_by_slug(self, slug):
        return _copy(self._find(self.categories, slug=slug))

    @synchronized
    def create_category(self, data: CategoryCreate):
        self._ensure_unique(self.categories, "slug", data.slug)
        category = CategoryOut(id=new_id(), **data.model_dump())
        self.categories[category.id] = category
        return _copy(category)

    @synchronized
    def update_category(self, category_id, data):
        category = self.categories.get(category_id)
        if not category:
            return None
        patch = patch_dict(data)
        self._ensure_unique(self.categories, "slug", patch.get("slug"), exclude_id=category_id)
        updated = self._merge(category, patch)
        self.categories[category_id] = updated
        return _copy(updated)

    @synchronized
    def delete_category(self, category_id):
        return self.categories.pop(category_id, None) is not None

    @synchronized
    def reorder_categories(self, orders: Iterable[Tuple[str, int]]):
        changed = 0
        for category_id, order in orders:
            category = self.categories.get(category_id)
            if category:
                self.categories[category_id] = self._merge(category, {"order": order})
                changed += 1
        return changed

    # Cart
    @synchronized
    def get_cart_items(self, session_id):
        result = []
        for item in self.cart_items.values():
            if item.session_id != session_id:
                continue
            product = self.products.get(item.product_id)
            # stale rows (product deleted) are skipped, not an error
            if product is None:
                continue
            result.append(CartItemWithProduct(**item.model_dump(), product=product.model_copy(deep=True)))
        return result

    @synchronized
    def get_cart_item(self, item_id):
        return _copy(self.cart_items.get(item_id))

    @synchronized
    def add_to_cart(self, data: CartItemCreate):
        existing = next((i for i in self.cart_items.values() if _same_line(i, data)), None)
        if existing:
            existing.quantity += data.quantity
            return _copy(existing)

        item = CartItemOut(id=new_id(), **data.model_dump())
        self.cart_items[item.id] = item
        return _copy(item)

    @synchronized
    def update_cart_item(self, item_id, quantity):
        item = self.cart_items.get(item_id)
        if not item:
            return None
        item.quantity = quantity
        return _copy(item)

    @synchronized
    def remove_from_cart(self, item_id):
        return self.cart_items.pop(item_id, None) is not None

    @synchronized
    def clear_cart(self, session_id):
        stale = [item_id for item_id, item in self.cart_items.items() if item.session_id == session_id]
        for item_id in stale:
            del self.cart_items[item_id]
        return True

    # Orders
    @synchronized
    def get_orders(self, status=None, limit=None):
        orders = list(self.orders.values())
        if status:
            orders = [o for o in orders if o.status == status]
        orders = _newest_first(orders)
        if limit:
            orders = orders[:limit]
        return [_copy(o) for o in orders]

    @synchronized
    def get_order(self, order_id):
        return _copy(self.orders.get(order_id))

    @synchronized
    def get_order_by_number(self, order_number):
        return _copy(self._find(self.orders, order_number=order_number))

    @synchronized
    def create_order(self, data: OrderCreate):
        fields = data.model_dump()
        if not fields.get("order_number"):
            fields["order_number"] = free_order_number(
                lambda number: self._find(self.orders, order_number=number) is not None
            )
        self._ensure_unique(self.orders, "order_number", fields["order_number"])

        order = OrderOut(id=new_id(), created_at=utcnow(), **fields)
        self.orders[order.id] = order

        # customer upsert by phone, name is never overwritten
        customer = self._find(self.customers, phone=order.customer_phone)
        if customer:
            self.customers[customer.id] = self._merge(
                customer,
                {
                    "total_orders": customer.total_orders + 1,
                    "total_spent": customer.total_spent + order.total,
                    "address": order.customer_address,
                },
            )
        else:
            self._insert_customer(
                CustomerCreate(
                    name=order.customer_name,
                    phone=order.customer_phone,
                    address=order.customer_address,
                    total_orders=1,
                    total_spent=order.total,
                )
            )

        logger.info(f"Order {order.order_number} stored, customer {order.customer_phone} upserted")
        return _copy(order)

    @synchronized
    def update_order(self, order_id, data):
        order = self.orders.get(order_id)
        if not order:
            return None
        updated = self._merge(order, data)
        self.orders[order_id] = updated
        return _copy(updated)

    # Customers
    @synchronized
    def get_customers(self):
        return [_copy(c) for c in _newest_first(self.customers.values())]

    @synchronized
    def get_customer(self, customer_id):
        return _copy(self.customers.get(customer_id))

    @synchronized
    def get_customer_by_phone(self, phone):
        return _copy(self._find(self.customers, phone=phone))

    def _insert_customer(self, data: CustomerCreate) -> CustomerOut:
        self._ensure_unique(self.customers, "phone", data.phone)
        customer = CustomerOut(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.customers[customer.id] = customer
        return customer

    @synchronized
    def create_customer(self, data: CustomerCreate):
        return _copy(self._insert_customer(data))

    @synchronized
    def update_customer(self, customer_id, data):
        customer = self.customers.get(customer_id)
        if not customer:
            return None
        updated = self._merge(customer, data)
        self.customers[customer_id] = updated
        return _copy(updated)

    # Promo codes
    def _find_code(self, code: str) -> Optional[PromoCodeOut]:
        wanted = code.lower()
        for promo in self.promo_codes.values():
            if promo.code.lower() == wanted:
                return promo
        return None

    @synchronized
    def get_promo_codes(self):
        return [_copy(p) for p in self.promo_codes.values()]

    @synchronized
    def get_promo_code(self, promo_id):
        return _copy(self.promo_codes.get(promo_id))

    @synchronized
    def get_promo_code_by_code(self, code):
        return _copy(self._find_code(code))

    @synchronized
    def create_promo_code(self, data: PromoCodeCreate):
        if self._find_code(data.code):
            raise ValueError(f"code '{data.code}' already exists")
        fields = data.model_dump()
        fields["usage_count"] = 0
        promo = PromoCodeOut(id=new_id(), **fields)
        self.promo_codes[promo.id] = promo
        return _copy(promo)

    @synchronized
    def update_promo_code(self, promo_id, data):
        promo = self.promo_codes.get(promo_id)
        if not promo:
            return None
        patch = patch_dict(data)
        if patch.get("code"):
            clash = self._find_code(patch["code"])
            if clash and clash.id != promo_id:
                raise ValueError(f"code '{patch['code']}' already exists")
        updated = self._merge(promo, patch)
        self.promo_codes[promo_id] = updated
        return _copy(updated)

    @synchronized
    def delete_promo_code(self, promo_id):
        return self.promo_codes.pop(promo_id, None) is not None

    @synchronized
    def increment_promo_usage(self, promo_id):
        promo = self.promo_codes.get(promo_id)
        if not promo:
            return None
        promo.usage_count += 1
        return _copy(promo)

    # Reviews
    @synchronized
    def get_reviews(self, product_id):
        return [_copy(r) for r in _newest_first(r for r in self.reviews.values() if r.product_id == product_id)]

    @synchronized
    def create_review(self, data: ReviewCreate):
        review = ReviewOut(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.reviews[review.id] = review

        ratings = [r.rating for r in self.reviews.values() if r.product_id == review.product_id]
        product = self.products.get(review.product_id)
        if product:
            self.products[product.id] = self._merge(
                product,
                {"rating": sum(ratings) / len(ratings), "review_count": len(ratings)},
            )
        return _copy(review)

    # Advertisements
    @synchronized
    def get_advertisements(self, active_only=True):
        ads = [a for a in self.advertisements.values() if a.is_active or not active_only]
        return [_copy(a) for a in _newest_first(ads)]

    @synchronized
    def get_advertisement(self, ad_id):
        return _copy(self.advertisements.get(ad_id))

    @synchronized
    def create_advertisement(self, data: AdvertisementCreate):
        ad = AdvertisementOut(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.advertisements[ad.id] = ad
        return _copy(ad)

    @synchronized
    def update_advertisement(self, ad_id, data):
        ad = self.advertisements.get(ad_id)
        if not ad:
            return None
        updated = self._merge(ad, data)
        self.advertisements[ad_id] = updated
        return _copy(updated)

    @synchronized
    def delete_advertisement(self, ad_id):
        return self.advertisements.pop(ad_id, None) is not None

    # Newsletters
    @synchronized
    def get_newsletters(self):
        return [_copy(n) for n in _newest_first(self.newsletters.values())]

    @synchronized
    def create_newsletter(self, data: NewsletterCreate):
        newsletter = NewsletterOut(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.newsletters[newsletter.id] = newsletter
        return _copy(newsletter)

    # Settings
    @synchronized
    def get_settings(self):
        return _copy(self.settings)

    @synchronized
    def update_settings(self, data):
        patch = patch_dict(data)
        patch.pop("id", None)
        self.settings = self._merge(self.settings, patch)
        return _copy(self.settings)

    # Couriers
    @synchronized
    def get_couriers(self, category_id=None):
        couriers = list(self.couriers.values())
        if category_id:
            couriers = [c for c in couriers if c.category_id == category_id]
        return [_copy(c) for c in couriers]

    @synchronized
    def get_courier(self, courier_id):
        return _copy(self.couriers.get(courier_id))

    @synchronized
    def get_courier_by_telegram_id(self, telegram_id):
        return _copy(self._find(self.couriers, telegram_id=telegram_id))

    @synchronized
    def get_courier_by_card_number(self, card_number):
        return _copy(self._find(self.couriers, card_number=card_number))

    @synchronized
    def create_courier(self, data: CourierCreate):
        self._ensure_unique(self.couriers, "telegram_id", data.telegram_id)
        fields = data.model_dump()
        if fields.get("balance") is None:
            fields["balance"] = self.default_courier_balance
        courier = CourierOut(id=new_id(), created_at=utcnow(), **fields)
        self.couriers[courier.id] = courier
        return _copy(courier)

    @synchronized
    def update_courier(self, courier_id, data):
        courier = self.couriers.get(courier_id)
        if not courier:
            return None
        patch = patch_dict(data)
        self._ensure_unique(self.couriers, "telegram_id", patch.get("telegram_id"), exclude_id=courier_id)
        updated = self._merge(courier, patch)
        self.couriers[courier_id] = updated
        return _copy(updated)

    @synchronized
    def delete_courier(self, courier_id):
        return self.couriers.pop(courier_id, None) is not None

    def _change_balance(self, courier_id, delta, tx_type, description):
        courier = self.couriers.get(courier_id)
        if not courier:
            return None
        courier.balance += delta
        tx = CourierTransactionOut(
            id=new_id(),
            courier_id=courier_id,
            amount=delta,
            type=tx_type,
            description=description,
            created_at=utcnow(),
        )
        self.courier_transactions[tx.id] = tx
        return _copy(courier)

    @synchronized
    def credit_courier_balance(self, courier_id, amount, tx_type, description=""):
        return self._change_balance(courier_id, abs(amount), tx_type, description)

    @synchronized
    def debit_courier_balance(self, courier_id, amount, tx_type, description=""):
        return self._change_balance(courier_id, -abs(amount), tx_type, description)

    @synchronized
    def charge_courier_balance(self, courier_id, amount, tx_type, description=""):
        courier = self.couriers.get(courier_id)
        if not courier or courier.balance < abs(amount):
            return None
        return self._change_balance(courier_id, -abs(amount), tx_type, description)

    @synchronized
    def get_courier_transactions(self, courier_id=None):
        txs = [t for t in self.courier_transactions.values() if courier_id is None or t.courier_id == courier_id]
        return [_copy(t) for t in _newest_first(txs)]

    # Courier assignments
    @synchronized
    def create_assignment(self, data: CourierAssignmentCreate):
        assignment = CourierAssignmentOut(id=new_id(), assigned_at=utcnow(), **data.model_dump())
        self.assignments[assignment.id] = assignment
        return _copy(assignment)

    @synchronized
    def get_assignments(self):
        return [_copy(a) for a in _newest_first(self.assignments.values(), attr="assigned_at")]

    @synchronized
    def get_assignment(self, order_id):
        matching = [a for a in self.assignments.values() if a.order_id == order_id]
        if not matching:
            return None
        return _copy(_newest_first(matching, attr="assigned_at")[0])

    @synchronized
    def get_assignment_by_id(self, assignment_id):
        return _copy(self.assignments.get(assignment_id))

    @synchronized
    def update_assignment(self, assignment_id, data):
        assignment = self.assignments.get(assignment_id)
        if not assignment:
            return None
        updated = self._merge(assignment, data)
        self.assignments[assignment_id] = updated
        return _copy(updated)

    @synchronized
    def claim_assignment(self, assignment_id, courier_id, distance=None):
        assignment = self.assignments.get(assignment_id)
        if not assignment or assignment.status != "pending":
            return None
        if assignment.courier_id not in (None, courier_id):
            return None
        claimed = self._merge(
            assignment,
            {"courier_id": courier_id, "status": "accepted", "distance": distance},
        )
        self.assignments[assignment_id] = claimed
        return _copy(claimed)

    @synchronized
    def reject_assignment(self, assignment_id, courier_id):
        assignment = self.assignments.get(assignment_id)
        if not assignment or assignment.status != "pending":
            return None
        if assignment.courier_id not in (None, courier_id):
            return None
        rejected = self._merge(assignment, {"status": "rejected"})
        self.assignments[assignment_id] = rejected
        return _copy(rejected)

    @synchronized
    def delete_assignments_for_order(self, order_id):
        doomed = [a_id for a_id, a in self.assignments.items() if a.order_id == order_id]
        for a_id in doomed:
            del self.assignments[a_id]
        return len(doomed)

    # Telegram users
    @synchronized
    def get_telegram_users(self):
        return [_copy(u) for u in self.telegram_users.values()]

    @synchronized
    def create_telegram_user(self, data: TelegramUserCreate):
        existing = self._find(self.telegram_users, telegram_id=data.telegram_id)
        if existing:
            return _copy(existing)
        user = TelegramUserOut(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.telegram_users[user.id] = user
        return _copy(user)

    # Support chat
    @synchronized
    def create_chat_message(self, data: ChatMessageCreate):
        message = ChatMessageOut(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.chat_messages[message.id] = message
        return _copy(message)

    @synchronized
    def get_chat_messages(self, customer_phone=None):
        messages = list(self.chat_messages.values())
        if customer_phone is not None:
            messages = [m for m in messages if m.customer_phone == customer_phone]
        return [_copy(m) for m in sorted(messages, key=lambda m: m.created_at)]

    @synchronized
    def mark_chat_read(self, customer_phone):
        changed = 0
        for message in self.chat_messages.values():
            if message.customer_phone == customer_phone and message.sender_type == "customer" and not message.is_read:
                message.is_read = True
                changed += 1
        return changed

    @synchronized
    def get_chat_rooms(self):
        return super().get_chat_rooms()

    @synchronized
    def get_dashboard_stats(self):
        return super().get_dashboard_stats()
