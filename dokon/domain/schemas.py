# dokon/domain/schemas.py
import json
from datetime import datetime
from typing import ClassVar, List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


DeliveryType = Literal["courier", "pickup"]
PaymentType = Literal["cash", "card"]
OrderStatus = Literal["new", "processing", "shipping", "delivered", "cancelled"]
AssignmentStatus = Literal["pending", "accepted", "rejected", "shipping", "delivered"]
SenderType = Literal["customer", "admin"]
TransactionType = Literal[
    "order_debit",
    "topup_credit",
    "transfer_out",
    "transfer_in",
    "admin_credit",
    "admin_debit",
]

ORDER_STATUSES = ("new", "processing", "shipping", "delivered", "cancelled")


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PatchModel(CamelModel):
    """
    Partial update. Every field is optional so it can be left out, but an
    explicit null is only accepted where the stored record allows one.
    """

    stored_as: ClassVar[Optional[type]] = None

    @model_validator(mode="after")
    def reject_nulls(self):
        stored = type(self).stored_as
        if stored is None:
            return self
        for name in self.model_fields_set:
            if getattr(self, name) is None and not _nullable(stored, name):
                raise ValueError(f"{name} cannot be null")
        return self


def _nullable(model: type, name: str) -> bool:
    field = model.model_fields.get(name)
    if field is None:
        return True
    return type(None) in get_args(field.annotation)


# Categories
class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    icon: Optional[str] = None
    parent_id: Optional[str] = None
    order: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CategoryUpdate(PatchModel):
    stored_as = CategoryCreate

    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = None
    parent_id: Optional[str] = None
    order: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CategoryOut(CategoryCreate):
    id: str


class CategoryOrderIn(CamelModel):
    id: str
    order: int


class CategoryReorderIn(CamelModel):
    categories: List[CategoryOrderIn]


# Products
class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    old_price: Optional[float] = Field(None, ge=0)
    category_id: str
    brand: Optional[str] = None
    images: List[str] = Field(..., min_length=1)
    colors: Optional[List[str]] = None
    sizes: Optional[List[str]] = None
    containers: Optional[List[str]] = None
    stock: int = Field(0, ge=0)
    rating: float = Field(0, ge=0, le=5)
    review_count: int = Field(0, ge=0)
    is_popular: bool = False
    is_new: bool = False


class ProductUpdate(PatchModel):
    stored_as = ProductCreate

    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    old_price: Optional[float] = Field(None, ge=0)
    category_id: Optional[str] = None
    brand: Optional[str] = None
    images: Optional[List[str]] = Field(None, min_length=1)
    colors: Optional[List[str]] = None
    sizes: Optional[List[str]] = None
    containers: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    review_count: Optional[int] = Field(None, ge=0)
    is_popular: Optional[bool] = None
    is_new: Optional[bool] = None


class ProductOut(ProductCreate):
    id: str
    created_at: datetime


# Cart
class CartItemCreate(CamelModel):
    session_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    selected_color: Optional[str] = None
    selected_size: Optional[str] = None
    selected_container: Optional[str] = None


class CartItemQuantityIn(CamelModel):
    quantity: int = Field(..., ge=1)


class CartItemOut(CartItemCreate):
    id: str


class CartItemWithProduct(CartItemOut):
    product: ProductOut


class CartSummaryOut(CamelModel):
    items: List[CartItemWithProduct]
    item_count: int
    subtotal: float


# Orders
class OrderLineItem(CamelModel):
    """Line item as it looked when the order was placed."""

    product_id: str
    product_name: Optional[str] = None
    product_image: Optional[str] = None
    price: float = 0
    quantity: int = 1
    selected_color: Optional[str] = None
    selected_size: Optional[str] = None
    selected_container: Optional[str] = None
    category_id: Optional[str] = None


def _items_to_json(value):
    if isinstance(value, list):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError("items must be a JSON array")
        if not isinstance(parsed, list):
            raise ValueError("items must be a JSON array")
        return value
    raise ValueError("items must be a JSON array")


class OrderCreate(CamelModel):
    order_number: Optional[str] = Field(None, min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    customer_address: str = ""
    customer_telegram_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    delivery_type: DeliveryType
    payment_type: PaymentType
    status: OrderStatus = "new"
    subtotal: float = Field(..., ge=0)
    delivery_price: float = Field(0, ge=0)
    discount: float = Field(0, ge=0)
    total: float = Field(..., ge=0)
    promo_code: Optional[str] = None
    items: str = "[]"
    category_id: Optional[str] = None

    @field_validator("items", mode="before")
    @classmethod
    def check_items(cls, value):
        return _items_to_json(value)


class OrderUpdate(PatchModel):
    stored_as = OrderCreate

    customer_name: Optional[str] = Field(None, min_length=1)
    customer_phone: Optional[str] = Field(None, min_length=1)
    customer_address: Optional[str] = None
    customer_telegram_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    delivery_type: Optional[DeliveryType] = None
    payment_type: Optional[PaymentType] = None
    status: Optional[OrderStatus] = None
    subtotal: Optional[float] = Field(None, ge=0)
    delivery_price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0)
    total: Optional[float] = Field(None, ge=0)
    promo_code: Optional[str] = None
    items: Optional[str] = None
    category_id: Optional[str] = None

    @field_validator("items", mode="before")
    @classmethod
    def check_items(cls, value):
        if value is None:
            return value
        return _items_to_json(value)


class OrderOut(OrderCreate):
    id: str
    order_number: str
    created_at: datetime

    def line_items(self) -> List[OrderLineItem]:
        try:
            raw = json.loads(self.items or "[]")
        except json.JSONDecodeError:
            return []
        lines = []
        for raw_item in raw:
            if isinstance(raw_item, dict) and (raw_item.get("productId") or raw_item.get("product_id")):
                lines.append(OrderLineItem.model_validate(raw_item))
        return lines


class AssignCourierIn(CamelModel):
    courier_id: str = Field(..., min_length=1)


class CheckoutQuoteIn(CamelModel):
    session_id: str = Field(..., min_length=1)
    delivery_type: DeliveryType = "courier"
    promo_code: Optional[str] = None


class CheckoutQuoteOut(CamelModel):
    subtotal: float
    delivery_price: float
    discount: float
    discount_percent: int = 0
    total: float
    promo_code: Optional[str] = None


# Customers
class CustomerCreate(CamelModel):
    name: str
    phone: str
    address: Optional[str] = None
    total_orders: int = 0
    total_spent: float = 0


class CustomerUpdate(PatchModel):
    stored_as = CustomerCreate

    name: Optional[str] = None
    address: Optional[str] = None
    total_orders: Optional[int] = None
    total_spent: Optional[float] = None


class CustomerOut(CustomerCreate):
    id: str
    created_at: datetime


# Promo codes
class PromoCodeCreate(CamelModel):
    code: str = Field(..., min_length=1)
    discount_percent: int = Field(..., ge=1, le=100)
    is_active: bool = True
    usage_limit: Optional[int] = Field(None, ge=1)
    usage_count: int = Field(0, ge=0)


class PromoCodeUpdate(PatchModel):
    stored_as = PromoCodeCreate

    code: Optional[str] = Field(None, min_length=1)
    discount_percent: Optional[int] = Field(None, ge=1, le=100)
    is_active: Optional[bool] = None
    usage_limit: Optional[int] = Field(None, ge=1)
    usage_count: Optional[int] = Field(None, ge=0)


class PromoCodeOut(PromoCodeCreate):
    id: str

    def is_usable(self) -> bool:
        if not self.is_active:
            return False
        return self.usage_limit is None or self.usage_count < self.usage_limit


class PromoValidateIn(CamelModel):
    code: Optional[str] = None


class PromoValidateOut(CamelModel):
    valid: bool
    discount_percent: Optional[int] = None
    code: Optional[str] = None
    error: Optional[str] = None


# Reviews
class ReviewCreate(CamelModel):
    product_id: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewOut(ReviewCreate):
    id: str
    created_at: datetime


# Advertisements
class AdvertisementCreate(CamelModel):
    business_name: str = Field(..., min_length=1)
    description: str
    image_url: str
    contact_phone: Optional[str] = None
    is_active: bool = True


class AdvertisementUpdate(PatchModel):
    stored_as = AdvertisementCreate

    business_name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    contact_phone: Optional[str] = None
    is_active: Optional[bool] = None


class AdvertisementOut(AdvertisementCreate):
    id: str
    created_at: datetime


# Newsletters
class NewsletterCreate(CamelModel):
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    image_url: Optional[str] = None


class NewsletterOut(NewsletterCreate):
    id: str
    created_at: datetime


class BroadcastResult(CamelModel):
    success: bool = True
    message: str
    sent_count: int
    total_users: int


# Couriers
class CourierCreate(CamelModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    telegram_id: str = Field(..., min_length=1)
    card_number: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    category_id: Optional[str] = None
    balance: Optional[float] = None
    is_active: bool = True


class CourierUpdate(PatchModel):
    stored_as = CourierCreate

    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    telegram_id: Optional[str] = Field(None, min_length=1)
    card_number: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    category_id: Optional[str] = None
    is_active: Optional[bool] = None


class CourierOut(CourierCreate):
    id: str
    balance: float
    created_at: datetime


class BalanceChangeIn(CamelModel):
    amount: float = Field(..., gt=0)
    type: Literal["credit", "debit"]


class CourierTransactionOut(CamelModel):
    id: str
    courier_id: str
    amount: float
    type: TransactionType
    description: Optional[str] = None
    created_at: datetime


class CourierAssignmentCreate(CamelModel):
    order_id: str
    courier_id: Optional[str] = None
    status: AssignmentStatus = "pending"
    distance: Optional[float] = None


class CourierAssignmentUpdate(PatchModel):
    stored_as = CourierAssignmentCreate

    courier_id: Optional[str] = None
    status: Optional[AssignmentStatus] = None
    distance: Optional[float] = None


class CourierAssignmentOut(CourierAssignmentCreate):
    id: str
    assigned_at: datetime


class AssignmentWithOrder(CourierAssignmentOut):
    order: Optional[OrderOut] = None
    courier: Optional[CourierOut] = None


class CourierDashboardOut(CamelModel):
    courier: CourierOut
    assignments: List[AssignmentWithOrder]


class CourierOrderActionIn(CamelModel):
    order_id: str = Field(..., min_length=1)
    assignment_id: str = Field(..., min_length=1)
    telegram_id: str = Field(..., min_length=1)


class CourierStatusIn(CamelModel):
    order_id: str = Field(..., min_length=1)
    status: Literal["processing", "shipping", "delivered", "cancelled"]


class CourierTransferIn(CamelModel):
    from_telegram_id: str = Field(..., min_length=1)
    to_card_number: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)


class CourierLocationIn(CamelModel):
    telegram_id: str = Field(..., min_length=1)
    latitude: float
    longitude: float


# Support chat
class ChatMessageCreate(CamelModel):
    customer_phone: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    sender_type: SenderType


class ChatMessageOut(ChatMessageCreate):
    id: str
    is_read: bool = False
    created_at: datetime


class ChatRoomOut(CamelModel):
    """One conversation per customer phone."""

    customer_phone: str
    customer_name: str
    last_message: ChatMessageOut
    unread_count: int


# Settings
class SiteSettingsOut(CamelModel):
    id: str = "default"
    logo_url: Optional[str] = None
    hero_image_url: Optional[str] = None
    site_name: str = "Do'kon"
    primary_color: Optional[str] = "#7c3aed"
    delivery_price: float = 15000
    free_delivery_threshold: Optional[float] = 500000
    telegram_bot_token: Optional[str] = None
    telegram_group_id: Optional[str] = None


class SiteSettingsUpdate(PatchModel):
    stored_as = SiteSettingsOut

    logo_url: Optional[str] = None
    hero_image_url: Optional[str] = None
    site_name: Optional[str] = Field(None, min_length=1)
    primary_color: Optional[str] = None
    delivery_price: Optional[float] = Field(None, ge=0)
    free_delivery_threshold: Optional[float] = Field(None, ge=0)
    telegram_bot_token: Optional[str] = None
    telegram_group_id: Optional[str] = None


# Users
class UserCreate(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    role: str = "admin"


class UserOut(UserCreate):
    id: str


class LoginIn(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=4)


class LoginOut(CamelModel):
    success: bool
    username: str
    role: str


class TelegramUserCreate(CamelModel):
    telegram_id: str = Field(..., min_length=1)
    first_name: Optional[str] = None


class TelegramUserOut(TelegramUserCreate):
    id: str
    created_at: datetime


class WebhookSetupIn(CamelModel):
    webhook_url: Optional[str] = Field(None, min_length=1)


class WebhookSetupOut(CamelModel):
    success: bool
    webhook_url: str
    details: dict


# Dashboard
class TopProduct(CamelModel):
    product: ProductOut
    sales_count: int


class DaySales(CamelModel):
    date: str
    total: float


class DashboardStats(CamelModel):
    total_orders: int
    total_revenue: float
    total_customers: int
    total_products: int
    new_orders_count: int
    recent_orders: List[OrderOut]
    top_products: List[TopProduct]
    sales_by_day: List[DaySales]
