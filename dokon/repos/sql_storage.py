# dokon/repos/sql_storage.py
from contextlib import contextmanager
from typing import Iterable, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError

from dokon.data.database import init_db, make_session_factory
from dokon.data.models import (
    AdvertisementModel,
    CartItemModel,
    CategoryModel,
    ChatMessageModel,
    CourierAssignmentModel,
    CourierModel,
    CourierTransactionModel,
    CustomerModel,
    NewsletterModel,
    OrderModel,
    ProductModel,
    PromoCodeModel,
    ReviewModel,
    SiteSettingsModel,
    TelegramUserModel,
    UserModel,
)
from dokon.domain.schemas import (
    AdvertisementOut,
    CartItemOut,
    CartItemWithProduct,
    CategoryOut,
    ChatMessageOut,
    CourierAssignmentOut,
    CourierOut,
    CourierTransactionOut,
    CustomerOut,
    NewsletterOut,
    OrderOut,
    ProductOut,
    PromoCodeOut,
    ReviewOut,
    SiteSettingsOut,
    TelegramUserOut,
    UserOut,
)
from dokon.repos.storage import Storage, free_order_number, merged, patch_dict
from dokon.utils.helpers import new_id
from dokon.utils.logging import get_logger
from dokon.utils.settings import DEFAULT_COURIER_BALANCE

logger = get_logger(__name__)


def _out(schema, row):
    return schema.model_validate(row) if row is not None else None


def _order_number_taken(db, number):
    return db.scalar(select(OrderModel.id).where(OrderModel.order_number == number)) is not None


class SqlStorage(Storage):
    """
    Relational implementation. Each call runs in its own session and
    commits once, so side effects (customer upsert, rating recompute)
    land in the same transaction as the primary write.
    """

    def __init__(
        self,
        engine,
        settings: Optional[SiteSettingsOut] = None,
        default_courier_balance: float = DEFAULT_COURIER_BALANCE,
    ):
        self.engine = engine
        self.Session = make_session_factory(engine)
        self.default_courier_balance = default_courier_balance

        init_db(engine)
        self._ensure_settings(settings or SiteSettingsOut())

    @contextmanager
    def _session(self):
        db = self.Session()
        try:
            yield db
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Integrity error: {e.orig}")
            raise ValueError("Constraint violated") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _ensure_settings(self, settings: SiteSettingsOut):
        with self._session() as db:
            if db.get(SiteSettingsModel, "default") is None:
                fields = settings.model_dump()
                fields["id"] = "default"
                db.add(SiteSettingsModel(**fields))

    # generic helpers
    def _get(self, model, schema, row_id):
        with self._session() as db:
            return _out(schema, db.get(model, row_id))

    def _first(self, model, schema, *where):
        with self._session() as db:
            return _out(schema, db.scalars(select(model).where(*where).limit(1)).first())

    def _create(self, model, schema, **fields):
        with self._session() as db:
            row = model(id=new_id(), **fields)
            db.add(row)
            db.flush()
            db.refresh(row)
            return _out(schema, row)

    def _update(self, model, schema, row_id, data):
        with self._session() as db:
            row = db.get(model, row_id)
            if row is None:
                return None
            patch = patch_dict(data)
            merged(schema.model_validate(row), patch)
            for key, value in patch.items():
                setattr(row, key, value)
            db.flush()
            return _out(schema, row)

    def _delete(self, model, row_id):
        with self._session() as db:
            row = db.get(model, row_id)
            if row is None:
                return False
            db.delete(row)
            return True

    # Users
    def get_user(self, user_id):
        return self._get(UserModel, UserOut, user_id)

    def get_user_by_username(self, username):
        return self._first(UserModel, UserOut, UserModel.username == username)

    def create_user(self, data):
        return self._create(UserModel, UserOut, **data.model_dump())

    # Products
    def get_products(self, category_id=None, popular=False, new=False, limit=None):
        stmt = select(ProductModel)
        if category_id:
            stmt = stmt.where(ProductModel.category_id == category_id)
        if popular:
            stmt = stmt.where(ProductModel.is_popular.is_(True))
        if new:
            stmt = stmt.where(ProductModel.is_new.is_(True))
        stmt = stmt.order_by(ProductModel.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)

        with self._session() as db:
            return [ProductOut.model_validate(p) for p in db.scalars(stmt)]

    def get_product(self, product_id):
        return self._get(ProductModel, ProductOut, product_id)

    def get_product_by_slug(self, slug):
        return self._first(ProductModel, ProductOut, ProductModel.slug == slug)

    def create_product(self, data):
        return self._create(ProductModel, ProductOut, **data.model_dump())

    def update_product(self, product_id, data):
        return self._update(ProductModel, ProductOut, product_id, data)

    def delete_product(self, product_id):
        return self._delete(ProductModel, product_id)

    # Categories
    def get_categories(self):
        with self._session() as db:
            return [CategoryOut.model_validate(c) for c in db.scalars(select(CategoryModel))]

    def get_category(self, category_id):
        return self._get(CategoryModel, CategoryOut, category_id)

    def get_category_by_slug(self, slug):
        return self._first(CategoryModel, CategoryOut, CategoryModel.slug == slug)

    def create_category(self, data):
        return self._create(CategoryModel, CategoryOut, **data.model_dump())

    def update_category(self, category_id, data):
        return self._update(CategoryModel, CategoryOut, category_id, data)

    def delete_category(self, category_id):
        return self._delete(CategoryModel, category_id)

    def reorder_categories(self, orders: Iterable[Tuple[str, int]]):
        changed = 0
        with self._session() as db:
            for category_id, order in orders:
                result = db.execute(
                    update(CategoryModel).where(CategoryModel.id == category_id).values(order=order)
                )
                changed += result.rowcount
        return changed

    # Cart
    def get_cart_items(self, session_id):
        with self._session() as db:
            items = list(db.scalars(select(CartItemModel).where(CartItemModel.session_id == session_id)))
            product_ids = {i.product_id for i in items}
            products = {}
            if product_ids:
                products = {
                    p.id: p for p in db.scalars(select(ProductModel).where(ProductModel.id.in_(product_ids)))
                }

            result = []
            for item in items:
                product = products.get(item.product_id)
                if product is None:
                    continue
                result.append(
                    CartItemWithProduct(
                        **CartItemOut.model_validate(item).model_dump(),
                        product=ProductOut.model_validate(product),
                    )
                )
            return result

    def get_cart_item(self, item_id):
        return self._get(CartItemModel, CartItemOut, item_id)

    def add_to_cart(self, data):
        try:
            return self._add_to_cart(data)
        except ValueError:
            # another request inserted the same line in between, add onto it
            logger.info(f"Cart line for session {data.session_id} created concurrently, retrying")
            return self._add_to_cart(data)

    def _add_to_cart(self, data):
        line = (
            CartItemModel.session_id == data.session_id,
            CartItemModel.product_id == data.product_id,
            func.coalesce(CartItemModel.selected_color, "") == (data.selected_color or ""),
            func.coalesce(CartItemModel.selected_size, "") == (data.selected_size or ""),
        )
        with self._session() as db:
            result = db.execute(
                update(CartItemModel)
                .where(*line)
                .values(quantity=CartItemModel.quantity + data.quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                return CartItemOut.model_validate(db.scalars(select(CartItemModel).where(*line)).one())

            item = CartItemModel(id=new_id(), **data.model_dump())
            db.add(item)
            db.flush()
            return CartItemOut.model_validate(item)

    def update_cart_item(self, item_id, quantity):
        return self._update(CartItemModel, CartItemOut, item_id, {"quantity": quantity})

    def remove_from_cart(self, item_id):
        return self._delete(CartItemModel, item_id)

    def clear_cart(self, session_id):
        with self._session() as db:
            for item in db.scalars(select(CartItemModel).where(CartItemModel.session_id == session_id)):
                db.delete(item)
        return True

    # Orders
    def get_orders(self, status=None, limit=None):
        stmt = select(OrderModel)
        if status:
            stmt = stmt.where(OrderModel.status == status)
        stmt = stmt.order_by(OrderModel.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)
        with self._session() as db:
            return [OrderOut.model_validate(o) for o in db.scalars(stmt)]

    def get_order(self, order_id):
        return self._get(OrderModel, OrderOut, order_id)

    def get_order_by_number(self, order_number):
        return self._first(OrderModel, OrderOut, OrderModel.order_number == order_number)

    def create_order(self, data):
        fields = data.model_dump()
        with self._session() as db:
            if not fields.get("order_number"):
                fields["order_number"] = free_order_number(lambda number: _order_number_taken(db, number))
            order = OrderModel(id=new_id(), **fields)
            db.add(order)

            customer = db.scalars(
                select(CustomerModel).where(CustomerModel.phone == order.customer_phone)
            ).first()
            if customer:
                customer.total_orders += 1
                customer.total_spent += order.total
                customer.address = order.customer_address
            else:
                db.add(
                    CustomerModel(
                        id=new_id(),
                        name=order.customer_name,
                        phone=order.customer_phone,
                        address=order.customer_address,
                        total_orders=1,
                        total_spent=order.total,
                    )
                )

            db.flush()
            db.refresh(order)
            logger.info(f"Order {order.order_number} stored, customer {order.customer_phone} upserted")
            return OrderOut.model_validate(order)

    def update_order(self, order_id, data):
        return self._update(OrderModel, OrderOut, order_id, data)

    # Customers
    def get_customers(self):
        with self._session() as db:
            stmt = select(CustomerModel).order_by(CustomerModel.created_at.desc())
            return [CustomerOut.model_validate(c) for c in db.scalars(stmt)]

    def get_customer(self, customer_id):
        return self._get(CustomerModel, CustomerOut, customer_id)

    def get_customer_by_phone(self, phone):
        return self._first(CustomerModel, CustomerOut, CustomerModel.phone == phone)

    def create_customer(self, data):
        return self._create(CustomerModel, CustomerOut, **data.model_dump())

    def update_customer(self, customer_id, data):
        return self._update(CustomerModel, CustomerOut, customer_id, data)

    # Promo codes
    def get_promo_codes(self):
        with self._session() as db:
            return [PromoCodeOut.model_validate(p) for p in db.scalars(select(PromoCodeModel))]

    def get_promo_code(self, promo_id):
        return self._get(PromoCodeModel, PromoCodeOut, promo_id)

    def get_promo_code_by_code(self, code):
        return self._first(PromoCodeModel, PromoCodeOut, func.lower(PromoCodeModel.code) == code.lower())

    def create_promo_code(self, data):
        if self.get_promo_code_by_code(data.code):
            raise ValueError(f"code '{data.code}' already exists")
        fields = data.model_dump()
        fields["usage_count"] = 0
        return self._create(PromoCodeModel, PromoCodeOut, **fields)

    def update_promo_code(self, promo_id, data):
        patch = patch_dict(data)
        if patch.get("code"):
            clash = self.get_promo_code_by_code(patch["code"])
            if clash and clash.id != promo_id:
                raise ValueError(f"code '{patch['code']}' already exists")
        return self._update(PromoCodeModel, PromoCodeOut, promo_id, patch)

    def delete_promo_code(self, promo_id):
        return self._delete(PromoCodeModel, promo_id)

    def increment_promo_usage(self, promo_id):
        with self._session() as db:
            result = db.execute(
                update(PromoCodeModel)
                .where(PromoCodeModel.id == promo_id)
                .values(usage_count=PromoCodeModel.usage_count + 1)
            )
            if result.rowcount == 0:
                return None
        return self.get_promo_code(promo_id)

    # Reviews
    def get_reviews(self, product_id):
        with self._session() as db:
            stmt = (
                select(ReviewModel)
                .where(ReviewModel.product_id == product_id)
                .order_by(ReviewModel.created_at.desc())
            )
            return [ReviewOut.model_validate(r) for r in db.scalars(stmt)]

    def create_review(self, data):
        with self._session() as db:
            review = ReviewModel(id=new_id(), **data.model_dump())
            db.add(review)
            db.flush()

            avg, count = db.execute(
                select(func.avg(ReviewModel.rating), func.count(ReviewModel.id)).where(
                    ReviewModel.product_id == review.product_id
                )
            ).one()
            product = db.get(ProductModel, review.product_id)
            if product is not None:
                product.rating = float(avg or 0)
                product.review_count = count

            db.flush()
            db.refresh(review)
            return ReviewOut.model_validate(review)

    # Advertisements
    def get_advertisements(self, active_only=True):
        stmt = select(AdvertisementModel)
        if active_only:
            stmt = stmt.where(AdvertisementModel.is_active.is_(True))
        stmt = stmt.order_by(AdvertisementModel.created_at.desc())
        with self._session() as db:
            return [AdvertisementOut.model_validate(a) for a in db.scalars(stmt)]

    def get_advertisement(self, ad_id):
        return self._get(AdvertisementModel, AdvertisementOut, ad_id)

    def create_advertisement(self, data):
        return self._create(AdvertisementModel, AdvertisementOut, **data.model_dump())

    def update_advertisement(self, ad_id, data):
        return self._update(AdvertisementModel, AdvertisementOut, ad_id, data)

    def delete_advertisement(self, ad_id):
        return self._delete(AdvertisementModel, ad_id)

    # Newsletters
    def get_newsletters(self):
        with self._session() as db:
            stmt = select(NewsletterModel).order_by(NewsletterModel.created_at.desc())
            return [NewsletterOut.model_validate(n) for n in db.scalars(stmt)]

    def create_newsletter(self, data):
        return self._create(NewsletterModel, NewsletterOut, **data.model_dump())

    # Settings
    def get_settings(self):
        return self._get(SiteSettingsModel, SiteSettingsOut, "default")

    def update_settings(self, data):
        patch = patch_dict(data)
        patch.pop("id", None)
        return self._update(SiteSettingsModel, SiteSettingsOut, "default", patch)

    # Couriers
    def get_couriers(self, category_id=None):
        stmt = select(CourierModel)
        if category_id:
            stmt = stmt.where(CourierModel.category_id == category_id)
        with self._session() as db:
            return [CourierOut.model_validate(c) for c in db.scalars(stmt)]

    def get_courier(self, courier_id):
        return self._get(CourierModel, CourierOut, courier_id)

    def get_courier_by_telegram_id(self, telegram_id):
        return self._first(CourierModel, CourierOut, CourierModel.telegram_id == telegram_id)

    def get_courier_by_card_number(self, card_number):
        return self._first(CourierModel, CourierOut, CourierModel.card_number == card_number)

    def create_courier(self, data):
        fields = data.model_dump()
        if fields.get("balance") is None:
            fields["balance"] = self.default_courier_balance
        return self._create(CourierModel, CourierOut, **fields)

    def update_courier(self, courier_id, data):
        return self._update(CourierModel, CourierOut, courier_id, data)

    def delete_courier(self, courier_id):
        return self._delete(CourierModel, courier_id)

    def _change_balance(self, courier_id, delta, tx_type, description, *guard):
        with self._session() as db:
            result = db.execute(
                update(CourierModel)
                .where(CourierModel.id == courier_id, *guard)
                .values(balance=CourierModel.balance + delta)
            )
            if result.rowcount == 0:
                return None
            db.add(
                CourierTransactionModel(
                    id=new_id(),
                    courier_id=courier_id,
                    amount=delta,
                    type=tx_type,
                    description=description,
                )
            )
        return self.get_courier(courier_id)

    def credit_courier_balance(self, courier_id, amount, tx_type, description=""):
        return self._change_balance(courier_id, abs(amount), tx_type, description)

    def debit_courier_balance(self, courier_id, amount, tx_type, description=""):
        return self._change_balance(courier_id, -abs(amount), tx_type, description)

    def charge_courier_balance(self, courier_id, amount, tx_type, description=""):
        return self._change_balance(
            courier_id, -abs(amount), tx_type, description, CourierModel.balance >= abs(amount)
        )

    def get_courier_transactions(self, courier_id=None):
        stmt = select(CourierTransactionModel)
        if courier_id:
            stmt = stmt.where(CourierTransactionModel.courier_id == courier_id)
        stmt = stmt.order_by(CourierTransactionModel.created_at.desc())
        with self._session() as db:
            return [CourierTransactionOut.model_validate(t) for t in db.scalars(stmt)]

    # Courier assignments
    def create_assignment(self, data):
        return self._create(CourierAssignmentModel, CourierAssignmentOut, **data.model_dump())

    def get_assignments(self):
        with self._session() as db:
            stmt = select(CourierAssignmentModel).order_by(CourierAssignmentModel.assigned_at.desc())
            return [CourierAssignmentOut.model_validate(a) for a in db.scalars(stmt)]

    def get_assignment(self, order_id):
        with self._session() as db:
            stmt = (
                select(CourierAssignmentModel)
                .where(CourierAssignmentModel.order_id == order_id)
                .order_by(CourierAssignmentModel.assigned_at.desc())
                .limit(1)
            )
            return _out(CourierAssignmentOut, db.scalars(stmt).first())

    def get_assignment_by_id(self, assignment_id):
        return self._get(CourierAssignmentModel, CourierAssignmentOut, assignment_id)

    def update_assignment(self, assignment_id, data):
        return self._update(CourierAssignmentModel, CourierAssignmentOut, assignment_id, data)

    @staticmethod
    def _open_to(assignment_id, courier_id):
        return (
            CourierAssignmentModel.id == assignment_id,
            CourierAssignmentModel.status == "pending",
            or_(
                CourierAssignmentModel.courier_id.is_(None),
                CourierAssignmentModel.courier_id == courier_id,
            ),
        )

    def claim_assignment(self, assignment_id, courier_id, distance=None):
        # conditional update, rowcount decides who won
        with self._session() as db:
            result = db.execute(
                update(CourierAssignmentModel)
                .where(*self._open_to(assignment_id, courier_id))
                .values(courier_id=courier_id, status="accepted", distance=distance)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None
        return self.get_assignment_by_id(assignment_id)

    def reject_assignment(self, assignment_id, courier_id):
        with self._session() as db:
            result = db.execute(
                update(CourierAssignmentModel)
                .where(*self._open_to(assignment_id, courier_id))
                .values(status="rejected")
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None
        return self.get_assignment_by_id(assignment_id)

    def delete_assignments_for_order(self, order_id):
        with self._session() as db:
            rows = list(
                db.scalars(select(CourierAssignmentModel).where(CourierAssignmentModel.order_id == order_id))
            )
            for row in rows:
                db.delete(row)
            return len(rows)

    # Telegram users
    def get_telegram_users(self):
        with self._session() as db:
            return [TelegramUserOut.model_validate(u) for u in db.scalars(select(TelegramUserModel))]

    def create_telegram_user(self, data):
        existing = self._first(TelegramUserModel, TelegramUserOut, TelegramUserModel.telegram_id == data.telegram_id)
        if existing:
            return existing
        return self._create(TelegramUserModel, TelegramUserOut, **data.model_dump())

    # Support chat
    def create_chat_message(self, data):
        return self._create(ChatMessageModel, ChatMessageOut, **data.model_dump())

    def get_chat_messages(self, customer_phone=None):
        stmt = select(ChatMessageModel)
        if customer_phone is not None:
            stmt = stmt.where(ChatMessageModel.customer_phone == customer_phone)
        stmt = stmt.order_by(ChatMessageModel.created_at)
        with self._session() as db:
            return [ChatMessageOut.model_validate(m) for m in db.scalars(stmt)]

    def mark_chat_read(self, customer_phone):
        with self._session() as db:
            result = db.execute(
                update(ChatMessageModel)
                .where(
                    ChatMessageModel.customer_phone == customer_phone,
                    ChatMessageModel.sender_type == "customer",
                    ChatMessageModel.is_read.is_(False),
                )
                .values(is_read=True)
            )
            return result.rowcount
