# import every model so SQLAlchemy registers it on Base.metadata

from dokon.data.models.advertisement import AdvertisementModel
from dokon.data.models.cart_item import CartItemModel
from dokon.data.models.category import CategoryModel
from dokon.data.models.chat_message import ChatMessageModel
from dokon.data.models.courier import CourierModel
from dokon.data.models.courier_assignment import CourierAssignmentModel
from dokon.data.models.courier_transaction import CourierTransactionModel
from dokon.data.models.customer import CustomerModel
from dokon.data.models.newsletter import NewsletterModel
from dokon.data.models.order import OrderModel
from dokon.data.models.product import ProductModel
from dokon.data.models.promo_code import PromoCodeModel
from dokon.data.models.review import ReviewModel
from dokon.data.models.site_settings import SiteSettingsModel
from dokon.data.models.telegram_user import TelegramUserModel
from dokon.data.models.user import UserModel

__all__ = [
    "AdvertisementModel",
    "CartItemModel",
    "CategoryModel",
    "ChatMessageModel",
    "CourierModel",
    "CourierAssignmentModel",
    "CourierTransactionModel",
    "CustomerModel",
    "NewsletterModel",
    "OrderModel",
    "ProductModel",
    "PromoCodeModel",
    "ReviewModel",
    "SiteSettingsModel",
    "TelegramUserModel",
    "UserModel",
]
