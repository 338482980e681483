# dokon/services/site_settings.py
from dokon.domain.schemas import SiteSettingsOut
from dokon.utils.settings import (
    DEFAULT_DELIVERY_PRICE,
    FREE_DELIVERY_THRESHOLD,
    SITE_NAME,
    TELEGRAM_BOT_TOKEN,
)


def default_site_settings(**overrides) -> SiteSettingsOut:
    """Boot-time settings row, handed to the storage constructor."""
    fields = {
        "site_name": SITE_NAME,
        "delivery_price": DEFAULT_DELIVERY_PRICE,
        "free_delivery_threshold": FREE_DELIVERY_THRESHOLD,
        "telegram_bot_token": TELEGRAM_BOT_TOKEN,
    }
    fields.update(overrides)
    return SiteSettingsOut(**fields)
