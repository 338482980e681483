# dokon/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

# no DATABASE_URL -> in-memory storage
DATABASE_URL = os.getenv("DATABASE_URL") or None

TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN") or None
TELEGRAM_API_URL = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
TELEGRAM_TIMEOUT = int(os.getenv("TELEGRAM_TIMEOUT", 5))
SITE_URL = os.getenv("SITE_URL", "https://do-kon.replit.dev")

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "+998900000000")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin1234")

COURIER_DELIVERY_FEE = float(os.getenv("COURIER_DELIVERY_FEE", 2000))
DEFAULT_COURIER_BALANCE = float(os.getenv("DEFAULT_COURIER_BALANCE", 10000))

SITE_NAME = os.getenv("SITE_NAME", "Do'kon")
DEFAULT_DELIVERY_PRICE = float(os.getenv("DEFAULT_DELIVERY_PRICE", 15000))
FREE_DELIVERY_THRESHOLD = float(os.getenv("FREE_DELIVERY_THRESHOLD", 500000))

SEED_SAMPLE_DATA = os.getenv("SEED_SAMPLE_DATA", "true").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
