# dokon/api/__init__.py
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dokon.api.routers import (
    admin,
    advertisements,
    cart,
    categories,
    chat,
    checkout,
    courier_app,
    couriers,
    customers,
    health,
    orders,
    products,
    promo_codes,
    reviews,
    settings,
    telegram,
)
from dokon.data.database import make_engine
from dokon.data.seed import seed as seed_sample_data
from dokon.repos.mem_storage import MemStorage
from dokon.repos.sql_storage import SqlStorage
from dokon.repos.storage import Storage
from dokon.services.auth_service import AuthService
from dokon.services.site_settings import default_site_settings
from dokon.services.telegram_client import TelegramClient
from dokon.utils.logging import get_logger
from dokon.utils.settings import CORS_ORIGINS, DATABASE_URL, SEED_SAMPLE_DATA

logger = get_logger(__name__)

ROUTERS = [
    health,
    products,
    categories,
    cart,
    checkout,
    orders,
    customers,
    promo_codes,
    reviews,
    settings,
    admin,
    advertisements,
    couriers,
    courier_app,
    chat,
    telegram,
]


def build_storage(database_url: str | None = DATABASE_URL) -> Storage:
    site_settings = default_site_settings()
    if database_url:
        logger.info("Using relational storage")
        return SqlStorage(make_engine(database_url), site_settings)
    logger.info("DATABASE_URL not set, using in-memory storage")
    return MemStorage(site_settings)


def install_error_handlers(app: FastAPI):
    """Every error body is {"error": ...}."""

    @app.exception_handler(StarletteHTTPException)
    def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": jsonable_encoder(exc.errors())})

    @app.exception_handler(Exception)
    def unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    storage: Storage | None = None,
    telegram_client: TelegramClient | None = None,
    seed: bool | None = None,
) -> FastAPI:
    if seed is None:
        seed = storage is None and SEED_SAMPLE_DATA
    if storage is None:
        storage = build_storage()

    if seed:
        seed_sample_data(storage)
    AuthService(storage).ensure_admin()

    app = FastAPI(title="Do'kon API", version="1.0.0")
    app.state.storage = storage
    app.state.telegram = telegram_client or TelegramClient()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    for module in ROUTERS:
        app.include_router(module.router)

    return app
