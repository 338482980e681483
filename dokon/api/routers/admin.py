# dokon/api/routers/admin.py
from typing import Optional

from fastapi import APIRouter, Depends

from dokon.api.deps import get_auth_service, get_notifier, get_storage, service_errors
from dokon.domain.schemas import DashboardStats, LoginIn, LoginOut, WebhookSetupIn, WebhookSetupOut
from dokon.repos.storage import Storage
from dokon.services.auth_service import AuthService
from dokon.services.notification_service import NotificationService
from dokon.utils.settings import SITE_URL

router = APIRouter(prefix="/api/admin", tags=["admin"])


def default_webhook_url() -> str:
    return f"{SITE_URL.rstrip('/')}/api/telegram-webhook"


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(storage: Storage = Depends(get_storage)):
    return storage.get_dashboard_stats()


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, svc: AuthService = Depends(get_auth_service)):
    with service_errors():
        return svc.login(payload.username, payload.password)


@router.post("/setup-webhook", response_model=WebhookSetupOut)
@router.post("/setup-telegram-webhook", response_model=WebhookSetupOut, include_in_schema=False)
def setup_webhook(
    payload: Optional[WebhookSetupIn] = None,
    notifier: NotificationService = Depends(get_notifier),
):
    url = (payload.webhook_url if payload else None) or default_webhook_url()
    with service_errors():
        result = notifier.setup_webhook(url)
    return WebhookSetupOut(success=bool(result.get("ok")), webhook_url=url, details=result)
