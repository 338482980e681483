# dokon/api/deps.py
from contextlib import contextmanager

from fastapi import Depends, HTTPException, Request
from requests import RequestException

from dokon.repos.storage import Storage
from dokon.services.auth_service import AuthService
from dokon.services.cart_service import CartService
from dokon.services.checkout_service import CheckoutService
from dokon.services.courier_service import CourierService
from dokon.services.newsletter_service import NewsletterService
from dokon.services.notification_service import NotificationService
from dokon.services.order_service import OrderService


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_notifier(request: Request, storage: Storage = Depends(get_storage)) -> NotificationService:
    return NotificationService(storage, request.app.state.telegram)


def get_cart_service(storage: Storage = Depends(get_storage)):
    return CartService(storage)


def get_checkout_service(storage: Storage = Depends(get_storage)):
    return CheckoutService(storage)


def get_order_service(storage: Storage = Depends(get_storage), notifier: NotificationService = Depends(get_notifier)):
    return OrderService(storage, notifier)


def get_courier_service(storage: Storage = Depends(get_storage), notifier: NotificationService = Depends(get_notifier)):
    return CourierService(storage, notifier)


def get_newsletter_service(storage: Storage = Depends(get_storage), notifier: NotificationService = Depends(get_notifier)):
    return NewsletterService(storage, notifier)


def get_auth_service(storage: Storage = Depends(get_storage)):
    return AuthService(storage)


@contextmanager
def service_errors():
    """Service exceptions -> HTTP status."""
    try:
        yield
    except RequestException as e:
        raise HTTPException(status_code=502, detail=f"Telegram API error: {e}")
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e).strip("'"))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))


def not_found(entity: str):
    return HTTPException(status_code=404, detail=f"{entity} not found")
