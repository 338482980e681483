# dokon/api/routers/promo_codes.py
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dokon.api.deps import get_checkout_service, get_storage, not_found, service_errors
from dokon.domain.schemas import (
    PromoCodeCreate,
    PromoCodeOut,
    PromoCodeUpdate,
    PromoValidateIn,
    PromoValidateOut,
)
from dokon.repos.storage import Storage
from dokon.services.checkout_service import CheckoutService

router = APIRouter(prefix="/api/promo-codes", tags=["promo-codes"])


@router.get("", response_model=List[PromoCodeOut])
def list_promo_codes(storage: Storage = Depends(get_storage)):
    return storage.get_promo_codes()


@router.post("/validate", response_model=PromoValidateOut, response_model_exclude_none=True)
def validate_promo_code(payload: PromoValidateIn, svc: CheckoutService = Depends(get_checkout_service)):
    """Read-only check, usage is counted when an order is placed."""
    if not payload.code:
        return JSONResponse(status_code=400, content={"valid": False, "error": "Code required"})
    return svc.validate_promo(payload.code)


@router.post("", response_model=PromoCodeOut, status_code=201)
def create_promo_code(payload: PromoCodeCreate, storage: Storage = Depends(get_storage)):
    with service_errors():
        return storage.create_promo_code(payload)


@router.patch("/{promo_id}", response_model=PromoCodeOut)
def update_promo_code(promo_id: str, payload: PromoCodeUpdate, storage: Storage = Depends(get_storage)):
    with service_errors():
        promo = storage.update_promo_code(promo_id, payload)
    if not promo:
        raise not_found("Promo code")
    return promo


@router.delete("/{promo_id}")
def delete_promo_code(promo_id: str, storage: Storage = Depends(get_storage)):
    if not storage.delete_promo_code(promo_id):
        raise not_found("Promo code")
    return {"success": True}
