# dokon/api/routers/checkout.py
from fastapi import APIRouter, Depends

from dokon.api.deps import get_checkout_service, service_errors
from dokon.domain.schemas import CheckoutQuoteIn, CheckoutQuoteOut
from dokon.services.checkout_service import CheckoutService

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("/quote", response_model=CheckoutQuoteOut)
def quote(payload: CheckoutQuoteIn, svc: CheckoutService = Depends(get_checkout_service)):
    with service_errors():
        return svc.quote(payload.session_id, payload.delivery_type, payload.promo_code)
