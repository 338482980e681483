# dokon/api/routers/courier_app.py
from fastapi import APIRouter, Depends

from dokon.api.deps import get_courier_service, service_errors
from dokon.domain.schemas import (
    CourierDashboardOut,
    CourierLocationIn,
    CourierOrderActionIn,
    CourierOut,
    CourierStatusIn,
    CourierTransferIn,
)
from dokon.services.courier_service import CourierService

router = APIRouter(tags=["courier-app"])


@router.get("/api/courier-dashboard/{telegram_id}", response_model=CourierDashboardOut)
def courier_dashboard(telegram_id: str, svc: CourierService = Depends(get_courier_service)):
    with service_errors():
        return svc.dashboard(telegram_id)


@router.post("/api/courier/accept-order")
def accept_order(payload: CourierOrderActionIn, svc: CourierService = Depends(get_courier_service)):
    """
    First courier to claim a pending assignment wins; later ones get 409.
    The flat delivery fee is debited from the winner's balance.
    """
    with service_errors():
        assignment = svc.accept(payload.order_id, payload.assignment_id, payload.telegram_id)
    return {"success": True, "assignment": assignment}


@router.post("/api/courier/reject-order")
def reject_order(payload: CourierOrderActionIn, svc: CourierService = Depends(get_courier_service)):
    with service_errors():
        svc.reject(payload.order_id, payload.assignment_id, payload.telegram_id)
    return {"success": True}


@router.post("/api/courier/update-order-status")
def update_order_status(payload: CourierStatusIn, svc: CourierService = Depends(get_courier_service)):
    with service_errors():
        order = svc.update_status(payload.order_id, payload.status)
    return {"success": True, "order": order}


@router.post("/api/courier/transfer")
def transfer(payload: CourierTransferIn, svc: CourierService = Depends(get_courier_service)):
    with service_errors():
        return svc.transfer(payload.from_telegram_id, payload.to_card_number, payload.amount)


@router.post("/api/courier/update-location", response_model=CourierOut)
def update_location(payload: CourierLocationIn, svc: CourierService = Depends(get_courier_service)):
    with service_errors():
        return svc.update_location(payload.telegram_id, payload.latitude, payload.longitude)
