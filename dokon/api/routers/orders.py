# dokon/api/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from dokon.api.deps import get_order_service, service_errors
from dokon.domain.schemas import (
    AssignCourierIn,
    OrderCreate,
    OrderOut,
    OrderStatus,
    OrderUpdate,
)
from dokon.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("", response_model=List[OrderOut])
def list_orders(
    status: Optional[OrderStatus] = None,
    limit: Optional[int] = Query(None, ge=1),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(status=status, limit=limit)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: str, svc: OrderService = Depends(get_order_service)):
    with service_errors():
        return svc.get_order(order_id)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(payload: OrderCreate, svc: OrderService = Depends(get_order_service)):
    """
    Places an order. Line items arrive already snapshotted in `items`;
    the customer record is upserted by phone as a side effect.
    """
    with service_errors():
        return svc.create_order(payload)


@router.patch("/{order_id}", response_model=OrderOut)
def update_order(order_id: str, payload: OrderUpdate, svc: OrderService = Depends(get_order_service)):
    with service_errors():
        return svc.update_order(order_id, payload)


@router.post("/{order_id}/assign-courier")
def assign_courier(order_id: str, payload: AssignCourierIn, svc: OrderService = Depends(get_order_service)):
    with service_errors():
        assignment = svc.assign_courier(order_id, payload.courier_id)
    return {"success": True, "assignment": assignment}
