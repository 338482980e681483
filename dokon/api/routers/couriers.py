# dokon/api/routers/couriers.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from dokon.api.deps import get_courier_service, get_order_service, get_storage, not_found, service_errors
from dokon.domain.schemas import (
    AssignmentWithOrder,
    BalanceChangeIn,
    CourierCreate,
    CourierOut,
    CourierTransactionOut,
    CourierUpdate,
)
from dokon.repos.storage import Storage
from dokon.services.courier_service import CourierService
from dokon.services.order_service import OrderService

router = APIRouter(tags=["couriers"])


@router.get("/api/couriers", response_model=List[CourierOut])
def list_couriers(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    storage: Storage = Depends(get_storage),
):
    return storage.get_couriers(category_id=category_id)


@router.get("/api/couriers/{courier_id}", response_model=CourierOut)
def get_courier(courier_id: str, svc: CourierService = Depends(get_courier_service)):
    with service_errors():
        return svc.get(courier_id)


@router.post("/api/couriers", response_model=CourierOut, status_code=201)
def create_courier(payload: CourierCreate, svc: CourierService = Depends(get_courier_service)):
    with service_errors():
        return svc.create(payload)


@router.patch("/api/couriers/{courier_id}", response_model=CourierOut)
def update_courier(courier_id: str, payload: CourierUpdate, svc: CourierService = Depends(get_courier_service)):
    with service_errors():
        return svc.update(courier_id, payload)


@router.delete("/api/couriers/{courier_id}")
def delete_courier(courier_id: str, storage: Storage = Depends(get_storage)):
    if not storage.delete_courier(courier_id):
        raise not_found("Courier")
    return {"success": True}


@router.patch("/api/couriers/{courier_id}/balance", response_model=CourierOut)
def change_balance(courier_id: str, payload: BalanceChangeIn, svc: CourierService = Depends(get_courier_service)):
    with service_errors():
        return svc.adjust_balance(courier_id, payload.amount, payload.type)


@router.get("/api/courier-transactions", response_model=List[CourierTransactionOut])
def list_transactions(
    courier_id: Optional[str] = Query(None, alias="courierId"),
    storage: Storage = Depends(get_storage),
):
    return storage.get_courier_transactions(courier_id=courier_id)


@router.get("/api/assignments", response_model=List[AssignmentWithOrder])
def list_assignments(svc: OrderService = Depends(get_order_service)):
    return svc.list_assignments()
