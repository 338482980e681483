# dokon/api/routers/cart.py
from typing import List

from fastapi import APIRouter, Depends, Query

from dokon.api.deps import get_cart_service, service_errors
from dokon.domain.schemas import (
    CartItemCreate,
    CartItemOut,
    CartItemQuantityIn,
    CartItemWithProduct,
    CartSummaryOut,
)
from dokon.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=List[CartItemWithProduct])
def get_cart(session_id: str = Query("", alias="sessionId"), svc: CartService = Depends(get_cart_service)):
    with service_errors():
        return svc.get_items(session_id)


@router.get("/summary", response_model=CartSummaryOut)
def get_cart_summary(session_id: str = Query("", alias="sessionId"), svc: CartService = Depends(get_cart_service)):
    with service_errors():
        return svc.summary(session_id)


@router.post("", response_model=CartItemOut, status_code=201)
def add_to_cart(payload: CartItemCreate, svc: CartService = Depends(get_cart_service)):
    """Same product/color/size in the same session bumps the quantity."""
    return svc.add(payload)


@router.patch("/{item_id}", response_model=CartItemOut)
def update_cart_item(item_id: str, payload: CartItemQuantityIn, svc: CartService = Depends(get_cart_service)):
    with service_errors():
        return svc.set_quantity(item_id, payload.quantity)


@router.delete("/session/{session_id}")
def clear_cart(session_id: str, svc: CartService = Depends(get_cart_service)):
    svc.clear(session_id)
    return {"success": True}


@router.delete("/{item_id}")
def remove_from_cart(item_id: str, svc: CartService = Depends(get_cart_service)):
    with service_errors():
        svc.remove(item_id)
    return {"success": True}
