# dokon/api/routers/customers.py
from typing import List

from fastapi import APIRouter, Depends

from dokon.api.deps import get_storage, not_found
from dokon.domain.schemas import CustomerOut
from dokon.repos.storage import Storage

router = APIRouter(prefix="/api/customers", tags=["customers"])


# read-only: customers change only as a side effect of orders
@router.get("", response_model=List[CustomerOut])
def list_customers(storage: Storage = Depends(get_storage)):
    return storage.get_customers()


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: str, storage: Storage = Depends(get_storage)):
    customer = storage.get_customer(customer_id)
    if not customer:
        raise not_found("Customer")
    return customer
