# dokon/api/routers/products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from dokon.api.deps import get_storage, not_found, service_errors
from dokon.domain.schemas import ProductCreate, ProductOut, ProductUpdate
from dokon.repos.storage import Storage

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=List[ProductOut])
def list_products(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    popular: bool = False,
    new: bool = False,
    limit: Optional[int] = Query(None, ge=1),
    storage: Storage = Depends(get_storage),
):
    return storage.get_products(category_id=category_id, popular=popular, new=new, limit=limit)


@router.get("/{slug_or_id}", response_model=ProductOut)
def get_product(slug_or_id: str, storage: Storage = Depends(get_storage)):
    """Id first, slug as fallback."""
    product = storage.get_product(slug_or_id) or storage.get_product_by_slug(slug_or_id)
    if not product:
        raise not_found("Product")
    return product


@router.post("", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, storage: Storage = Depends(get_storage)):
    with service_errors():
        return storage.create_product(payload)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(product_id: str, payload: ProductUpdate, storage: Storage = Depends(get_storage)):
    with service_errors():
        product = storage.update_product(product_id, payload)
    if not product:
        raise not_found("Product")
    return product


@router.delete("/{product_id}")
def delete_product(product_id: str, storage: Storage = Depends(get_storage)):
    if not storage.delete_product(product_id):
        raise not_found("Product")
    return {"success": True}
