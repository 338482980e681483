# dokon/api/routers/categories.py
from typing import List

from fastapi import APIRouter, Depends

from dokon.api.deps import get_storage, not_found, service_errors
from dokon.domain.schemas import CategoryCreate, CategoryOut, CategoryReorderIn, CategoryUpdate
from dokon.repos.storage import Storage

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=List[CategoryOut])
def list_categories(storage: Storage = Depends(get_storage)):
    return storage.get_categories()


@router.post("/reorder")
def reorder_categories(payload: CategoryReorderIn, storage: Storage = Depends(get_storage)):
    updated = storage.reorder_categories((c.id, c.order) for c in payload.categories)
    return {"success": True, "updated": updated}


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: str, storage: Storage = Depends(get_storage)):
    category = storage.get_category(category_id) or storage.get_category_by_slug(category_id)
    if not category:
        raise not_found("Category")
    return category


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryCreate, storage: Storage = Depends(get_storage)):
    with service_errors():
        return storage.create_category(payload)


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(category_id: str, payload: CategoryUpdate, storage: Storage = Depends(get_storage)):
    with service_errors():
        category = storage.update_category(category_id, payload)
    if not category:
        raise not_found("Category")
    return category


@router.delete("/{category_id}")
def delete_category(category_id: str, storage: Storage = Depends(get_storage)):
    if not storage.delete_category(category_id):
        raise not_found("Category")
    return {"success": True}
