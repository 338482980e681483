# dokon/api/routers/reviews.py
from typing import List

from fastapi import APIRouter, Depends

from dokon.api.deps import get_storage
from dokon.domain.schemas import ReviewCreate, ReviewOut
from dokon.repos.storage import Storage

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("/{product_id}", response_model=List[ReviewOut])
def list_reviews(product_id: str, storage: Storage = Depends(get_storage)):
    return storage.get_reviews(product_id)


@router.post("", response_model=ReviewOut, status_code=201)
def create_review(payload: ReviewCreate, storage: Storage = Depends(get_storage)):
    # storage recomputes the product rating in the same step
    return storage.create_review(payload)
