# dokon/api/routers/advertisements.py
from typing import List

from fastapi import APIRouter, Depends

from dokon.api.deps import get_newsletter_service, get_storage, not_found, service_errors
from dokon.domain.schemas import (
    AdvertisementCreate,
    AdvertisementOut,
    AdvertisementUpdate,
    BroadcastResult,
    NewsletterCreate,
    NewsletterOut,
)
from dokon.repos.storage import Storage
from dokon.services.newsletter_service import NewsletterService

router = APIRouter(tags=["advertisements"])


@router.get("/api/advertisements", response_model=List[AdvertisementOut])
def list_advertisements(storage: Storage = Depends(get_storage)):
    return storage.get_advertisements(active_only=True)


@router.get("/api/admin/advertisements", response_model=List[AdvertisementOut])
def list_all_advertisements(storage: Storage = Depends(get_storage)):
    return storage.get_advertisements(active_only=False)


@router.post("/api/admin/advertisements", response_model=AdvertisementOut, status_code=201)
def create_advertisement(payload: AdvertisementCreate, storage: Storage = Depends(get_storage)):
    return storage.create_advertisement(payload)


@router.patch("/api/admin/advertisements/{ad_id}", response_model=AdvertisementOut)
def update_advertisement(ad_id: str, payload: AdvertisementUpdate, storage: Storage = Depends(get_storage)):
    ad = storage.update_advertisement(ad_id, payload)
    if not ad:
        raise not_found("Advertisement")
    return ad


@router.delete("/api/admin/advertisements/{ad_id}")
def delete_advertisement(ad_id: str, storage: Storage = Depends(get_storage)):
    if not storage.delete_advertisement(ad_id):
        raise not_found("Advertisement")
    return {"success": True}


# Newsletters
@router.get("/api/newsletters", response_model=List[NewsletterOut])
def list_newsletters(storage: Storage = Depends(get_storage)):
    return storage.get_newsletters()


@router.post("/api/admin/send-newsletter", response_model=BroadcastResult)
def send_newsletter(payload: NewsletterCreate, svc: NewsletterService = Depends(get_newsletter_service)):
    """Telegram delivery is best-effort; the newsletter is stored either way."""
    with service_errors():
        return svc.send_newsletter(payload)


@router.post("/api/admin/send-courier-rassilka", response_model=BroadcastResult)
def send_courier_broadcast(payload: NewsletterCreate, svc: NewsletterService = Depends(get_newsletter_service)):
    with service_errors():
        return svc.send_courier_broadcast(payload)
