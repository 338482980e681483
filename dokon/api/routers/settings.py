# dokon/api/routers/settings.py
from fastapi import APIRouter, Depends

from dokon.api.deps import get_storage
from dokon.domain.schemas import SiteSettingsOut, SiteSettingsUpdate
from dokon.repos.storage import Storage

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=SiteSettingsOut)
def get_settings(storage: Storage = Depends(get_storage)):
    return storage.get_settings()


@router.patch("", response_model=SiteSettingsOut)
def update_settings(payload: SiteSettingsUpdate, storage: Storage = Depends(get_storage)):
    return storage.update_settings(payload)
