# dokon/api/routers/chat.py
from typing import List

from fastapi import APIRouter, Depends

from dokon.api.deps import get_storage
from dokon.domain.schemas import ChatMessageCreate, ChatMessageOut, ChatRoomOut
from dokon.repos.storage import Storage
from dokon.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("/send", response_model=ChatMessageOut, status_code=201)
def send_message(payload: ChatMessageCreate, storage: Storage = Depends(get_storage)):
    message = storage.create_chat_message(payload)
    logger.info(f"Chat message from {payload.sender_type} in room {payload.customer_phone}")
    return message


@router.get("/rooms", response_model=List[ChatRoomOut])
def list_rooms(storage: Storage = Depends(get_storage)):
    return storage.get_chat_rooms()


@router.get("/{customer_phone}", response_model=List[ChatMessageOut])
def list_messages(customer_phone: str, storage: Storage = Depends(get_storage)):
    return storage.get_chat_messages(customer_phone)


@router.post("/{customer_phone}/read")
def mark_read(customer_phone: str, storage: Storage = Depends(get_storage)):
    return {"success": True, "updated": storage.mark_chat_read(customer_phone)}
