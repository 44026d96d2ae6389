import asyncio

from fastapi import APIRouter, Depends, Request
from pymongo.errors import PyMongoError

from careerhub.dependencies import get_ai_client, get_current_user_id, get_mongo
from careerhub.models.response import ChatHistoryResponse, ChatReply, MessageResponse
from careerhub.models.schemas import ChatMessage, ChatPayload
from careerhub.services.ai_client import GenerativeClient
from careerhub.services.db import MongoService
from careerhub.utils.exceptions import PersistenceError, ValidationError
from careerhub.utils.logging_config import get_logger, PerformanceMonitor

router = APIRouter()
logger = get_logger(__name__)


def _require_history(payload: ChatPayload):
    if payload.history is None:
        raise ValidationError("Invalid chat history provided", field="history")
    return payload.history


@router.post("", response_model=ChatReply)
async def chat(
    payload: ChatPayload,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    ai_client: GenerativeClient = Depends(get_ai_client),
):
    """Ask the career mentor for the next reply in a conversation"""
    history = _require_history(payload)
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(f"Chat request received with {len(history)} messages", extra={"request_id": request_id, "user_id": user_id})

    loop = asyncio.get_running_loop()
    with PerformanceMonitor("chat response", logger, threshold_ms=15000):
        reply = await loop.run_in_executor(None, ai_client.chat_reply, history)
    return ChatReply(response=reply)


@router.post("/save", response_model=MessageResponse)
async def save_chat_history(
    payload: ChatPayload,
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
):
    """Replace the caller's stored conversation"""
    history = _require_history(payload)
    try:
        await mongo.chats.update_one(
            {"userId": user_id},
            {"$set": {"history": [msg.model_dump() for msg in history]}},
            upsert=True,
        )
    except PyMongoError as e:
        logger.error(f"Save chat history error: {e}")
        raise PersistenceError("Failed to save chat history", operation="update_one", collection="chats", cause=e) from e
    return MessageResponse(message="Chat history saved")


@router.get("/history", response_model=ChatHistoryResponse)
async def get_chat_history(
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
):
    try:
        chat_doc = await mongo.chats.find_one({"userId": user_id})
    except PyMongoError as e:
        logger.error(f"Fetch chat history error: {e}")
        raise PersistenceError("Failed to fetch chat history", operation="find_one", collection="chats", cause=e) from e
    history = chat_doc.get("history", []) if chat_doc else []
    return ChatHistoryResponse(history=[ChatMessage(**msg) for msg in history])
