from typing import List

from fastapi import APIRouter, Depends, status
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from careerhub.dependencies import get_current_user_id, get_mongo
from careerhub.models.response import CreatedResponse
from careerhub.models.schemas import CoverLetterModel, CoverLetterPayload
from careerhub.services.db import MongoService, to_dict
from careerhub.utils.exceptions import PersistenceError, ValidationError
from careerhub.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)

RECENT_LIMIT = 10


@router.post("/cover-letter", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def save_cover_letter(
    payload: CoverLetterPayload,
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
):
    if not payload.content:
        raise ValidationError("Content is required", field="content")

    letter = CoverLetterModel(userId=user_id, **payload.model_dump())
    try:
        result = await mongo.cover_letters.insert_one(letter.model_dump(exclude={"id"}))
    except PyMongoError as e:
        logger.error(f"Error saving cover letter: {e}")
        raise PersistenceError("Failed to save cover letter", operation="insert_one", collection="coverletters", cause=e) from e
    return CreatedResponse(message="Cover letter saved", id=str(result.inserted_id))


@router.get("/cover-letters", response_model=List[CoverLetterModel])
async def list_cover_letters(
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
):
    """The caller's ten most recent cover letters"""
    try:
        cursor = mongo.cover_letters.find({"userId": user_id}).sort("createdAt", DESCENDING).limit(RECENT_LIMIT)
        letters = await cursor.to_list(length=None)
    except PyMongoError as e:
        logger.error(f"Error fetching cover letters: {e}")
        raise PersistenceError("Failed to fetch cover letters", operation="find", collection="coverletters", cause=e) from e
    return [CoverLetterModel(**to_dict(letter)) for letter in letters]
