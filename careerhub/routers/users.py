from fastapi import APIRouter, Depends
from pymongo.errors import PyMongoError

from careerhub.dependencies import get_current_user_id, get_mongo
from careerhub.models.response import IndustryResponse
from careerhub.models.schemas import IndustryPayload
from careerhub.services.db import MongoService, to_object_id
from careerhub.utils.exceptions import NotFoundError, PersistenceError, ValidationError
from careerhub.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/industry", response_model=IndustryResponse)
async def update_industry(
    payload: IndustryPayload,
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
):
    """Record the industry the user is targeting"""
    logger.info(f"Received industry update request for user {user_id}: {payload.industry}")
    if not payload.industry:
        raise ValidationError("Industry is required", field="industry")

    oid = to_object_id(user_id)
    try:
        result = await mongo.users.update_one({"_id": oid}, {"$set": {"industry": payload.industry}}) if oid else None
    except PyMongoError as e:
        raise PersistenceError("Failed to update industry", operation="update_one", collection="users", cause=e) from e

    if result is None or result.matched_count == 0:
        raise NotFoundError("User not found", resource="user")

    logger.info(f"Industry updated successfully for user {user_id}")
    return IndustryResponse(message="Industry updated", industry=payload.industry)
