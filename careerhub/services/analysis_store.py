"""
Persistence of resume analysis records
"""
from datetime import datetime, timezone
from typing import List

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from careerhub.models.schemas import AnalysisResult, ResumeAnalysisRecord
from careerhub.services.db import to_dict
from careerhub.utils.exceptions import PersistenceError
from careerhub.utils.logging_config import get_logger

logger = get_logger(__name__)


class AnalysisPersister:
    def __init__(self, collection):
        self.collection = collection

    async def save(self, user_id: str, job_description: str, analysis: AnalysisResult) -> AnalysisResult:
        """Insert one record and return the stored analysis"""
        record = ResumeAnalysisRecord(
            userId=user_id,
            jobDescription=job_description,
            analysis=analysis,
            createdAt=datetime.now(timezone.utc),
        )
        doc = record.model_dump(exclude={"id"})
        try:
            result = await self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"Failed to save resume analysis for user {user_id}: {e}")
            raise PersistenceError(
                "Failed to save resume analysis",
                operation="insert_one",
                collection="resumeanalyses",
                cause=e,
            ) from e

        logger.info(f"Saved resume analysis {result.inserted_id} for user {user_id}")
        return AnalysisResult.model_validate(doc["analysis"])

    async def list_for_user(self, user_id: str) -> List[ResumeAnalysisRecord]:
        """The user's analyses, newest first"""
        try:
            cursor = self.collection.find({"userId": user_id}).sort("createdAt", DESCENDING)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise PersistenceError(
                "Failed to fetch resume analyses",
                operation="find",
                collection="resumeanalyses",
                cause=e,
            ) from e
        return [ResumeAnalysisRecord(**to_dict(doc)) for doc in docs]
