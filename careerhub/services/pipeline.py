"""
Resume ingestion and analysis pipeline: intake, extraction, scoring, persistence
"""
import asyncio
import os
import uuid
from typing import Optional

from fastapi import UploadFile
from pydantic import BaseModel

from careerhub.models.schemas import ALLOWED_RESUME_TYPES, AnalysisResult
from careerhub.services.ai_client import GenerativeClient
from careerhub.services.analysis_store import AnalysisPersister
from careerhub.services.extraction import TextExtractor
from careerhub.utils.exceptions import ValidationError
from careerhub.utils.logging_config import get_logger, PerformanceMonitor

logger = get_logger(__name__)

_CHUNK_SIZE = 64 * 1024


class UploadedDocument(BaseModel):
    path: str
    mime_type: str
    size: int


def discard(path: str) -> None:
    if path and os.path.exists(path):
        os.remove(path)


async def save_upload(upload: UploadFile, upload_dir: str, max_bytes: int) -> UploadedDocument:
    """Copy an upload to a uniquely named temp file, enforcing the size cap"""
    os.makedirs(upload_dir, exist_ok=True)
    path = os.path.join(upload_dir, uuid.uuid4().hex)
    size = 0
    try:
        with open(path, "wb") as out:
            while True:
                chunk = await upload.read(_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise ValidationError(
                        f"File exceeds the {max_bytes // (1024 * 1024)}MB upload limit",
                        field="resume",
                    )
                out.write(chunk)
    except BaseException:
        discard(path)
        raise
    return UploadedDocument(path=path, mime_type=upload.content_type or "", size=size)


async def accept_upload(
    upload: Optional[UploadFile],
    job_description: Optional[str],
    upload_dir: str,
    max_bytes: int,
) -> UploadedDocument:
    """Validate an upload plus job description; the temp file never outlives a rejection"""
    if upload is None or not upload.filename:
        raise ValidationError("No file uploaded", field="resume")

    doc = await save_upload(upload, upload_dir, max_bytes)

    if doc.mime_type not in ALLOWED_RESUME_TYPES:
        discard(doc.path)
        raise ValidationError(
            "Only PDF, DOCX, JPG, and PNG files are allowed",
            field="resume",
            value=doc.mime_type,
        )

    if not job_description or not job_description.strip():
        discard(doc.path)
        raise ValidationError("Job description is required", field="jobDescription")

    return doc


class ResumePipeline:
    def __init__(self, extractor: TextExtractor, ai_client: GenerativeClient, persister: AnalysisPersister):
        self.extractor = extractor
        self.ai_client = ai_client
        self.persister = persister

    async def run(self, doc: UploadedDocument, job_description: str, user_id: str) -> AnalysisResult:
        """One pipeline run; returns only after the analysis is persisted"""
        loop = asyncio.get_running_loop()
        try:
            with PerformanceMonitor("text extraction", logger, threshold_ms=10000):
                outcome = await loop.run_in_executor(None, self.extractor.extract, doc.path, doc.mime_type)
        finally:
            discard(doc.path)

        if not outcome.text:
            logger.warning(f"No text recovered from upload for user {user_id}; scoring empty resume")

        with PerformanceMonitor("resume scoring", logger, threshold_ms=15000):
            analysis = await loop.run_in_executor(
                None, self.ai_client.analyze_resume, outcome.text, job_description
            )

        return await self.persister.save(user_id, job_description, analysis)
