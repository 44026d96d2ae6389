from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from careerhub.dependencies import (
    get_analysis_persister,
    get_current_user_id,
    get_pipeline,
    get_settings,
)
from careerhub.models.schemas import AnalysisResult, ResumeAnalysisRecord
from careerhub.services.analysis_store import AnalysisPersister
from careerhub.services.pipeline import ResumePipeline, accept_upload
from careerhub.utils.logging_config import get_logger
from careerhub.utils.settings import Settings

router = APIRouter()
logger = get_logger(__name__)


@router.post("/check-resume", response_model=AnalysisResult)
async def check_resume(
    request: Request,
    resume: Optional[UploadFile] = File(None),
    jobDescription: Optional[str] = Form(None),
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    pipeline: ResumePipeline = Depends(get_pipeline),
):
    """Score an uploaded resume or LinkedIn export against a job description"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    doc = await accept_upload(resume, jobDescription, settings.upload_dir, settings.max_upload_bytes)
    logger.info(
        f"Resume accepted: {doc.mime_type}, {doc.size} bytes",
        extra={"request_id": request_id, "user_id": user_id}
    )

    analysis = await pipeline.run(doc, jobDescription, user_id)

    logger.info(
        f"Resume analysis completed with matchScore={analysis.matchScore}",
        extra={"request_id": request_id, "user_id": user_id}
    )
    return analysis


@router.get("/api/resume-analyses", response_model=List[ResumeAnalysisRecord])
async def list_resume_analyses(
    user_id: str = Depends(get_current_user_id),
    persister: AnalysisPersister = Depends(get_analysis_persister),
):
    """Past analyses for the caller, newest first"""
    return await persister.list_for_user(user_id)
