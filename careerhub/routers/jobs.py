from datetime import datetime
from typing import List, Optional, Tuple, Union

import pandas as pd
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from careerhub.dependencies import get_current_user_id, get_mongo, get_settings
from careerhub.models.response import ImportResponse, JobResponse, MessageResponse
from careerhub.models.schemas import JobModel, JobStatus, JobUpdatePayload
from careerhub.services.db import MongoService, to_dict, to_object_id
from careerhub.services.pipeline import discard, save_upload
from careerhub.utils.exceptions import NotFoundError, PersistenceError, ValidationError
from careerhub.utils.logging_config import get_logger
from careerhub.utils.settings import Settings

router = APIRouter()
logger = get_logger(__name__)

IMPORT_COLUMNS = ["title", "company", "description", "url", "reminderDate"]


def _parse_date(value: str) -> Optional[datetime]:
    if not value:
        return None
    ts = pd.to_datetime(value, errors="coerce")
    return None if pd.isna(ts) else ts.to_pydatetime()


def read_jobs_csv(path: str, user_id: str) -> Tuple[List[JobModel], int]:
    """Jobs from a CSV with a header row, plus the count of rows skipped for missing title or company"""
    try:
        df = pd.read_csv(
            path,
            header=None,
            skiprows=1,
            names=IMPORT_COLUMNS,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        ).fillna("")
    except pd.errors.EmptyDataError:
        return [], 0
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationError(f"Could not read CSV file: {e}", field="file") from e

    jobs, skipped = [], 0
    for row in df.itertuples(index=False):
        title, company = row.title.strip(), row.company.strip()
        if not title or not company:
            skipped += 1
            continue
        jobs.append(JobModel(
            userId=user_id,
            title=title,
            company=company,
            description=row.description.strip() or None,
            url=row.url.strip() or None,
            reminderDate=_parse_date(row.reminderDate.strip()),
        ))
    return jobs, skipped


async def _owned_job(mongo: MongoService, job_id: str, user_id: str) -> dict:
    oid = to_object_id(job_id)
    job = await mongo.jobs.find_one({"_id": oid, "userId": user_id}) if oid else None
    if not job:
        raise NotFoundError("Job not found", resource="job")
    return job


async def _import_csv(file: UploadFile, user_id: str, mongo: MongoService, settings: Settings) -> ImportResponse:
    upload = await save_upload(file, settings.upload_dir, settings.max_upload_bytes)
    try:
        jobs, skipped = read_jobs_csv(upload.path, user_id)
    finally:
        discard(upload.path)

    docs = []
    for job in jobs:
        doc = job.model_dump(exclude={"id"})
        doc["status"] = job.status.value
        docs.append(doc)

    if docs:
        try:
            await mongo.jobs.insert_many(docs)
        except PyMongoError as e:
            logger.error(f"Error importing jobs: {e}")
            raise PersistenceError("Failed to import jobs", operation="insert_many", collection="jobs", cause=e) from e

    logger.info(f"Imported {len(docs)} jobs for user {user_id} ({skipped} rows skipped)")
    return ImportResponse(message="Jobs imported successfully", count=len(docs), skipped=skipped)


@router.post("", response_model=Union[JobResponse, ImportResponse], status_code=status.HTTP_201_CREATED)
async def add_job(
    title: Optional[str] = Form(None),
    company: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    url: Optional[str] = Form(None),
    reminderDate: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
    settings: Settings = Depends(get_settings),
):
    """Add one job from form fields, or bulk-import when a CSV file is attached"""
    if file is not None and file.filename:
        return await _import_csv(file, user_id, mongo, settings)

    title, company = (title or "").strip(), (company or "").strip()
    if not title or not company:
        raise ValidationError("Title and company are required")

    job = JobModel(
        userId=user_id,
        title=title,
        company=company,
        description=description or None,
        url=url or None,
        reminderDate=_parse_date((reminderDate or "").strip()),
    )
    doc = job.model_dump(exclude={"id"})
    doc["status"] = job.status.value
    try:
        result = await mongo.jobs.insert_one(doc)
    except PyMongoError as e:
        logger.error(f"Error adding job: {e}")
        raise PersistenceError("Failed to add job", operation="insert_one", collection="jobs", cause=e) from e

    job.id = str(result.inserted_id)
    logger.info(f"Job {job.id} added for user {user_id}")
    return JobResponse(message="Job added successfully", job=job)


@router.post("/import", response_model=ImportResponse, status_code=status.HTTP_201_CREATED)
async def import_jobs(
    file: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
    settings: Settings = Depends(get_settings),
):
    """Bulk-add jobs from a CSV: title,company,description,url,reminderDate"""
    if file is None or not file.filename:
        raise ValidationError("No file uploaded", field="file")
    return await _import_csv(file, user_id, mongo, settings)


@router.get("", response_model=List[JobModel])
async def list_jobs(
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
):
    try:
        cursor = mongo.jobs.find({"userId": user_id}).sort("createdAt", DESCENDING)
        jobs = await cursor.to_list(length=None)
    except PyMongoError as e:
        logger.error(f"Error fetching jobs: {e}")
        raise PersistenceError("Failed to fetch jobs", operation="find", collection="jobs", cause=e) from e
    return [JobModel(**to_dict(job)) for job in jobs]


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    payload: JobUpdatePayload,
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
):
    """Move a job between board columns or reschedule its reminder"""
    job = await _owned_job(mongo, job_id, user_id)

    changes = {}
    if payload.status:
        changes["status"] = JobStatus(payload.status).value
    if payload.reminderDate:
        changes["reminderDate"] = payload.reminderDate

    if changes:
        try:
            await mongo.jobs.update_one({"_id": job["_id"]}, {"$set": changes})
        except PyMongoError as e:
            logger.error(f"Error updating job: {e}")
            raise PersistenceError("Failed to update job", operation="update_one", collection="jobs", cause=e) from e
        job.update(changes)

    return JobResponse(message="Job updated successfully", job=JobModel(**to_dict(job)))


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    mongo: MongoService = Depends(get_mongo),
):
    oid = to_object_id(job_id)
    try:
        result = await mongo.jobs.delete_one({"_id": oid, "userId": user_id}) if oid else None
    except PyMongoError as e:
        logger.error(f"Error deleting job: {e}")
        raise PersistenceError("Failed to delete job", operation="delete_one", collection="jobs", cause=e) from e

    if result is None or result.deleted_count == 0:
        raise NotFoundError("Job not found", resource="job")
    return MessageResponse(message="Job deleted successfully")
