"""
Dependency injection utilities
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from careerhub.services.ai_client import GenerativeClient
from careerhub.services.analysis_store import AnalysisPersister
from careerhub.services.auth import decode_access_token
from careerhub.services.db import MongoService
from careerhub.services.extraction import TextExtractor
from careerhub.services.pipeline import ResumePipeline
from careerhub.utils.exceptions import AuthenticationError
from careerhub.utils.settings import Settings

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mongo(request: Request) -> MongoService:
    return request.app.state.mongo


def get_ai_client(request: Request) -> GenerativeClient:
    return request.app.state.ai_client


def get_extractor(request: Request) -> TextExtractor:
    return request.app.state.extractor


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """User id from the bearer token; 401 when absent, 403 when invalid"""
    if not credentials or not credentials.credentials:
        raise AuthenticationError()
    return decode_access_token(credentials.credentials, settings)


def get_analysis_persister(mongo: MongoService = Depends(get_mongo)) -> AnalysisPersister:
    return AnalysisPersister(mongo.resume_analyses)


def get_pipeline(
    extractor: TextExtractor = Depends(get_extractor),
    ai_client: GenerativeClient = Depends(get_ai_client),
    persister: AnalysisPersister = Depends(get_analysis_persister),
) -> ResumePipeline:
    return ResumePipeline(extractor, ai_client, persister)
