# models/response.py
from pydantic import BaseModel
from typing import List

from careerhub.models.schemas import ChatMessage, JobModel


class UserPublic(BaseModel):
    name: str
    email: str
    profileImage: str
    plan: str


class AuthResponse(BaseModel):
    user: UserPublic
    token: str


class MessageResponse(BaseModel):
    message: str


class CreatedResponse(BaseModel):
    message: str
    id: str


class JobResponse(BaseModel):
    message: str
    job: JobModel


class ChatReply(BaseModel):
    response: str


class ChatHistoryResponse(BaseModel):
    history: List[ChatMessage]


class IndustryResponse(BaseModel):
    message: str
    industry: str


class ImportResponse(BaseModel):
    message: str
    count: int
    skipped: int = 0
