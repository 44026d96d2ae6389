from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime, timezone
from enum import Enum

ALLOWED_RESUME_TYPES = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC already"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# -------- Resume analysis --------
class AnalysisResult(BaseModel):
    """Scored feedback for one resume against one job description"""
    model_config = ConfigDict(frozen=True)

    matchScore: int = Field(..., ge=0, le=100)
    strengths: List[str]
    gaps: List[str]
    improvements: List[str]
    optimizedSection: str
    beforeAfterComparison: str
    keywordMatchScore: int = Field(..., ge=0, le=100)


class ResumeAnalysisRecord(BaseModel):
    id: Optional[str] = None
    userId: str
    jobDescription: str
    analysis: AnalysisResult
    createdAt: datetime = Field(default_factory=utcnow)


# -------- Users --------
class UserModel(BaseModel):
    id: Optional[str] = None
    name: str
    email: str
    password: str  # bcrypt hash
    profileImage: str = "/default.jpg"
    plan: str = "Free"
    industry: Optional[str] = None


class SignupPayload(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginPayload(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class IndustryPayload(BaseModel):
    industry: Optional[str] = None


# -------- Chat --------
class ChatMessage(BaseModel):
    role: str
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class ChatPayload(BaseModel):
    history: Optional[List[ChatMessage]] = None


# -------- Jobs --------
class JobStatus(str, Enum):
    APPLIED = "Applied"
    INTERVIEW_SCHEDULED = "Interview Scheduled"
    OFFER = "Offer"
    REJECTED = "Rejected"


class JobModel(BaseModel):
    id: Optional[str] = None
    userId: str
    title: str
    company: str
    description: Optional[str] = None
    url: Optional[str] = None
    status: JobStatus = JobStatus.APPLIED
    reminderDate: Optional[datetime] = None
    createdAt: datetime = Field(default_factory=utcnow)

    @field_validator("reminderDate", "createdAt")
    @classmethod
    def normalize_dates(cls, value):
        return as_utc(value)


class JobUpdatePayload(BaseModel):
    status: Optional[JobStatus] = None
    reminderDate: Optional[datetime] = None

    @field_validator("reminderDate")
    @classmethod
    def normalize_reminder(cls, value):
        return as_utc(value)


# -------- Cover letters --------
class CoverLetterModel(BaseModel):
    id: Optional[str] = None
    userId: str
    content: str
    jobTitle: Optional[str] = None
    company: Optional[str] = None
    createdAt: datetime = Field(default_factory=utcnow)


class CoverLetterPayload(BaseModel):
    content: Optional[str] = None
    jobTitle: Optional[str] = None
    company: Optional[str] = None
