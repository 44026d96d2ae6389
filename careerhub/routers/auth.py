import re

from fastapi import APIRouter, Depends, Request, status
from pymongo.errors import DuplicateKeyError, PyMongoError

from careerhub.dependencies import get_mongo, get_settings
from careerhub.models.response import AuthResponse, UserPublic
from careerhub.models.schemas import LoginPayload, SignupPayload, UserModel
from careerhub.services.auth import create_access_token, hash_password, verify_password
from careerhub.services.db import MongoService
from careerhub.utils.exceptions import ConflictError, PersistenceError, ValidationError
from careerhub.utils.logging_config import get_logger
from careerhub.utils.settings import Settings

router = APIRouter()
logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _public(user: dict) -> UserPublic:
    return UserPublic(
        name=user["name"],
        email=user["email"],
        profileImage=user.get("profileImage", "/default.jpg"),
        plan=user.get("plan", "Free"),
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupPayload,
    request: Request,
    mongo: MongoService = Depends(get_mongo),
    settings: Settings = Depends(get_settings),
):
    """Create an account and return a session token"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(f"Signup request received for {payload.email}", extra={"request_id": request_id})

    if not payload.name or not payload.email or not payload.password:
        raise ValidationError("Name, email, and password are required")
    if not EMAIL_RE.match(payload.email):
        raise ValidationError("Invalid email format", field="email", value=payload.email)

    try:
        if await mongo.users.find_one({"email": payload.email}):
            raise ConflictError("Email already exists", field="email")

        user = UserModel(
            name=payload.name,
            email=payload.email,
            password=hash_password(payload.password),
        )
        doc = user.model_dump(exclude={"id"})
        result = await mongo.users.insert_one(doc)
    except DuplicateKeyError as e:
        raise ConflictError("Email already exists", field="email", cause=e) from e
    except PyMongoError as e:
        logger.error(f"Signup error: {e}", extra={"request_id": request_id})
        raise PersistenceError("Failed to create account", operation="insert_one", collection="users", cause=e) from e

    token = create_access_token(str(result.inserted_id), settings)
    logger.info(f"User registered: {payload.email}", extra={"request_id": request_id})
    return AuthResponse(user=_public(doc), token=token)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginPayload,
    request: Request,
    mongo: MongoService = Depends(get_mongo),
    settings: Settings = Depends(get_settings),
):
    """Exchange credentials for a session token"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(f"Login request received for {payload.email}", extra={"request_id": request_id})

    if not payload.email or not payload.password:
        raise ValidationError("Email and password are required")

    try:
        user = await mongo.users.find_one({"email": payload.email})
    except PyMongoError as e:
        logger.error(f"Login error: {e}", extra={"request_id": request_id})
        raise PersistenceError("Failed to log in", operation="find_one", collection="users", cause=e) from e

    if not user or not verify_password(payload.password, user.get("password", "")):
        raise ValidationError("Invalid email or password")

    token = create_access_token(str(user["_id"]), settings)
    return AuthResponse(user=_public(user), token=token)
