"""
Password hashing and bearer token helpers
"""
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from careerhub.utils.exceptions import AuthorizationError
from careerhub.utils.settings import Settings


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_access_token(user_id: str, settings: Settings) -> str:
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    return jwt.encode(
        {"userId": user_id, "exp": expires},
        settings.signing_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str, settings: Settings) -> str:
    """User id carried by a valid token"""
    try:
        payload = jwt.decode(token, settings.signing_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        raise AuthorizationError(cause=e) from e
    user_id = payload.get("userId")
    if not user_id:
        raise AuthorizationError()
    return str(user_id)
