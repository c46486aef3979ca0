from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt as pyjwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlmodel import Session
from werkzeug.security import check_password_hash, generate_password_hash

from ragebot import config
from ragebot.db import get_session
from ragebot.errors import Unauthorized
from ragebot.models import User
from ragebot.store import get_user

ALGORITHM = "HS256"

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def create_token(user: User, secret: str = None, expires_minutes: int = None) -> str:
    # sub is the user id, secret and lifetime default to the configured ones
    now = datetime.now(timezone.utc)
    lifetime = expires_minutes if expires_minutes is not None else config.JWT_EXPIRES_MINUTES
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=lifetime)).timestamp()),
    }
    return pyjwt.encode(payload, secret or config.JWT_SECRET, algorithm=ALGORITHM)


def decode_token(token: str, secret: str = None) -> Dict[str, Any]:
    # raises jwt.ExpiredSignatureError or jwt.InvalidTokenError
    return pyjwt.decode(
        token,
        secret or config.JWT_SECRET,
        algorithms=[ALGORITHM],
        options={"verify_exp": True},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    if credentials is None:
        raise Unauthorized("No token provided")

    try:
        payload = decode_token(credentials.credentials)
    except pyjwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except pyjwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise Unauthorized("Invalid token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token")

    user = get_user(session, user_id)
    if user is None:
        logger.warning(f"Token for unknown user {user_id}")
        raise Unauthorized("User not found")
    return user
