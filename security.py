"""
Password hashing, bearer tokens and ownership checks.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt  # PyJWT
from fastapi import Depends, Header
from passlib.context import CryptContext
from pymongo.database import Database

from database import get_db, objid
from errors import Forbidden, NotFound, Unauthorized
from settings import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


# -------------------- Passwords --------------------

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(password, hashed)
    except ValueError:
        # unrecognised or corrupt hash
        return False


# -------------------- Tokens --------------------

def create_token(user_id: Any, issued_at: Optional[datetime] = None) -> str:
    """Sign a token whose only claim is the user id; it expires JWT_EXPIRE_HOURS later."""
    now = issued_at or datetime.now(timezone.utc)
    exp = now + timedelta(hours=settings.JWT_EXPIRE_HOURS)
    to_encode = {"user_id": str(user_id), "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "user_id"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")


def extract_token(authorization: Optional[str]) -> str:
    """Accept both `Bearer <token>` and a bare token."""
    if not authorization:
        raise Unauthorized("No auth token provided")
    token = authorization[7:] if authorization.startswith("Bearer ") else authorization
    token = token.strip()
    if not token:
        raise Unauthorized("Invalid token format")
    return token


@dataclass
class CurrentUser:
    id: str
    username: str
    email: str
    avatar: Optional[str] = None


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: Database = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token to the user it was issued for."""
    claims = decode_token(extract_token(authorization))
    try:
        user_oid = objid(claims.get("user_id"), "User")
    except NotFound:
        raise Unauthorized("Invalid token")
    user = db["user"].find_one({"_id": user_oid})
    if not user:
        raise Unauthorized("User not found")
    return CurrentUser(
        id=str(user["_id"]),
        username=user["username"],
        email=user["email"],
        avatar=user.get("avatar"),
    )


# -------------------- Ownership --------------------

def is_owner(user_id: Any, owner_id: Any) -> bool:
    if user_id is None or owner_id is None:
        return False
    return str(user_id) == str(owner_id)


def require_owner(user_id: Any, owner_id: Any, message: str = "Not authorized to modify this resource") -> None:
    if not is_owner(user_id, owner_id):
        raise Forbidden(message)
