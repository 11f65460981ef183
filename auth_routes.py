import logging
import re
from typing import List, Optional, Tuple

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import get_db, objid
from errors import Conflict, NotFound, Unauthorized, ValidationFailed
from schemas import Channel, LoginRequest, ProfileUpdateRequest, SignupRequest, User, utcnow
from security import CurrentUser, create_token, get_current_user, hash_password, verify_password
from settings import settings

router = APIRouter(tags=["Auth"])
logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_MIN, USERNAME_MAX = 3, 30
PASSWORD_MIN = 6


def validate_signup(payload: SignupRequest) -> List[str]:
    """Return every failing signup rule, in field order."""
    errors = []
    username = (payload.username or "").strip()
    if len(username) < USERNAME_MIN:
        errors.append(f"Username must be at least {USERNAME_MIN} characters long")
    elif len(username) > USERNAME_MAX:
        errors.append(f"Username must be at most {USERNAME_MAX} characters long")
    elif not USERNAME_RE.match(username):
        errors.append("Username may only contain letters, numbers and underscores")

    if not payload.email or not EMAIL_RE.match(payload.email.strip()):
        errors.append("Valid email is required")

    if not payload.password or len(payload.password) < PASSWORD_MIN:
        errors.append(f"Password must be at least {PASSWORD_MIN} characters long")
    return errors


def public_user(user: dict) -> dict:
    """User projection safe to send to clients (never includes the hash)."""
    channel_id = user.get("channel_id")
    return {
        "id": str(user["_id"]),
        "username": user["username"],
        "email": user["email"],
        "avatar": user.get("avatar") or settings.DEFAULT_AVATAR,
        "channel_id": str(channel_id) if channel_id else None,
    }


def _conflict_for(db: Database, email: str, username: str) -> Optional[Conflict]:
    existing = db["user"].find_one({"$or": [{"email": email}, {"username": username}]})
    if not existing:
        return None
    if existing.get("email") == email:
        return Conflict("Email already in use", field="email")
    return Conflict("Username already taken", field="username")


def _create_default_channel(db: Database, user_id: ObjectId, username: str, session=None) -> ObjectId:
    channel = Channel(
        user_id=user_id,
        name=username,
        description=f"{username}'s channel",
        avatar=settings.DEFAULT_CHANNEL_AVATAR,
        banner=settings.DEFAULT_BANNER,
    )
    return db["channel"].insert_one(channel.to_document(), session=session).inserted_id


def _insert_account(db: Database, user: User, session=None) -> Tuple[ObjectId, ObjectId]:
    user_id = db["user"].insert_one(user.to_document(), session=session).inserted_id
    channel_id = _create_default_channel(db, user_id, user.username, session=session)
    db["user"].update_one({"_id": user_id}, {"$set": {"channel_id": channel_id}}, session=session)
    return user_id, channel_id


def create_account(db: Database, user: User) -> Tuple[ObjectId, ObjectId]:
    """Create the user and its channel; either both exist afterwards or neither does."""
    if settings.USE_TRANSACTIONS:
        with db.client.start_session() as session:
            return session.with_transaction(lambda s: _insert_account(db, user, session=s))

    user_id = db["user"].insert_one(user.to_document()).inserted_id
    try:
        channel_id = _create_default_channel(db, user_id, user.username)
        db["user"].update_one({"_id": user_id}, {"$set": {"channel_id": channel_id}})
    except Exception:
        logger.warning("Channel creation failed for %s, rolling back user %s", user.username, user_id)
        db["channel"].delete_many({"user_id": user_id})
        db["user"].delete_one({"_id": user_id})
        raise
    return user_id, channel_id


# -------------------- Auth --------------------
@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, db: Database = Depends(get_db)):
    errors = validate_signup(payload)
    if errors:
        raise ValidationFailed(errors)

    username = payload.username.strip()
    email = payload.email.strip().lower()

    conflict = _conflict_for(db, email, username)
    if conflict:
        raise conflict

    user = User(username=username, email=email, password_hash=hash_password(payload.password))
    try:
        user_id, _ = create_account(db, user)
    except DuplicateKeyError:
        # lost a race with a concurrent signup
        raise _conflict_for(db, email, username) or Conflict("Account already exists")

    logger.info("New user signed up: %s", username)
    created = db["user"].find_one({"_id": user_id})
    return {"token": create_token(user_id), "user": public_user(created)}


@router.post("/login")
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    if not payload.email or not payload.password:
        raise ValidationFailed("Email and password are required")

    email = payload.email.strip().lower()
    logger.info("Login attempt: %s", email)
    user = db["user"].find_one({"email": email})
    if not user or not verify_password(payload.password, user.get("password_hash")):
        # same answer for unknown account and wrong password
        logger.info("Login failed: %s", email)
        raise Unauthorized("Invalid credentials")

    return {"token": create_token(user["_id"]), "user": public_user(user)}


@router.get("/me")
def me(current: CurrentUser = Depends(get_current_user), db: Database = Depends(get_db)):
    user = db["user"].find_one({"_id": objid(current.id, "User")})
    if not user:
        raise NotFound("User not found")
    return public_user(user)


@router.patch("/me")
def update_me(
    payload: ProfileUpdateRequest,
    current: CurrentUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    if not payload.avatar:
        raise ValidationFailed("Avatar URL is required")
    db["user"].update_one(
        {"_id": objid(current.id, "User")},
        {"$set": {"avatar": payload.avatar, "updated_at": utcnow()}},
    )
    return public_user(db["user"].find_one({"_id": objid(current.id, "User")}))
