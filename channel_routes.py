import logging

from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import NEWEST_FIRST, get_db, objid, to_str_id
from errors import Conflict, NotFound, ValidationFailed
from schemas import Channel, ChannelCreateRequest, ChannelUpdateRequest, utcnow
from security import CurrentUser, get_current_user, require_owner
from settings import settings
from video_routes import video_out

router = APIRouter(tags=["Channels"])
logger = logging.getLogger(__name__)


def already_has_channel(channel: dict) -> Conflict:
    # the existing channel rides along so clients can carry on with it
    return Conflict("User already has a channel", extra={"success": False, "channel": to_str_id(channel)})


@router.post("", status_code=201)
def create_channel(
    payload: ChannelCreateRequest,
    current: CurrentUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    user = db["user"].find_one({"_id": objid(current.id, "User")})
    if not user:
        raise NotFound("User not found")

    existing = db["channel"].find_one({"user_id": user["_id"]})
    if existing:
        raise already_has_channel(existing)

    channel = Channel(
        user_id=user["_id"],
        name=payload.name or f"{user['username']}'s Channel",
        description=payload.description or "",
        avatar=payload.avatar or user.get("avatar") or settings.DEFAULT_CHANNEL_AVATAR,
        banner=settings.DEFAULT_BANNER,
    )
    doc = channel.to_document()
    try:
        doc["_id"] = db["channel"].insert_one(doc).inserted_id
    except DuplicateKeyError:
        # a concurrent request created it first
        raise already_has_channel(db["channel"].find_one({"user_id": user["_id"]}))

    db["user"].update_one({"_id": user["_id"]}, {"$set": {"channel_id": doc["_id"], "updated_at": utcnow()}})
    logger.info("Channel %s created for %s", doc["_id"], user["username"])
    return {"success": True, "message": "Channel created successfully", "channel": to_str_id(doc)}


@router.get("/{channel_id}")
def get_channel(channel_id: str, db: Database = Depends(get_db)):
    channel = db["channel"].find_one({"_id": objid(channel_id, "Channel")})
    if not channel:
        raise NotFound("Channel not found")

    owner = db["user"].find_one({"_id": channel.get("user_id")}, {"username": 1, "avatar": 1}) or {}
    payload = to_str_id(channel)
    payload["username"] = owner.get("username")
    payload["user_avatar"] = owner.get("avatar") or settings.DEFAULT_AVATAR

    videos = []
    for v in db["video"].find({"user_id": channel.get("user_id")}).sort(NEWEST_FIRST):
        item = video_out(v)
        item["channel_name"] = channel.get("name")
        item["channel_avatar"] = channel.get("avatar")
        videos.append(item)
    return {"channel": payload, "videos": videos}


@router.patch("/{channel_id}")
def update_channel(
    channel_id: str,
    payload: ChannelUpdateRequest,
    current: CurrentUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    cid = objid(channel_id, "Channel")
    channel = db["channel"].find_one({"_id": cid}, {"user_id": 1})
    if not channel:
        raise NotFound("Channel not found")
    require_owner(current.id, channel.get("user_id"), "Not authorized to edit this channel")

    changes = {
        field: getattr(payload, field)
        for field in ("name", "description", "avatar")
        if getattr(payload, field) is not None
    }
    if "name" in changes and not changes["name"].strip():
        raise ValidationFailed("Channel name cannot be empty")
    changes["updated_at"] = utcnow()

    channel = db["channel"].find_one_and_update({"_id": cid}, {"$set": changes}, return_document=ReturnDocument.AFTER)
    return {"channel": to_str_id(channel)}
