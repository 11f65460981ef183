import logging
from typing import Any, Dict, Iterable, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Depends, Query
from pymongo import ReturnDocument
from pymongo.database import Database

from database import NEWEST_FIRST, get_db, objid, search_collection, to_str_id
from errors import NotFound, ValidationFailed
from schemas import Comment, CommentRequest, Video, VideoCreateRequest, VideoUpdateRequest, utcnow
from security import CurrentUser, get_current_user, require_owner
from settings import settings

router = APIRouter(tags=["Videos"])
logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "description", "categories")


# -------------------- Helpers --------------------

def video_out(video: dict) -> dict:
    """Serialize a video, emitting the source URL under both of its names."""
    item = to_str_id(video)
    item["url"] = item.get("video_url")
    item["thumbnail"] = item.get("thumbnail_url")
    return item


def users_by_id(db: Database, ids: Iterable[Any]) -> Dict[str, dict]:
    ids = [i for i in set(ids) if i is not None]
    if not ids:
        return {}
    cursor = db["user"].find({"_id": {"$in": ids}}, {"username": 1, "avatar": 1})
    return {str(u["_id"]): u for u in cursor}


def channels_by_id(db: Database, ids: Iterable[Any]) -> Dict[str, dict]:
    ids = [i for i in set(ids) if i is not None]
    if not ids:
        return {}
    cursor = db["channel"].find({"_id": {"$in": ids}}, {"name": 1, "avatar": 1})
    return {str(c["_id"]): c for c in cursor}


def decorate_videos(db: Database, videos: list) -> list:
    """Attach uploader and channel display fields to serialized videos."""
    users = users_by_id(db, (v.get("user_id") for v in videos))
    channels = channels_by_id(db, (v.get("channel_id") for v in videos))
    out = []
    for v in videos:
        item = video_out(v)
        user = users.get(str(v.get("user_id")), {})
        channel = channels.get(str(v.get("channel_id")), {})
        item["username"] = user.get("username")
        item["user_avatar"] = user.get("avatar") or settings.DEFAULT_AVATAR
        item["channel_name"] = channel.get("name")
        item["channel_avatar"] = channel.get("avatar")
        out.append(item)
    return out


def dedupe_by_url(videos: list) -> list:
    seen = set()
    unique = []
    for v in videos:
        if v.get("video_url") in seen:
            continue
        seen.add(v.get("video_url"))
        unique.append(v)
    return unique


def reaction_update(action: str, user_oid: ObjectId) -> dict:
    """
    Build the atomic update for a reaction toggle. Liking pulls the user
    from dislikes in the same operation (and vice versa) so the two sets
    never overlap; $addToSet makes repeated likes a no-op.
    """
    if action == "like":
        return {"$pull": {"dislikes": user_oid}, "$addToSet": {"likes": user_oid}}
    if action == "unlike":
        return {"$pull": {"likes": user_oid}}
    if action == "dislike":
        return {"$pull": {"likes": user_oid}, "$addToSet": {"dislikes": user_oid}}
    if action == "undislike":
        return {"$pull": {"dislikes": user_oid}}
    raise ValidationFailed("Invalid action")


def find_comment(video: dict, comment_id: str) -> Optional[dict]:
    for c in video.get("comments", []):
        if str(c.get("_id")) == comment_id:
            return c
    return None


def _required_text(payload: CommentRequest) -> str:
    text = (payload.text or "").strip()
    if not text:
        raise ValidationFailed("Comment text is required")
    return text


# -------------------- Videos --------------------
@router.get("")
def list_videos(db: Database = Depends(get_db)):
    videos = dedupe_by_url(list(db["video"].find({}).sort(NEWEST_FIRST)))
    logger.debug("Sending %d unique videos", len(videos))
    return decorate_videos(db, videos)


@router.get("/search")
def search_videos(
    q: Optional[str] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    filters = {"categories": category} if category else None
    found = search_collection(
        db["video"],
        search_text=q,
        search_fields=SEARCH_FIELDS,
        filters=filters,
        limit=limit,
        page=page,
    )
    return {"results": decorate_videos(db, found["results"]), "pagination": found["pagination"]}


@router.get("/{video_id}")
def get_video(video_id: str, db: Database = Depends(get_db)):
    # every fetch counts as a view, repeats included
    video = db["video"].find_one_and_update(
        {"_id": objid(video_id, "Video")},
        {"$inc": {"views": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if not video:
        raise NotFound("Video not found")
    db["channel"].update_one({"_id": video.get("channel_id")}, {"$inc": {"total_views": 1}})

    comments = video.get("comments", [])
    users = users_by_id(db, [video.get("user_id")] + [c.get("user_id") for c in comments])

    payload = video_out(video)
    uploader = users.get(str(video.get("user_id")), {})
    payload["username"] = uploader.get("username")
    payload["user_avatar"] = uploader.get("avatar") or settings.DEFAULT_AVATAR
    for item, raw in zip(payload.get("comments", []), comments):
        author = users.get(str(raw.get("user_id")))
        item["user"] = {
            "id": str(author["_id"]),
            "username": author.get("username"),
            "avatar": author.get("avatar") or settings.DEFAULT_AVATAR,
        } if author else None
    return payload


@router.post("", status_code=201)
def create_video(
    payload: VideoCreateRequest,
    current: CurrentUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    title = (payload.title or "").strip()
    video_url = (payload.video_url or "").strip()
    if not title or not video_url or not payload.channel_id:
        raise ValidationFailed("Title, video URL, and channel ID are required")
    try:
        channel_oid = ObjectId(payload.channel_id)
    except InvalidId:
        raise ValidationFailed("Invalid channel ID")
    if not db["channel"].find_one({"_id": channel_oid}, {"_id": 1}):
        raise ValidationFailed("Invalid channel ID")

    video = Video(
        user_id=ObjectId(current.id),
        channel_id=channel_oid,
        title=title,
        description=payload.description or "",
        video_url=video_url,
        thumbnail_url=payload.thumbnail_url,
        categories=payload.categories,
        duration=payload.duration,
    )
    doc = video.to_document()
    doc["_id"] = db["video"].insert_one(doc).inserted_id
    logger.info("User %s uploaded video %s", current.username, doc["_id"])
    return video_out(doc)


@router.patch("/{video_id}")
def update_video(
    video_id: str,
    payload: VideoUpdateRequest,
    current: CurrentUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "Video")

    if payload.action is not None:
        # reactions are open to any signed-in user
        update = reaction_update(payload.action, ObjectId(current.id))
        video = db["video"].find_one_and_update({"_id": vid}, update, return_document=ReturnDocument.AFTER)
        if not video:
            raise NotFound("Video not found")
        return video_out(video)

    video = db["video"].find_one({"_id": vid}, {"user_id": 1})
    if not video:
        raise NotFound("Video not found")
    require_owner(current.id, video.get("user_id"), "Not authorized to edit this video")

    changes = {
        field: getattr(payload, field)
        for field in ("title", "description")
        if getattr(payload, field) is not None
    }
    if "title" in changes:
        changes["title"] = changes["title"].strip()
        if not changes["title"]:
            raise ValidationFailed("Video title cannot be empty")
    changes["updated_at"] = utcnow()
    video = db["video"].find_one_and_update({"_id": vid}, {"$set": changes}, return_document=ReturnDocument.AFTER)
    return video_out(video)


@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    current: CurrentUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "Video")
    video = db["video"].find_one({"_id": vid}, {"user_id": 1})
    if not video:
        raise NotFound("Video not found")
    require_owner(current.id, video.get("user_id"), "Not authorized to delete this video")

    # embedded comments go with the document
    db["video"].delete_one({"_id": vid})
    logger.info("User %s deleted video %s", current.username, video_id)
    return {"message": "Video deleted successfully"}


# -------------------- Comments --------------------
@router.post("/{video_id}/comments", status_code=201)
def add_comment(
    video_id: str,
    payload: CommentRequest,
    current: CurrentUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "Video")
    if not db["video"].find_one({"_id": vid}, {"_id": 1}):
        raise NotFound("Video not found")
    text = _required_text(payload)

    # author name/avatar are copied at creation time
    comment = Comment(
        text=text,
        user_id=ObjectId(current.id),
        username=current.username,
        avatar=current.avatar or settings.DEFAULT_AVATAR,
    ).to_document()
    result = db["video"].update_one({"_id": vid}, {"$push": {"comments": comment}})
    if result.matched_count == 0:
        raise NotFound("Video not found")
    return to_str_id(comment)


@router.put("/{video_id}/comments/{comment_id}")
def edit_comment(
    video_id: str,
    comment_id: str,
    payload: CommentRequest,
    current: CurrentUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "Video")
    video = db["video"].find_one({"_id": vid}, {"comments": 1})
    if not video:
        raise NotFound("Video not found")
    comment = find_comment(video, comment_id)
    if not comment:
        raise NotFound("Comment not found")
    require_owner(current.id, comment.get("user_id"), "Not authorized to edit this comment")
    text = _required_text(payload)

    now = utcnow()
    db["video"].update_one(
        {"_id": vid, "comments._id": comment["_id"]},
        {"$set": {"comments.$.text": text, "comments.$.updated_at": now}},
    )
    comment.update(text=text, updated_at=now)
    return to_str_id(comment)


@router.delete("/{video_id}/comments/{comment_id}")
def delete_comment(
    video_id: str,
    comment_id: str,
    current: CurrentUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "Video")
    video = db["video"].find_one({"_id": vid}, {"comments": 1})
    if not video:
        raise NotFound("Video not found")
    comment = find_comment(video, comment_id)
    if not comment:
        raise NotFound("Comment not found")
    require_owner(current.id, comment.get("user_id"), "Not authorized to delete this comment")

    db["video"].update_one({"_id": vid}, {"$pull": {"comments": {"_id": comment["_id"]}}})
    return {"message": "Comment deleted successfully"}
