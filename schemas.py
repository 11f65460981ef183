"""
Database Schemas for the Video Sharing backend

Each document model maps to a MongoDB collection. The collection name is the lowercase of the class name.

Collections:
- User -> user
- Channel -> channel
- Video -> video (comments are embedded, see Comment)

Request bodies accepted by the API live at the bottom of this module.
"""

from datetime import datetime, timezone
from typing import List, Optional

from bson import ObjectId
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_document(self) -> dict:
        return self.model_dump()


class User(Document):
    username: str = Field(..., min_length=3, max_length=30)
    email: str
    password_hash: str = Field(..., description="Bcrypt hash")
    avatar: Optional[str] = None
    channel_id: Optional[ObjectId] = None


class Channel(Document):
    user_id: ObjectId = Field(..., description="Owner user id, unique per channel")
    name: str = Field(..., min_length=1, max_length=50)
    description: str = Field("", max_length=500)
    avatar: Optional[str] = None
    banner: Optional[str] = None
    subscribers: List[ObjectId] = Field(default_factory=list)
    subscriber_count: int = 0
    total_views: int = 0


class Comment(Document):
    id: ObjectId = Field(default_factory=ObjectId, serialization_alias="_id")
    text: str = Field(..., min_length=1)
    user_id: ObjectId
    username: str
    avatar: Optional[str] = None

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class Video(Document):
    user_id: ObjectId
    channel_id: ObjectId
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=5000)
    video_url: str
    thumbnail_url: Optional[str] = None
    views: int = 0
    likes: List[ObjectId] = Field(default_factory=list)
    dislikes: List[ObjectId] = Field(default_factory=list)
    comments: list = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    duration: Optional[str] = None


# -------------------- Requests --------------------

class SignupRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    avatar: Optional[str] = None


class ChannelCreateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = None


class ChannelUpdateRequest(ChannelCreateRequest):
    pass


class VideoCreateRequest(BaseModel):
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    video_url: Optional[str] = Field(None, validation_alias=AliasChoices("url", "video_url", "videoUrl"))
    thumbnail_url: Optional[str] = Field(None, validation_alias=AliasChoices("thumbnail", "thumbnail_url"))
    channel_id: Optional[str] = Field(None, validation_alias=AliasChoices("channel_id", "channelId"))
    categories: List[str] = Field(default_factory=list)
    duration: Optional[str] = None


class VideoUpdateRequest(BaseModel):
    action: Optional[str] = Field(None, description="like | unlike | dislike | undislike")
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)


class CommentRequest(BaseModel):
    text: Optional[str] = None
