"""
Populate a database with a demo account and a few sample videos.

    python seed.py
"""
import logging

from pymongo.database import Database

from auth_routes import create_account
from database import ensure_indexes, get_db
from schemas import User, Video
from security import hash_password

logger = logging.getLogger(__name__)

DEMO_USER = {"username": "demo", "email": "demo@example.com", "password": "demo123"}

SAMPLE_VIDEOS = [
    {
        "title": "Learn React in 30 Minutes",
        "description": "A quick tutorial to get started with React.",
        "video_url": "https://www.youtube.com/watch?v=Ke90Tje7VS0",
        "thumbnail_url": "https://i.ytimg.com/vi/Ke90Tje7VS0/maxresdefault.jpg",
        "views": 15200,
        "categories": ["react", "tutorial", "web"],
    },
    {
        "title": "Building a YouTube Clone",
        "description": "Complete guide to building a YouTube clone",
        "video_url": "https://www.youtube.com/watch?v=FkwfYbYjx9c",
        "thumbnail_url": "https://i.ytimg.com/vi/FkwfYbYjx9c/maxresdefault.jpg",
        "views": 25000,
        "categories": ["web", "tutorial"],
    },
    {
        "title": "Advanced JavaScript Concepts",
        "description": "Deep dive into JavaScript concepts",
        "video_url": "https://www.youtube.com/watch?v=8aGhZQkoFbQ",
        "thumbnail_url": "https://i.ytimg.com/vi/8aGhZQkoFbQ/maxresdefault.jpg",
        "views": 350000,
        "categories": ["javascript", "tutorial"],
    },
]


def seed_database(db: Database) -> int:
    """Insert the sample videos that are not present yet; returns how many were added."""
    ensure_indexes(db)

    user = db["user"].find_one({"email": DEMO_USER["email"]})
    if not user:
        account = User(
            username=DEMO_USER["username"],
            email=DEMO_USER["email"],
            password_hash=hash_password(DEMO_USER["password"]),
        )
        user_id, _ = create_account(db, account)
        user = db["user"].find_one({"_id": user_id})
        logger.info("Created demo user %s", DEMO_USER["username"])

    inserted = 0
    for sample in SAMPLE_VIDEOS:
        if db["video"].find_one({"video_url": sample["video_url"]}):
            continue
        video = Video(user_id=user["_id"], channel_id=user["channel_id"], **sample)
        db["video"].insert_one(video.to_document())
        inserted += 1

    logger.info("Seeded %d videos", inserted)
    return inserted


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_database(get_db())
