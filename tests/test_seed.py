from seed import SAMPLE_VIDEOS, seed_database


def test_seed_is_repeatable(db):
    assert seed_database(db) == len(SAMPLE_VIDEOS)
    assert seed_database(db) == 0

    user = db["user"].find_one({"username": "demo"})
    assert db["channel"].count_documents({"user_id": user["_id"]}) == 1
    assert db["video"].count_documents({"channel_id": user["channel_id"]}) == len(SAMPLE_VIDEOS)


def test_seeded_videos_are_listed(client, db):
    seed_database(db)

    videos = client.get("/videos").json()

    assert {v["url"] for v in videos} == {s["video_url"] for s in SAMPLE_VIDEOS}
    assert all(v["username"] == "demo" for v in videos)
