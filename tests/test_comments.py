from bson import ObjectId


def test_add_comment_copies_author_details(client, signup, upload, auth):
    owner = signup("alice")
    fan = signup("bob")
    video = upload(owner)

    r = client.post(f"/videos/{video['id']}/comments", json={"text": "Great video"}, headers=auth(fan["token"]))

    assert r.status_code == 201
    comment = r.json()
    assert comment["text"] == "Great video"
    assert comment["user_id"] == fan["user"]["id"]
    assert comment["username"] == "bob"
    assert comment["id"]


def test_comment_author_name_is_not_refreshed(client, signup, upload, auth):
    owner = signup("alice")
    video = upload(owner)
    client.post(f"/videos/{video['id']}/comments", json={"text": "hi"}, headers=auth(owner["token"]))
    client.patch("/auth/me", json={"avatar": "https://img.example.com/new.png"}, headers=auth(owner["token"]))

    comment = client.get(f"/videos/{video['id']}").json()["comments"][0]

    assert comment["avatar"] != "https://img.example.com/new.png"
    assert comment["user"]["avatar"] == "https://img.example.com/new.png"
    assert comment["user"]["username"] == "alice"


def test_add_comment_to_missing_video(client, signup, auth):
    account = signup()

    r = client.post(f"/videos/{ObjectId()}/comments", json={"text": "hello"}, headers=auth(account["token"]))

    assert r.status_code == 404


def test_add_comment_requires_text(client, signup, upload, auth):
    account = signup()
    video = upload(account)

    r = client.post(f"/videos/{video['id']}/comments", json={"text": "   "}, headers=auth(account["token"]))

    assert r.status_code == 400


def test_author_edits_comment(client, signup, upload, auth):
    owner = signup()
    video = upload(owner)
    comment = client.post(f"/videos/{video['id']}/comments", json={"text": "frist"}, headers=auth(owner["token"])).json()

    r = client.put(
        f"/videos/{video['id']}/comments/{comment['id']}",
        json={"text": "first"},
        headers=auth(owner["token"]),
    )

    assert r.status_code == 200
    assert r.json()["text"] == "first"
    assert r.json()["updated_at"] >= comment["updated_at"]
    stored = client.get(f"/videos/{video['id']}").json()["comments"]
    assert [c["text"] for c in stored] == ["first"]


def test_video_owner_cannot_edit_or_delete_others_comment(client, signup, upload, auth):
    owner = signup("alice")
    fan = signup("bob")
    video = upload(owner)
    comment = client.post(f"/videos/{video['id']}/comments", json={"text": "mine"}, headers=auth(fan["token"])).json()
    url = f"/videos/{video['id']}/comments/{comment['id']}"

    edited = client.put(url, json={"text": "hijacked"}, headers=auth(owner["token"]))
    deleted = client.delete(url, headers=auth(owner["token"]))

    assert edited.status_code == 403
    assert edited.json()["message"] == "Not authorized to edit this comment"
    assert deleted.status_code == 403
    assert client.get(f"/videos/{video['id']}").json()["comments"][0]["text"] == "mine"


def test_author_deletes_comment(client, signup, upload, auth):
    owner = signup()
    video = upload(owner)
    headers = auth(owner["token"])
    keep = client.post(f"/videos/{video['id']}/comments", json={"text": "keep"}, headers=headers).json()
    drop = client.post(f"/videos/{video['id']}/comments", json={"text": "drop"}, headers=headers).json()

    r = client.delete(f"/videos/{video['id']}/comments/{drop['id']}", headers=headers)

    assert r.status_code == 200
    remaining = client.get(f"/videos/{video['id']}").json()["comments"]
    assert [c["id"] for c in remaining] == [keep["id"]]


def test_missing_comment(client, signup, upload, auth):
    owner = signup()
    video = upload(owner)

    r = client.delete(f"/videos/{video['id']}/comments/{ObjectId()}", headers=auth(owner["token"]))

    assert r.status_code == 404
    assert r.json()["message"] == "Comment not found"
