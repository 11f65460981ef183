"""
HTTP client for the video sharing API.

Keeps the signed-in session (token + user) and sends it as a bearer token.
Feed reloads are throttled through a FeedState owned by the caller.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


class ApiClientError(Exception):
    def __init__(self, status_code: int, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


@dataclass
class FeedState:
    """Feed cache plus the minimum number of seconds between reloads."""
    min_interval: float = 1.0
    last_load_time: Optional[float] = None
    videos: List[dict] = field(default_factory=list)

    def due(self, now: float) -> bool:
        return self.last_load_time is None or now - self.last_load_time >= self.min_interval


class VideoShareClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, http: Optional[httpx.Client] = None, timeout: float = 10.0):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None

    # -------------------- Session --------------------

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _store_session(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if not data.get("token"):
            raise ApiClientError(500, "Invalid response format", data)
        self.token = data["token"]
        self.user = {**data["user"], "channel_id": data["user"].get("channel_id")}
        return {"token": self.token, "user": self.user}

    def logout(self) -> None:
        self.token = None
        self.user = None

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.http.request(method, path, headers=headers, **kwargs)

        if response.is_success:
            return response.json()

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        message = payload.get("message") or response.reason_phrase
        logger.warning("%s %s failed: %s %s", method, path, response.status_code, message)
        if response.status_code == 401:
            # the stored token is no longer usable
            self.logout()
        raise ApiClientError(response.status_code, message, payload)

    # -------------------- Auth --------------------

    def signup(self, username: str, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/signup", json={"username": username, "email": email, "password": password})
        return self._store_session(data)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        return self._store_session(data)

    # -------------------- Videos --------------------

    def list_videos(self) -> List[dict]:
        return self._request("GET", "/videos")

    def refresh_feed(self, state: FeedState, now: Optional[float] = None) -> List[dict]:
        """Reload the feed unless the last reload was less than min_interval ago."""
        now = time.monotonic() if now is None else now
        if not state.due(now):
            return state.videos

        state.last_load_time = now
        unique: Dict[str, dict] = {}
        for video in self.list_videos():
            key = f"{video.get('id')}-{video.get('video_url')}"
            unique.setdefault(key, video)
        state.videos = list(unique.values())
        return state.videos

    def search_videos(self, q: Optional[str] = None, category: Optional[str] = None, page: int = 1, limit: int = 10):
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if q:
            params["q"] = q
        if category:
            params["category"] = category
        return self._request("GET", "/videos/search", params=params)

    def get_video(self, video_id: str) -> dict:
        data = self._request("GET", f"/videos/{video_id}")
        data["video_url"] = data.get("video_url") or data.get("url")
        return data

    def add_video(self, title: str, url: str, channel_id: str, **fields) -> dict:
        return self._request("POST", "/videos", json={"title": title, "url": url, "channel_id": channel_id, **fields})

    def update_video(self, video_id: str, **fields) -> dict:
        return self._request("PATCH", f"/videos/{video_id}", json=fields)

    def react(self, video_id: str, action: str) -> dict:
        return self._request("PATCH", f"/videos/{video_id}", json={"action": action})

    def delete_video(self, video_id: str) -> dict:
        return self._request("DELETE", f"/videos/{video_id}")

    # -------------------- Comments --------------------

    def add_comment(self, video_id: str, text: str) -> dict:
        return self._request("POST", f"/videos/{video_id}/comments", json={"text": text})

    def edit_comment(self, video_id: str, comment_id: str, text: str) -> dict:
        return self._request("PUT", f"/videos/{video_id}/comments/{comment_id}", json={"text": text})

    def delete_comment(self, video_id: str, comment_id: str) -> dict:
        return self._request("DELETE", f"/videos/{video_id}/comments/{comment_id}")

    # -------------------- Channels --------------------

    def create_channel(self, name: Optional[str] = None, description: Optional[str] = None, avatar: Optional[str] = None) -> dict:
        """Create the caller's channel; an existing channel is returned as-is."""
        body = {k: v for k, v in {"name": name, "description": description, "avatar": avatar}.items() if v is not None}
        try:
            data = self._request("POST", "/channels", json=body)
        except ApiClientError as e:
            if e.status_code == 400 and e.payload.get("channel"):
                return {"success": True, "channel": e.payload["channel"], "message": "Existing channel found"}
            raise
        if self.user is not None:
            self.user["channel_id"] = data["channel"]["id"]
        return {"success": True, "channel": data["channel"], "message": data.get("message")}

    def get_channel(self, channel_id: str) -> dict:
        return self._request("GET", f"/channels/{channel_id}")

    def update_channel(self, channel_id: str, **fields) -> dict:
        return self._request("PATCH", f"/channels/{channel_id}", json=fields)
