"""
REST client for the Soundstage backend.
Every call goes through one requests.Session; authenticated calls carry
``Authorization: Bearer <token>`` read from the token store at call time.
"""

import logging
from contextlib import ExitStack
from typing import Any, Dict, List, Optional

import requests

from shared.config import ClientSettings
from shared.constants import TOKEN_KEY
from shared.errors import ApiError

logger = logging.getLogger(__name__)


def error_message(response: requests.Response, fallback: str) -> str:
    """
    Human readable message for a failed response.
    Prefers a JSON ``message`` field, then the raw body text, then ``fallback``.
    """
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return fallback
    text = (response.text or "").strip()
    return text or fallback


class ApiClient:
    """Thin wrapper over the backend endpoints. Returns decoded JSON."""

    def __init__(self, settings: ClientSettings, token_store, session: Optional[requests.Session] = None):
        self.settings = settings
        self.token_store = token_store
        self.session = session or requests.Session()

    def _auth_headers(self) -> Dict[str, str]:
        token = self.token_store.get(TOKEN_KEY)
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, path: str, fallback: str, auth: bool = True, **kwargs) -> Any:
        url = f"{self.settings.api_url}{path}"
        headers = dict(kwargs.pop("headers", None) or {})
        if auth:
            headers.update(self._auth_headers())

        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.settings.timeout, **kwargs
            )
        except requests.Timeout as e:
            raise ApiError(f"{fallback}: request timed out") from e
        except requests.RequestException as e:
            raise ApiError(f"{fallback}: {e}") from e

        if not response.ok:
            message = error_message(response, fallback)
            logger.warning("%s %s failed with %s: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    # Auth & profile

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._request(
            "POST", "/auth/login", "Login failed", auth=False,
            json={"email": email, "password": password},
        )

    def register(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        return self._request(
            "POST", "/auth/register", "Registration failed", auth=False,
            json={"email": email, "password": password, "full_name": full_name},
        )

    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", "/profile", "Could not load profile")

    def update_profile(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", "/profile", "Could not update profile", json=data)

    def request_artist(self, artist_name: str, bio: str) -> Dict[str, Any]:
        return self._request(
            "POST", "/profile/artist-request", "Artist request failed",
            json={"artist_name": artist_name, "bio": bio},
        )

    def get_user(self, user_id) -> Dict[str, Any]:
        return self._request("GET", f"/users/{user_id}", "Could not load user")

    # Tracks

    def get_tracks(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/tracks", "Could not load tracks") or []

    def get_track(self, track_id) -> Dict[str, Any]:
        return self._request("GET", f"/tracks/{track_id}", "Could not load track")

    def get_artist_tracks(self, artist_id) -> List[Dict[str, Any]]:
        return self._request("GET", f"/artists/{artist_id}/tracks", "Could not load artist tracks") or []

    def record_play(self, track_id) -> Any:
        return self._request("POST", f"/tracks/{track_id}/play", "Could not record play")

    def upload_track(self, form) -> Dict[str, Any]:
        """Multipart upload of a validated TrackUploadForm."""
        with ExitStack() as stack:
            files = {}
            for name, upload in (("audio", form.audio), ("cover", form.cover)):
                if upload is None:
                    continue
                handle = stack.enter_context(open(upload.path, "rb"))
                files[name] = (upload.filename, handle, upload.mime_type)
            return self._request(
                "POST", "/tracks", "Track upload failed",
                data=form.form_fields(), files=files,
            )

    # Likes

    def get_track_likes(self, track_id) -> List[Dict[str, Any]]:
        return self._request("GET", f"/tracks/{track_id}/likes", "Could not load likes") or []

    def like_track(self, track_id) -> Any:
        return self._request("POST", f"/tracks/{track_id}/like", "Could not like track")

    def unlike_track(self, track_id) -> Any:
        return self._request("DELETE", f"/tracks/{track_id}/like", "Could not remove like")

    # Favorites

    def get_favorites(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/favorites", "Could not load favourites") or []

    def add_favorite(self, track_id) -> Any:
        return self._request("POST", f"/tracks/{track_id}/favorite", "Could not add to favourites")

    def remove_favorite(self, track_id) -> Any:
        return self._request("DELETE", f"/tracks/{track_id}/favorite", "Could not remove from favourites")

    # Moderation

    def get_pending(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/moderation/pending", "Could not load moderation queue") or []

    def approve(self, id_field: str, item_id) -> Any:
        return self._request(
            "POST", "/moderation/approve", "Approve failed",
            json={id_field: item_id},
        )

    def reject(self, id_field: str, item_id, reason: str) -> Any:
        return self._request(
            "POST", "/moderation/reject", "Reject failed",
            json={id_field: item_id, "reason": reason},
        )
