"""
Authentication session: login, registration, logout and profile restore.
The token is stored as-is under the ``token`` key; no protocol beyond that.
"""

import logging
from typing import Optional

from shared.constants import TOKEN_KEY
from shared.context import ClientContext
from shared.errors import ApiError, ValidationError
from shared.models import User
from shared.validation import ArtistRequestForm

logger = logging.getLogger(__name__)


class AuthSession:
    """Keeps ``context.user`` in step with the stored token."""

    def __init__(self, context: ClientContext):
        self.context = context

    @property
    def current_user(self) -> Optional[User]:
        return self.context.user

    @property
    def is_authenticated(self) -> bool:
        return self.context.user is not None

    def _accept(self, data: dict) -> User:
        token = data.get("token")
        if not token:
            raise ApiError("Server response did not include a token")
        self.context.token_store.set(TOKEN_KEY, token)
        self.context.user = User.from_dict(data.get("user") or {})
        return self.context.user

    def login(self, email: str, password: str) -> User:
        if not email or not password:
            raise ValidationError("Email and password are required", field="email")
        user = self._accept(self.context.api.login(email, password))
        self.context.notifier.success("Signed in")
        return user

    def register(self, email: str, password: str, full_name: str) -> User:
        if not email or not password:
            raise ValidationError("Email and password are required", field="email")
        user = self._accept(self.context.api.register(email, password, full_name))
        self.context.notifier.success("Account created")
        return user

    def restore(self) -> Optional[User]:
        """Load the profile for a stored token; a rejected token is dropped."""
        if not self.context.token_store.get(TOKEN_KEY):
            return None
        try:
            self.context.user = User.from_dict(self.context.api.get_profile())
        except ApiError as e:
            logger.info("Stored token rejected, signing out: %s", e)
            self.context.token_store.remove(TOKEN_KEY)
            self.context.user = None
        return self.context.user

    def logout(self) -> None:
        self.context.token_store.remove(TOKEN_KEY)
        self.context.user = None
        self.context.notifier.info("Signed out")

    def update_profile(self, **changes) -> User:
        self.context.user = User.from_dict(self.context.api.update_profile(changes))
        return self.context.user

    def request_artist(self, form: ArtistRequestForm) -> dict:
        form.validate()
        result = self.context.api.request_artist(form.artist_name.strip(), form.bio)
        self.context.notifier.success("Artist application sent for review")
        return result
