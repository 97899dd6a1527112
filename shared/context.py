"""
Client context: the settings, token store, API client and notifier that the
controller, list stores and moderation queue are constructed with.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from shared.api import ApiClient
from shared.config import ClientSettings
from shared.token_store import FileTokenStore

logger = logging.getLogger(__name__)


class Notifier:
    """Transient user notifications. The default just logs."""

    def info(self, message: str) -> None:
        logger.info(message)

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.error(message)


@dataclass
class ClientContext:
    settings: ClientSettings
    token_store: object
    api: ApiClient
    notifier: Notifier = field(default_factory=Notifier)
    user: Optional[object] = None  # shared.models.User once signed in

    @property
    def user_id(self):
        return self.user.id if self.user is not None else None

    @classmethod
    def create(cls, settings: Optional[ClientSettings] = None, notifier: Optional[Notifier] = None) -> 'ClientContext':
        """Wire a context from environment settings with a file token store."""
        settings = settings or ClientSettings.from_env()
        token_store = FileTokenStore(settings.config_dir)
        return cls(
            settings=settings,
            token_store=token_store,
            api=ApiClient(settings, token_store),
            notifier=notifier or Notifier(),
        )
