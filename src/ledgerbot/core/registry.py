"""User registry: maps transport user ids to internal users."""

from __future__ import annotations

import logging
from typing import Union

from ledgerbot.core.models import User
from ledgerbot.core.ports import StoragePort

LOGGER = logging.getLogger(__name__)


class UserRegistry:
    """Resolve external ids to users, creating them on first contact."""

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    def resolve(self, external_id: Union[str, int]) -> User:
        """Return the user for external_id, registering it if needed.

        The storage performs the existence check and the insert atomically,
        so concurrent calls for a new id still produce a single user.
        """

        key = str(external_id)
        existing = self._storage.get_user(key)
        if existing is not None:
            return existing

        user, created = self._storage.register_user(key)
        if created:
            LOGGER.info("Registered user %s as id=%s", key, user.id)
        return user
