"""In-process registry of live swipe sessions."""

import random
from typing import Callable

from ..clients.tmdb_client import TMDBClient
from ..errors import SessionNotFoundError
from ..logging import get_logger
from ..store.settings_store import SettingsStore
from .coordinator import SwipeSession

logger = get_logger(__name__)


class SessionRegistry:
    """Live sessions for this process, keyed by session id."""

    def __init__(
        self,
        client: TMDBClient,
        store: SettingsStore,
        rng_factory: Callable[[], random.Random] | None = None,
    ):
        self.client = client
        self.store = store
        self.rng_factory = rng_factory or random.Random
        self._sessions: dict[str, SwipeSession] = {}

    def create(self) -> SwipeSession:
        session = SwipeSession(self.client, self.store, rng=self.rng_factory())
        self._sessions[session.session_id] = session
        logger.info('session.created', session_id=session.session_id)
        return session

    def get(self, session_id: str) -> SwipeSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(
                'Session not found', context={'session_id': session_id}
            ) from None

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
