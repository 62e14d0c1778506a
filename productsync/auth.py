import asyncio
import logging
from typing import Optional

from .client import StoreClient
from .models import Session
from .outcome import Outcome, capture
from .session import SessionCache

logger = logging.getLogger(__name__)


class AuthRepository:
    """Email/password identity plus the locally cached current session."""

    def __init__(self, client: StoreClient, cache: SessionCache):
        self._client = client
        self._cache = cache

    def current_user(self) -> Optional[Session]:
        session = self._cache.load()
        self._client.set_api_key(session.token if session else None)
        return session

    async def login(self, email: str, password: str) -> Outcome[Session]:
        outcome = await capture(asyncio.to_thread(self._client.login, email.strip(), password))
        return self._remember(outcome)

    async def register(self, email: str, password: str) -> Outcome[Session]:
        outcome = await capture(asyncio.to_thread(self._client.register, email.strip(), password))
        return self._remember(outcome)

    def logout(self) -> None:
        self._cache.clear()
        self._client.set_api_key(None)

    def _remember(self, outcome: Outcome[Session]) -> Outcome[Session]:
        if outcome.is_success:
            self._cache.save(outcome.value)
            self._client.set_api_key(outcome.value.token)
            logger.info("signed in as %s", outcome.value.uid)
        return outcome
