# storefront/services/session_store.py
import json

import redis

from storefront.domain.models import AuthSession
from storefront.utils.logging import get_logger
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL

logger = get_logger(__name__)

DEFAULT_TTL = 60 * 60


class SessionStore:
    """
    -persisting the auth session between restarts
    -nothing but the session lives here, the cart is always re-read from the backend
    -keys expire together with the access token
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(key: str) -> str:
        return f"session:{key}"

    @redis_retry()
    def save(self, key: str, session: AuthSession) -> bool:
        ttl = session.expires_in or DEFAULT_TTL
        logger.info(f"Persist session {self._key(key)} for {ttl}s")
        return bool(self.redis.set(
            name=self._key(key),
            value=session.model_dump_json(),
            ex=ttl,
        ))

    @redis_retry()
    def load(self, key: str) -> AuthSession | None:
        raw = self.redis.get(self._key(key))
        if raw is None:
            return None
        try:
            return AuthSession.model_validate(json.loads(raw))
        except ValueError:
            logger.warning(f"Dropping unreadable session {self._key(key)}")
            self.redis.delete(self._key(key))
            return None

    @redis_retry()
    def clear(self, key: str) -> bool:
        logger.info(f"Clear session {self._key(key)}")
        return bool(self.redis.delete(self._key(key)))
