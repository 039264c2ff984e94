# storefront/services/identity.py
"""
Client for the hosted auth service (GoTrue-compatible REST endpoints).

One client holds at most one session. Listeners registered with
`on_auth_state_change` get (event, session) for SIGNED_IN, SIGNED_OUT and
TOKEN_RESTORED.
"""
import hashlib
from typing import Callable, Dict, List

import requests
from requests import RequestException

from storefront.domain.errors import AuthRequiredError, RemoteOperationError, ValidationError
from storefront.domain.models import AuthSession, User
from storefront.utils.logging import get_logger
from storefront.utils.retry import http_retry
from storefront.utils.settings import HTTP_TIMEOUT_SECONDS, SUPABASE_ANON_KEY, SUPABASE_URL

logger = get_logger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_RESTORED = "TOKEN_RESTORED"

AuthListener = Callable[[str, AuthSession | None], None]


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason
    return body.get("msg") or body.get("error_description") or body.get("message") or resp.reason


class IdentityClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        store=None,
        store_key: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.base_url = f"{(base_url or SUPABASE_URL).rstrip('/')}/auth/v1"
        self.api_key = api_key if api_key is not None else SUPABASE_ANON_KEY
        self.store = store
        self.store_key = store_key
        self.timeout = timeout
        self.http = session or requests.Session()
        self._session: AuthSession | None = None
        self._listeners: List[AuthListener] = []

    @classmethod
    def for_token(cls, access_token: str, **kwargs) -> "IdentityClient":
        """
        Client bound to a bearer token received from an API caller. A session
        persisted for the same token is picked up, so the user lookup is not
        repeated on every request.
        """
        client = cls(**kwargs)
        client._session = AuthSession(access_token=access_token)
        client.restore()
        return client

    # ------------------------------------------------------------- plumbing

    def _headers(self, token: str | None = None) -> Dict[str, str]:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _post(self, path: str, body: dict | None = None, params=None, token: str | None = None):
        url = f"{self.base_url}/{path}"
        logger.info(f"IdentityClient POST {url}")
        try:
            return self.http.post(
                url, json=body or {}, params=params, headers=self._headers(token), timeout=self.timeout
            )
        except RequestException as e:
            logger.error(f"IdentityClient POST {url} transport error: {e}")
            raise RemoteOperationError(f"Auth service unreachable: {e}") from e

    @http_retry()
    def _fetch_user(self, token: str) -> requests.Response:
        url = f"{self.base_url}/user"
        logger.info(f"IdentityClient GET {url}")
        return self.http.get(url, headers=self._headers(token), timeout=self.timeout)

    def _emit(self, event: str, session: AuthSession | None) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    def _key(self, session: AuthSession | None) -> str | None:
        if self.store_key:
            return self.store_key
        if session is None:
            return None
        # tokens are never used as keys in the clear
        return hashlib.sha256(session.access_token.encode()).hexdigest()

    def _persist(self, session: AuthSession) -> None:
        if self.store is not None:
            self.store.save(self._key(session), session)

    def _set_session(self, session: AuthSession, event: str) -> AuthSession:
        self._session = session
        self._persist(session)
        self._emit(event, session)
        return session

    # ------------------------------------------------------------- contract

    def get_session(self) -> AuthSession | None:
        return self._session

    def get_user(self) -> User | None:
        """Current user, None when signed out or the token is no longer valid."""
        if self._session is None:
            return None
        if self._session.user is not None:
            return self._session.user

        try:
            resp = self._fetch_user(self._session.access_token)
        except RequestException as e:
            logger.error(f"IdentityClient get_user gave up: {e}")
            raise RemoteOperationError(f"Auth service unreachable: {e}") from e

        if resp.status_code in (401, 403):
            return None
        if not resp.ok:
            raise RemoteOperationError(f"Auth lookup failed: {_error_message(resp)}", status_code=resp.status_code)
        user = User.model_validate(resp.json())
        self._session = self._session.model_copy(update={"user": user})
        self._persist(self._session)
        return user

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        resp = self._post("token", {"email": email, "password": password}, params={"grant_type": "password"})
        if resp.status_code in (400, 401):
            raise AuthRequiredError(_error_message(resp))
        if not resp.ok:
            raise RemoteOperationError(f"Sign in failed: {_error_message(resp)}", status_code=resp.status_code)
        logger.info(f"Signed in {email}")
        return self._set_session(AuthSession.model_validate(resp.json()), SIGNED_IN)

    def sign_up(self, email: str, password: str, attributes: dict | None = None) -> User:
        resp = self._post("signup", {"email": email, "password": password, "data": attributes or {}})
        if 400 <= resp.status_code < 500:
            raise ValidationError(_error_message(resp), field="email")
        if not resp.ok:
            raise RemoteOperationError(f"Sign up failed: {_error_message(resp)}", status_code=resp.status_code)

        body = resp.json()
        # with autoconfirm the service answers with a full session, otherwise with the bare user
        if body.get("access_token"):
            session = self._set_session(AuthSession.model_validate(body), SIGNED_IN)
            return session.user
        return User.model_validate(body.get("user") or body)

    def sign_out(self) -> None:
        session = self._session
        self._session = None
        if self.store is not None and self._key(session):
            self.store.clear(self._key(session))
        if session is not None:
            resp = self._post("logout", token=session.access_token)
            if not resp.ok and resp.status_code not in (401, 403, 404):
                logger.error(f"Remote sign out failed with {resp.status_code}")
        self._emit(SIGNED_OUT, None)

    def restore(self) -> AuthSession | None:
        """Reload a persisted session, if any."""
        key = self._key(self._session)
        if self.store is None or key is None:
            return None
        session = self.store.load(key)
        if session is None:
            return None
        self._session = session
        self._emit(TOKEN_RESTORED, session)
        return session

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe
