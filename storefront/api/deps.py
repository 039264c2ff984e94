# storefront/api/deps.py
from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storefront.data.backend import make_gateway
from storefront.data.database import get_db
from storefront.data.gateway import Gateway
from storefront.domain.errors import AuthRequiredError
from storefront.domain.models import User
from storefront.services.identity import IdentityClient
from storefront.services.session_store import SessionStore

bearer = HTTPBearer(auto_error=False)


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore()


def get_token(credentials: HTTPAuthorizationCredentials | None = Depends(bearer)) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthRequiredError()
    return credentials.credentials


def get_identity(
    token: str = Depends(get_token),
    store: SessionStore = Depends(get_session_store),
) -> IdentityClient:
    return IdentityClient.for_token(token, store=store)


def get_current_user(identity: IdentityClient = Depends(get_identity)) -> User:
    user = identity.get_user()
    if user is None:
        raise AuthRequiredError("Session expired, sign in again")
    return user


def get_gateway(token: str = Depends(get_token), db: Session = Depends(get_db)) -> Gateway:
    return make_gateway(db, access_token=token)


def get_public_gateway(db: Session = Depends(get_db)) -> Gateway:
    return make_gateway(db)
