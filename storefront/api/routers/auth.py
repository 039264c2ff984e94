# storefront/api/routers/auth.py
from fastapi import APIRouter, Depends

from storefront.api.deps import (
    get_current_user,
    get_gateway,
    get_identity,
    get_public_gateway,
    get_session_store,
)
from storefront.data.gateway import Gateway
from storefront.domain.models import User
from storefront.domain.schemas import ProfileOut, ProfileUpdateIn, SessionOut, SignInIn, SignUpIn
from storefront.services.auth_service import AuthService
from storefront.services.identity import IdentityClient
from storefront.services.rest_gateway import RestGateway
from storefront.services.session_store import SessionStore
from storefront.services.user_service import ProfileService

router = APIRouter(prefix="/auth", tags=["auth"])


def get_service(
    gateway: Gateway,
    identity: IdentityClient | None = None,
    store: SessionStore | None = None,
) -> AuthService:
    identity = identity or IdentityClient(store=store)
    if isinstance(gateway, RestGateway):
        # writes right after sign up must carry the fresh token
        def follow(event, session):
            gateway.access_token = session.access_token if session else None

        identity.on_auth_state_change(follow)
    return AuthService(identity, gateway)


@router.post("/signup", response_model=ProfileOut, status_code=201)
def sign_up(
    payload: SignUpIn,
    gateway: Gateway = Depends(get_public_gateway),
    store: SessionStore = Depends(get_session_store),
):
    return get_service(gateway, store=store).sign_up(payload.name, payload.email, payload.password, payload.phone)


@router.post("/signin", response_model=SessionOut)
def sign_in(
    payload: SignInIn,
    gateway: Gateway = Depends(get_public_gateway),
    store: SessionStore = Depends(get_session_store),
):
    return get_service(gateway, store=store).sign_in(payload.email, payload.password)


@router.post("/signout", status_code=204)
def sign_out(
    gateway: Gateway = Depends(get_gateway),
    identity: IdentityClient = Depends(get_identity),
):
    get_service(gateway, identity).sign_out()


@router.get("/me", response_model=ProfileOut)
def me(user: User = Depends(get_current_user), gateway: Gateway = Depends(get_gateway)):
    return ProfileService(gateway).get_profile(user.id)


@router.patch("/me", response_model=ProfileOut)
def update_me(
    payload: ProfileUpdateIn,
    user: User = Depends(get_current_user),
    gateway: Gateway = Depends(get_gateway),
):
    return ProfileService(gateway).update_profile(user.id, payload.name, payload.phone)
