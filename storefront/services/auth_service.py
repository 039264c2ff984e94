# storefront/services/auth_service.py
import re

from storefront.data.gateway import Gateway
from storefront.domain.errors import AuthRequiredError, RemoteOperationError, ValidationError
from storefront.domain.models import AuthSession, Profile, User
from storefront.services.user_service import ProfileService
from storefront.utils.logging import get_logger
from storefront.utils.retry import RetryPolicy
from storefront.utils.settings import PROFILE_RETRY_ATTEMPTS, PROFILE_RETRY_DELAY_SECONDS

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    """Trim, lowercase and sanity check an address, raising ValidationError."""
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("Email is required", field="email")
    if not EMAIL_RE.match(email) or ".." in email:
        raise ValidationError("Invalid email address", field="email")

    local, _, domain = email.partition("@")
    if local.startswith(".") or local.endswith(".") or domain.startswith(".") or domain.endswith("."):
        raise ValidationError("Invalid email address", field="email")
    if len(local) > 64 or len(domain) > 255:
        raise ValidationError("Email address is too long", field="email")
    return email


class AuthService:
    def __init__(self, identity, gateway: Gateway, profile_policy: RetryPolicy | None = None):
        self.identity = identity
        self.profiles = ProfileService(gateway)
        self.profile_policy = profile_policy or RetryPolicy(
            max_attempts=PROFILE_RETRY_ATTEMPTS,
            delay=PROFILE_RETRY_DELAY_SECONDS,
        )

    def sign_up(self, name: str, email: str, password: str, phone: str | None = None) -> Profile:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required", field="name")
        email = normalize_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
            )

        user = self.identity.sign_up(email, password, {"name": name})

        try:
            profile = self.profile_policy.call(
                self.profiles.create_profile, user.id, name, email, phone
            )
        except RemoteOperationError as e:
            logger.error(f"Profile creation for {user.id} failed after retries: {e}")
            # no profile row means an unusable account, do not leave it signed in
            self.identity.sign_out()
            raise RemoteOperationError("Could not create the user profile") from e

        logger.info(f"User {user.id} signed up")
        return profile

    def sign_in(self, email: str, password: str) -> AuthSession:
        email = normalize_email(email)
        if not password:
            raise ValidationError("Password is required", field="password")
        return self.identity.sign_in_with_password(email, password)

    def sign_out(self) -> None:
        self.identity.sign_out()

    def require_user(self) -> User:
        user = self.identity.get_user()
        if user is None:
            raise AuthRequiredError()
        return user
