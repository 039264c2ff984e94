from storefront.data.gateway import Gateway
from storefront.domain.errors import NotFoundError, ValidationError
from storefront.domain.models import Profile
from storefront.repos.user_repo import UserRepo
from storefront.utils.ids import require_uuid
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProfileService:
    def __init__(self, gateway: Gateway):
        self.repo = UserRepo(gateway)

    def create_profile(self, user_id: str, name: str, email: str, phone: str | None = None) -> Profile:
        require_uuid(user_id, "user_id")
        existing = self.repo.get_user(user_id)
        if existing:
            return Profile(**existing)

        created = self.repo.create_user({"id": user_id, "name": name, "email": email, "phone": phone})
        logger.info(f"Profile created for user {user_id}")
        return Profile(**created)

    def get_profile(self, user_id: str) -> Profile:
        require_uuid(user_id, "user_id")
        row = self.repo.get_user(user_id)
        if not row:
            raise NotFoundError("Profile not found")
        return Profile(**row)

    def update_profile(self, user_id: str, name: str | None = None, phone: str | None = None) -> Profile:
        require_uuid(user_id, "user_id")
        patch = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Name is required", field="name")
            patch["name"] = name.strip()
        if phone is not None:
            patch["phone"] = phone.strip() or None
        if not patch:
            return self.get_profile(user_id)

        row = self.repo.update_user(user_id, patch)
        if not row:
            raise NotFoundError("Profile not found")
        logger.info(f"Profile {user_id} updated: {sorted(patch)}")
        return Profile(**row)
