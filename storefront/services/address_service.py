from typing import Any, Dict, List

from storefront.data.gateway import Gateway
from storefront.domain.errors import NotFoundError, ValidationError
from storefront.domain.models import Address
from storefront.repos.address_repo import AddressRepo
from storefront.utils.ids import require_uuid
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ("name", "recipient_name", "street", "city", "postal_code", "phone")
OPTIONAL_FIELDS = ("apartment", "floor", "building_code", "instructions")


class AddressService:
    def __init__(self, gateway: Gateway):
        self.repo = AddressRepo(gateway)

    def list_addresses(self, user_id: str) -> List[Address]:
        require_uuid(user_id, "user_id")
        return [Address(**row) for row in self.repo.list_for_user(user_id)]

    def get_address(self, address_id: str, user_id: str) -> Address:
        require_uuid(address_id, "address_id")
        row = self.repo.get(address_id, user_id)
        if not row:
            raise NotFoundError("Address not found")
        return Address(**row)

    def create_address(self, user_id: str, data: Dict[str, Any]) -> Address:
        require_uuid(user_id, "user_id")
        row = {"user_id": user_id}
        for field in REQUIRED_FIELDS:
            value = (data.get(field) or "").strip()
            if not value:
                raise ValidationError(f"{field.replace('_', ' ').capitalize()} is required", field=field)
            row[field] = value
        for field in OPTIONAL_FIELDS:
            value = (data.get(field) or "").strip()
            row[field] = value or None
        row["is_default"] = bool(data.get("is_default"))

        # only one default per user
        if row["is_default"]:
            self.repo.clear_default(user_id)
        created = self.repo.create(row)
        logger.info(f"Address {created['id']} created for {user_id}")
        return Address(**created)

    def set_default(self, address_id: str, user_id: str) -> Address:
        address = self.get_address(address_id, user_id)
        self.repo.clear_default(user_id)
        self.repo.mark_default(address_id, user_id)
        logger.info(f"Address {address_id} is now default for {user_id}")
        return address.model_copy(update={"is_default": True})

    def delete_address(self, address_id: str, user_id: str) -> None:
        require_uuid(address_id, "address_id")
        self.repo.delete(address_id, user_id)
        logger.info(f"Address {address_id} deleted for {user_id}")
