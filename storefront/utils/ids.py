# storefront/utils/ids.py
import re

from storefront.domain.errors import ValidationError

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-8][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_uuid(value) -> bool:
    return isinstance(value, str) and bool(UUID_RE.match(value))


def require_uuid(value, label: str = "identifier") -> str:
    if not is_valid_uuid(value):
        raise ValidationError(f"Invalid {label}", field=label)
    return value
