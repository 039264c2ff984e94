from unittest.mock import MagicMock

import pytest

from storefront.domain.errors import AuthRequiredError, RemoteOperationError, ValidationError
from storefront.services.auth_service import AuthService, normalize_email
from storefront.services.user_service import ProfileService
from storefront.utils.retry import RetryPolicy

NO_WAIT = RetryPolicy(max_attempts=3, delay=0)


def test_sign_up_creates_profile(gateway, fake_identity):
    identity = fake_identity()
    service = AuthService(identity, gateway, profile_policy=NO_WAIT)

    profile = service.sign_up("Ana", "  Ana@Example.COM ", "secret1", phone="600100200")

    assert profile.email == "ana@example.com"
    assert profile.id == identity.user.id
    assert ProfileService(gateway).get_profile(profile.id).name == "Ana"


@pytest.mark.parametrize(
    "email",
    ["", "plain", "a..b@example.com", ".ana@example.com", "ana.@example.com", f"{'a' * 65}@example.com"],
)
def test_bad_emails_are_rejected(email):
    with pytest.raises(ValidationError):
        normalize_email(email)


def test_sign_up_validates_before_calling_auth(gateway):
    identity = MagicMock()
    service = AuthService(identity, gateway, profile_policy=NO_WAIT)

    with pytest.raises(ValidationError):
        service.sign_up("", "ana@example.com", "secret1")
    with pytest.raises(ValidationError):
        service.sign_up("Ana", "ana@example.com", "123")
    identity.sign_up.assert_not_called()


def test_profile_failure_signs_out_after_three_attempts(gateway, fake_identity):
    identity = fake_identity()
    service = AuthService(identity, gateway, profile_policy=NO_WAIT)
    service.profiles.create_profile = MagicMock(side_effect=RemoteOperationError("insert on users failed"))

    with pytest.raises(RemoteOperationError):
        service.sign_up("Ana", "ana@example.com", "secret1")

    assert service.profiles.create_profile.call_count == 3
    assert identity.signed_out


def test_profile_creation_recovers_on_retry(gateway, fake_identity):
    identity = fake_identity()
    service = AuthService(identity, gateway, profile_policy=NO_WAIT)
    real = service.profiles.create_profile
    calls = []

    def flaky(*args):
        calls.append(args)
        if len(calls) == 1:
            raise RemoteOperationError("timeout")
        return real(*args)

    service.profiles.create_profile = flaky
    profile = service.sign_up("Ana", "ana@example.com", "secret1")

    assert len(calls) == 2
    assert profile.name == "Ana"
    assert not identity.signed_out


def test_require_user(gateway, fake_identity, user_id):
    with pytest.raises(AuthRequiredError):
        AuthService(fake_identity(), gateway).require_user()
    assert AuthService(fake_identity(user_id), gateway).require_user().id == user_id


def test_retry_policy_stops_on_other_errors():
    fn = MagicMock(side_effect=ValueError("nope"))
    with pytest.raises(ValueError):
        NO_WAIT.call(fn)
    assert fn.call_count == 1


def test_update_profile(gateway, make, user_id):
    profiles = ProfileService(gateway)
    updated = profiles.update_profile(user_id, name=" Ana Maria ", phone="")
    assert updated.name == "Ana Maria"
    assert updated.phone is None
    with pytest.raises(ValidationError):
        profiles.update_profile(user_id, name=" ")
