"""Identity provider: registration, sign-in, session resolution and profile updates."""

from datetime import timedelta

import pytest

from fileflow.application.services.auth_service import AuthService
from fileflow.core.config import Settings
from fileflow.domain.exceptions import (
    AuthenticationException,
    InvalidCredentialException,
    InvalidCredentialsException,
    ResourceNotFoundException,
    UserAlreadyExistsException,
    ValidationException,
)
from fileflow.infrastructure.security.jwt import create_access_token

# Low bcrypt cost keeps these tests fast.
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture
def auth(users, settings) -> AuthService:
    return AuthService(users, settings, password_rounds=TEST_BCRYPT_ROUNDS)


class TestRegister:
    async def test_register_stores_lowercase_email_and_hash(self, auth, users) -> None:
        user = await auth.register("Alice@Example.COM", "s3cret!", "Alice")
        assert user.email == "alice@example.com"
        found = await users.get_password_hash("alice@example.com")
        assert found is not None
        _, stored = found
        assert stored.startswith("$2")
        assert "s3cret!" not in stored

    async def test_register_is_case_insensitive(self, auth) -> None:
        await auth.register("alice@example.com", "pw", "Alice")
        with pytest.raises(UserAlreadyExistsException):
            await auth.register("ALICE@example.com", "pw2", "Alice Again")

    @pytest.mark.parametrize(
        ("email", "password", "field"),
        [("no-at-sign", "pw", "email"), ("a@b.c", "", "password")],
    )
    async def test_register_validates_input(self, auth, email, password, field) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await auth.register(email, password, "X")
        assert exc_info.value.details == {"field": field}


class TestAuthenticate:
    async def test_authenticate_returns_session(self, auth) -> None:
        user = await auth.register("alice@example.com", "pw", "Alice")
        session = await auth.authenticate("ALICE@example.com", "pw")
        assert session.user.id == user.id
        assert session.credential
        assert session.expires_at > session.user.created_at

    async def test_wrong_password_and_unknown_email_fail_identically(self, auth) -> None:
        await auth.register("alice@example.com", "pw", "Alice")
        with pytest.raises(InvalidCredentialsException) as wrong:
            await auth.authenticate("alice@example.com", "nope")
        with pytest.raises(InvalidCredentialsException) as unknown:
            await auth.authenticate("nobody@example.com", "pw")
        assert wrong.value.message == unknown.value.message
        assert isinstance(wrong.value, AuthenticationException)


class TestResolveSession:
    async def test_round_trip(self, auth) -> None:
        user = await auth.register("alice@example.com", "pw", "Alice")
        session = await auth.authenticate("alice@example.com", "pw")
        resolved = await auth.resolve_session(session.credential)
        assert resolved.id == user.id

    async def test_credential_signed_with_other_key_rejected(self, auth) -> None:
        user = await auth.register("alice@example.com", "pw", "Alice")
        forged, _ = create_access_token(
            user.id, user.email, settings=Settings(secret_key="someone-elses-key")
        )
        with pytest.raises(InvalidCredentialException):
            await auth.resolve_session(forged)

    async def test_garbage_credential_rejected(self, auth) -> None:
        with pytest.raises(InvalidCredentialException):
            await auth.resolve_session("not-a-jwt")

    async def test_expired_credential_rejected(self, auth, settings) -> None:
        user = await auth.register("alice@example.com", "pw", "Alice")
        token, _ = create_access_token(
            user.id, user.email, settings=settings, expires_delta=timedelta(seconds=-1)
        )
        with pytest.raises(InvalidCredentialException):
            await auth.resolve_session(token)

    async def test_credential_for_missing_user_rejected(self, auth, settings) -> None:
        token, _ = create_access_token("ghost", "ghost@example.com", settings=settings)
        with pytest.raises(InvalidCredentialException):
            await auth.resolve_session(token)


class TestProfile:
    async def test_update_profile(self, auth) -> None:
        user = await auth.register("alice@example.com", "pw", "Alice")
        updated = await auth.update_profile(user.id, full_name="<i>Alice</i> Smith")
        assert updated.full_name == "Alice Smith"
        assert updated.updated_at > user.updated_at
        assert (await auth.get_user(user.id)).full_name == "Alice Smith"

    async def test_update_profile_unknown_user(self, auth) -> None:
        with pytest.raises(ResourceNotFoundException):
            await auth.update_profile("ghost", full_name="X")

    async def test_update_profile_requires_a_field(self, auth) -> None:
        with pytest.raises(ValidationException):
            await auth.update_profile("ghost")
