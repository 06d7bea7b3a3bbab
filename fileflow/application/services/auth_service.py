"""Identity provider: registration, sign-in and session resolution."""

from __future__ import annotations

import logging

from fileflow.application.dtos.user import AuthSession, UserResult
from fileflow.application.interfaces.repositories import IUserRepository
from fileflow.core.config import Settings, get_settings
from fileflow.domain.exceptions import (
    InvalidCredentialException,
    InvalidCredentialsException,
    ResourceNotFoundException,
    ValidationException,
)
from fileflow.infrastructure.security.jwt import create_access_token, verify_token
from fileflow.infrastructure.security.password import (
    DEFAULT_ROUNDS,
    dummy_hash,
    hash_password_async,
    verify_password_async,
)
from fileflow.shared.telemetry import traced

logger = logging.getLogger(__name__)


class AuthService:
    """Email/password accounts with JWT session credentials.

    Sign-out is client-side: the caller discards the credential. There is
    no revocation list; a credential stays valid until it expires.
    """

    def __init__(
        self,
        users: IUserRepository,
        settings: Settings | None = None,
        *,
        password_rounds: int = DEFAULT_ROUNDS,
    ) -> None:
        self._users = users
        self._settings = settings or get_settings()
        self._rounds = password_rounds

    @traced("auth.register")
    async def register(self, email: str, password: str, full_name: str) -> UserResult:
        """Create an account. The email is stored lowercase.

        Raises:
            ValidationException: Email without '@' or empty password.
            UserAlreadyExistsException: Email already registered (any case).
        """
        email = (email or "").strip()
        if "@" not in email:
            raise ValidationException("Invalid email address", field="email")
        if not password:
            raise ValidationException("Password is required", field="password")
        hashed = await hash_password_async(password, self._rounds)
        user = await self._users.create_user(email, hashed, full_name)
        logger.info("Registered user %s", user.id)
        return user

    @traced("auth.authenticate")
    async def authenticate(self, email: str, password: str) -> AuthSession:
        """Verify email/password and issue a session credential.

        Unknown email and wrong password fail identically; an unknown email
        still costs one bcrypt comparison.

        Raises:
            InvalidCredentialsException: Unknown email or wrong password.
        """
        found = await self._users.get_password_hash(email)
        if found is None:
            await verify_password_async(password or "", await dummy_hash())
            raise InvalidCredentialsException()
        user, stored_hash = found
        if not await verify_password_async(password or "", stored_hash):
            raise InvalidCredentialsException()
        credential, expires_at = create_access_token(user.id, user.email, settings=self._settings)
        return AuthSession(user=user, credential=credential, expires_at=expires_at)

    @traced("auth.resolve_session")
    async def resolve_session(self, credential: str) -> UserResult:
        """Return the user a credential identifies.

        Raises:
            InvalidCredentialException: Malformed, tampered or expired
                credential, or its user no longer exists.
        """
        try:
            payload = verify_token(credential, self._settings)
        except ValueError as e:
            logger.debug("Rejected credential: %s", e)
            raise InvalidCredentialException() from e
        user = await self._users.get_by_id(str(payload["sub"]))
        if user is None:
            raise InvalidCredentialException()
        return user

    @traced("auth.get_user")
    async def get_user(self, user_id: str) -> UserResult | None:
        return await self._users.get_by_id(user_id)

    @traced("auth.update_profile")
    async def update_profile(
        self,
        user_id: str,
        full_name: str | None = None,
        avatar_url: str | None = None,
    ) -> UserResult:
        """Update display name and/or avatar. Raises ResourceNotFoundException for unknown users."""
        if full_name is None and avatar_url is None:
            raise ValidationException("At least one of full_name or avatar_url is required")
        updated = await self._users.update_profile(user_id, full_name, avatar_url)
        if updated is None:
            raise ResourceNotFoundException("User", user_id)
        return updated
