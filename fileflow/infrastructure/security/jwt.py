"""Session credentials: signed JWTs identifying a user.

Claims: sub (user id), email, iat, exp. Lifetime defaults to
settings.access_token_expire_days.
"""

from datetime import datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from fileflow.core.config import Settings, get_settings
from fileflow.shared.utils.datetime import utc_now


def create_access_token(
    user_id: str,
    email: str,
    *,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
    now: datetime | None = None,
) -> tuple[str, datetime]:
    """Create a signed credential for user_id.

    Returns:
        (encoded JWT, expiry instant in UTC).
    """
    s = settings or get_settings()
    issued = now or utc_now()
    expire = issued + (expires_delta or timedelta(days=s.access_token_expire_days))
    claims = {"sub": user_id, "email": email, "iat": issued, "exp": expire}
    encoded = jwt.encode(claims, s.secret_key.get_secret_value(), algorithm=s.algorithm)
    return cast(str, encoded), expire


def verify_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """Verify and decode a credential. Returns the payload.

    Raises:
        ValueError: If token is invalid, expired, or missing sub/exp.
    """
    s = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            s.secret_key.get_secret_value(),
            algorithms=[s.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if not payload.get("sub"):
        raise ValueError("Token missing required claim: sub")
    return payload
