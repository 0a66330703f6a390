"""
Access tokens issued by the identity provider.

The catalog never signs users in itself; it only verifies HS256 tokens that
carry the principal id in ``sub`` and its role in ``role``.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import UUID

from jose import jwt

from src.domain.entities import RoleType

DEV_SECRET_KEY = "dev-secret-unsafe"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours


def create_access_token(
    data: dict[str, Any],
    secret_key: str = DEV_SECRET_KEY,
    expires_delta: timedelta | None = None,
    now_utc: datetime | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode in the token
        secret_key: Shared HS256 secret
        expires_delta: Optional custom expiration delta
        now_utc: Current UTC time (for testing/determinism). Defaults to datetime.now(UTC).
    """
    to_encode = data.copy()
    current_time = now_utc if now_utc is not None else datetime.now(UTC)

    if expires_delta:
        expire = current_time + expires_delta
    else:
        expire = current_time + timedelta(minutes=15)

    to_encode.update({"exp": expire})
    encoded_jwt: str = jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)
    return encoded_jwt


def create_principal_token(
    principal_id: UUID,
    role: RoleType = "user",
    secret_key: str = DEV_SECRET_KEY,
    expires_delta: timedelta | None = None,
) -> str:
    return create_access_token(
        {"sub": str(principal_id), "role": role},
        secret_key=secret_key,
        expires_delta=expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def decode_access_token(token: str, secret_key: str = DEV_SECRET_KEY) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
        return cast(dict[str, Any], payload)
    except jwt.JWTError:
        return None
