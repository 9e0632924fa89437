# stockledger/core/security.py

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from fastapi import HTTPException, status

from stockledger.core.config import (
    JWT_SECRET_KEY,
    JWT_ALGORITHM,
)


# =====================================================
# TENANT CONTEXT
# =====================================================
@dataclass(frozen=True)
class TenantContext:
    tenant_id: int
    actor_id: int
    permissions: frozenset = field(default_factory=frozenset)

    def has_permission(self, permission: str) -> bool:
        return permission.upper() in self.permissions


# =====================================================
# ACCESS TOKEN
# =====================================================
def create_access_token(
    actor_id: int,
    tenant_id: int,
    permissions: list[str],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Issue a token in the auth service's format (used by tooling and tests)."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta else timedelta(minutes=15))

    payload = {
        "sub": str(actor_id),
        "tenant_id": tenant_id,
        "permissions": permissions,
        "type": "access",
        "iat": now,
        "exp": expire,
    }

    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


# =====================================================
# DECODE + VALIDATE TOKEN
# =====================================================
def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
        )

        if payload.get("type") != "access":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token type",
            )

        return payload

    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def tenant_context_from_claims(payload: dict) -> TenantContext:
    # No fallback tenant: a token without one is rejected outright.
    tenant_id = payload.get("tenant_id")
    actor_id = payload.get("sub")

    if tenant_id is None or actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is missing tenant or subject claims",
        )

    try:
        return TenantContext(
            tenant_id=int(tenant_id),
            actor_id=int(actor_id),
            permissions=frozenset(
                p.upper() for p in payload.get("permissions") or []
            ),
        )
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed tenant or subject claims",
        )
