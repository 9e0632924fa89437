from fastapi import Depends, HTTPException, Header, status, Request

from stockledger.core.security import (
    TenantContext,
    decode_access_token,
    tenant_context_from_claims,
)
from stockledger.utils.logger import get_logger

logger = get_logger("auth.guard")


async def get_tenant_context(
    request: Request,
    authorization: str = Header(...),
) -> TenantContext:
    if not authorization.startswith("Bearer "):
        logger.warning("Missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
        )

    token = authorization.split("Bearer ")[1].strip()
    payload = decode_access_token(token)
    context = tenant_context_from_claims(payload)

    request.state.tenant = context
    return context


def require_permission(permission: str):
    async def permission_checker(
        context: TenantContext = Depends(get_tenant_context),
    ):
        if not context.has_permission(permission):
            logger.warning(
                "Permission denied",
                extra={"actor_id": context.actor_id, "permission": permission},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied"
            )
        return context
    return permission_checker
