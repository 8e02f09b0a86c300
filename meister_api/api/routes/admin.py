from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from meister_api.core.auth import verify_admin_api_key
from meister_api.core.logging import hash_for_log
from meister_api.core.rate_limit import (
    RateLimitAction,
    RateLimiterRegistry,
    get_rate_limiter_registry,
)
from meister_api.schemas.auth import RateLimitResetResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(verify_admin_api_key)],
)


@router.delete("/rate-limits/{action}", response_model=RateLimitResetResponse)
def reset_rate_limit(
    action: RateLimitAction,
    ip: Annotated[str, Query(min_length=1, description="Client IP whose counter is cleared")],
    registry: Annotated[RateLimiterRegistry, Depends(get_rate_limiter_registry)],
) -> RateLimitResetResponse:
    """Clear the rate-limit counter of one client for one auth action.

    Succeeds whether or not the client currently has a counter.
    """
    identifier = registry.reset(action, ip)
    logger.info(
        "rate_limit.reset",
        extra={"action": action.value, "key_hash": hash_for_log(identifier)},
    )
    return RateLimitResetResponse(action=action.value, identifier=identifier)
