from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe used by load balancers; does not touch the auth backend."""

    return {"status": "ok"}
