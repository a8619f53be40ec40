"""Health router."""

import time
from typing import Any, Dict

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


def current_millis() -> int:
    return time.time_ns() // 1_000_000


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Liveness check.

    Does not contact any upstream.
    """
    return {"status": "ok", "timestamp": current_millis()}
