from datetime import datetime, timezone

from fastapi import APIRouter

from finance_tracker.core.config import settings

router = APIRouter(tags=["system"])


@router.get("/health")
def health():
    return {
        "success": True,
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.app_env,
    }
