from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/status")
def status(request: Request):
    """Scheduler state, config summary and the recent daily records."""
    return request.app.state.bot.get_status()
