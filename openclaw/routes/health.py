from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "ok"


@router.get("/health")
async def health():
    """Liveness probe for load balancers; touches no dependency."""
    return {"ok": True}
