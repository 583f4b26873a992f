"""routes/system.py – /health"""
from datetime import datetime

from fastapi import APIRouter

from ..deps import get_registry

router = APIRouter(tags=["System"])


@router.get("/health")
async def health():
    return {"status": "ok", "time": datetime.now().isoformat()}


@router.get("/behaviours")
async def behaviours():
    """Behaviour names a suggestion section may use."""
    return {"behaviours": get_registry().names()}
