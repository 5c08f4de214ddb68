from __future__ import annotations

from fastapi import APIRouter

from photogram.core.envelope import respond
from photogram.core.time import now_iso

router = APIRouter(tags=["misc"])


@router.get("/health")
async def health():
    return respond("API is running", {"timestamp": now_iso()})
