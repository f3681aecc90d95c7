"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .bitcoin import router as bitcoin_router
from .reports import router as reports_router

api_router = APIRouter()
api_router.include_router(reports_router, prefix="/reports", tags=["reports"])
api_router.include_router(bitcoin_router, prefix="/bitcoin", tags=["bitcoin"])

__all__ = ["api_router"]
