"""JSON API routes."""
from __future__ import annotations

from fastapi import APIRouter

from app.web.routes import api_accounts

router = APIRouter()

router.include_router(api_accounts.router, prefix="/accounts", tags=["accounts"])
