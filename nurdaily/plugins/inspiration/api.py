"""
Per-plugin API for the daily inspiration. Mounted at /api/inspiration/.
"""
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from .models import DailyInspiration


class InspirationResponse(BaseModel):
    date: str
    source: Optional[str] = None
    inspiration: DailyInspiration


def get_router(journal_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/inspiration."""
    router = APIRouter(tags=["Inspiration"])

    @router.get("/today", response_model=InspirationResponse)
    def get_today() -> InspirationResponse:
        """Today's ayah and hadith; fetched at most once per day."""
        today = journal_app.inspiration.today()
        outcome = journal_app.inspiration.lookup(today)
        return InspirationResponse(date=today.isoformat(), source=outcome.source, inspiration=outcome.value)

    return router
