"""
Per-plugin API for Hijri dates. Mounted at /api/hijri/.
"""
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from nurdaily.core.dates import to_date


class HijriResponse(BaseModel):
    date: str
    hijri: str
    source: Optional[str] = None


def get_router(journal_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/hijri."""
    router = APIRouter(tags=["Hijri"])

    @router.get("/{day}", response_model=HijriResponse)
    def get_hijri(day: str) -> HijriResponse:
        """Hijri date for a Gregorian day (YYYY-MM-DD)."""
        try:
            gregorian = to_date(day)
        except (ValueError, TypeError):
            raise HTTPException(status_code=400, detail=f"Invalid date: {day}")
        outcome = journal_app.hijri.lookup(gregorian)
        return HijriResponse(date=gregorian.isoformat(), hijri=outcome.value, source=outcome.source)

    return router
