"""
Per-plugin API for analytics. Mounted at /api/analytics/.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException

from .service import compute_summary


def get_router(journal_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/analytics."""
    router = APIRouter(tags=["Analytics"])

    @router.get("/summary")
    def get_summary(range: str = "7") -> Dict[str, Any]:
        """Consistency percentages over 7, 30 or all days."""
        try:
            summary = compute_summary(
                journal_app.entries.list_entries(),
                journal_app.tasbeeh_log.history(),
                range,
                now=journal_app.now_provider(),
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return summary.to_dict()

    return router
