"""
Per-plugin API for settings. Mounted at /api/settings/.
PATCH takes a partial document; alarms merge per prayer and per field.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException


def get_router(journal_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/settings."""
    router = APIRouter(tags=["Settings"])

    @router.get("/")
    def get_settings() -> Dict[str, Any]:
        return journal_app.settings.settings.to_dict()

    @router.patch("/")
    def patch_settings(partial: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return journal_app.settings.update(partial).to_dict()
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @router.post("/reset")
    def factory_reset() -> Dict[str, Any]:
        """Erase entries, settings, caches and tasbeeh history."""
        return journal_app.factory_reset()

    return router
