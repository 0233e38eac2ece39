"""
Per-plugin API for Tasbeeh. Mounted at /api/tasbeeh/.
- /history, /sessions: the logged session list.
- /dhikr: catalogue and target options.
- /counter: the running counter.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from .models import DHIKR_OPTIONS, TARGET_OPTIONS


class SessionCreate(BaseModel):
    label: str
    count: int = Field(ge=0)


class CounterSelect(BaseModel):
    label: Optional[str] = None
    target: Optional[int] = None


def _counter_response(journal_app, session) -> Dict[str, Any]:
    return {
        "counter": journal_app.tasbeeh.state(),
        "logged": session.to_dict() if session is not None else None,
    }


def get_router(journal_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/tasbeeh."""
    router = APIRouter(tags=["Tasbeeh"])

    @router.get("/history")
    def get_history() -> List[Dict[str, Any]]:
        return [s.to_dict() for s in journal_app.tasbeeh_log.history()]

    @router.post("/sessions")
    def log_session(body: SessionCreate) -> Dict[str, Any]:
        try:
            return journal_app.tasbeeh_log.log_session(body.label, body.count).to_dict()
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @router.delete("/history")
    def clear_history() -> Dict[str, Any]:
        journal_app.tasbeeh_log.clear_history()
        return {"cleared": True}

    @router.get("/dhikr")
    def list_dhikr() -> Dict[str, Any]:
        return {
            "dhikr": [d._asdict() for d in DHIKR_OPTIONS],
            "targets": TARGET_OPTIONS,
        }

    @router.get("/counter")
    def get_counter() -> Dict[str, Any]:
        return journal_app.tasbeeh.state()

    @router.post("/counter/increment")
    def increment() -> Dict[str, Any]:
        return _counter_response(journal_app, journal_app.tasbeeh.increment())

    @router.post("/counter/reset")
    def reset() -> Dict[str, Any]:
        return _counter_response(journal_app, journal_app.tasbeeh.reset())

    @router.post("/counter/select")
    def select(body: CounterSelect) -> Dict[str, Any]:
        """Switch dhikr and/or target; each switch resets the count first."""
        session = None
        if body.target is not None and body.target not in TARGET_OPTIONS:
            raise HTTPException(status_code=400, detail=f"Target must be one of {TARGET_OPTIONS}")
        try:
            if body.label is not None and body.label != journal_app.tasbeeh.dhikr.label:
                session = journal_app.tasbeeh.select_dhikr(body.label)
            if body.target is not None and body.target != journal_app.tasbeeh.target:
                session = journal_app.tasbeeh.set_target(body.target) or session
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _counter_response(journal_app, session)

    return router
