"""
Per-plugin API for the journal. Mounted at /api/journal/.
- /entries: list, fetch (existing or blank), upsert and delete daily entries.
- /entries/{day}/tasks: custom task helpers.
- /backup and /restore: JSON array backup of the whole collection.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from nurdaily.core.dates import to_date
from nurdaily.core.errors import RestoreParseError

from .models import DailyEntry


class TaskCreate(BaseModel):
    text: str


class RestoreResponse(BaseModel):
    restored: int


def _parse_day(day: str) -> date:
    try:
        return to_date(day)
    except (ValueError, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid date: {day}")


def get_router(journal_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/journal."""
    router = APIRouter(tags=["Journal"])

    @router.get("/entries")
    def list_entries(start: Optional[str] = None, end: Optional[str] = None) -> List[Dict[str, Any]]:
        """Saved entries, newest first, optionally within an inclusive day range."""
        start_day = _parse_day(start) if start else None
        end_day = _parse_day(end) if end else None
        return [e.to_dict() for e in journal_app.entries.list_entries(start_day, end_day)]

    @router.get("/entries/{day}")
    def get_entry(day: str) -> Dict[str, Any]:
        """Entry for the day, or a blank unsaved one."""
        return journal_app.entry_for(_parse_day(day)).to_dict()

    @router.put("/entries")
    def put_entry(entry: DailyEntry) -> Dict[str, Any]:
        """Upsert: replaces whatever entry exists for the same calendar day."""
        return journal_app.save_entry(entry).to_dict()

    @router.delete("/entries/{entry_id}")
    def delete_entry(entry_id: str) -> Dict[str, Any]:
        if not journal_app.entries.delete(entry_id):
            raise HTTPException(status_code=404, detail="No entry with that id")
        return {"deleted": entry_id}

    @router.post("/entries/{day}/tasks")
    def add_task(day: str, task: TaskCreate) -> Dict[str, Any]:
        if not task.text.strip():
            raise HTTPException(status_code=400, detail="Task text is empty")
        entry = journal_app.entry_for(_parse_day(day))
        return journal_app.save_entry(entry.add_task(task.text)).to_dict()

    @router.post("/entries/{day}/tasks/{task_id}/toggle")
    def toggle_task(day: str, task_id: str) -> Dict[str, Any]:
        entry = journal_app.entries.query(_parse_day(day))
        if entry is None or not any(t.id == task_id for t in entry.custom_tasks):
            raise HTTPException(status_code=404, detail="No such task")
        return journal_app.save_entry(entry.toggle_task(task_id)).to_dict()

    @router.delete("/entries/{day}/tasks/{task_id}")
    def remove_task(day: str, task_id: str) -> Dict[str, Any]:
        entry = journal_app.entries.query(_parse_day(day))
        if entry is None or not any(t.id == task_id for t in entry.custom_tasks):
            raise HTTPException(status_code=404, detail="No such task")
        return journal_app.save_entry(entry.remove_task(task_id)).to_dict()

    @router.get("/backup")
    def backup() -> List[Dict[str, Any]]:
        """The whole collection as a plain JSON array."""
        return journal_app.entries.export()

    @router.post("/restore", response_model=RestoreResponse)
    async def restore(request: Request) -> RestoreResponse:
        """Replace every entry with the posted backup array."""
        body = await request.body()
        try:
            restored = journal_app.entries.restore_json(body)
        except RestoreParseError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return RestoreResponse(restored=len(restored))

    return router
