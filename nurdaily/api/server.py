"""
FastAPI server for the journal API, run by run_api_server(app) in a daemon thread.

GET /api/status reports the selected day, the live clock and active timers.
Every nurdaily.plugins.<package>.api module exposing get_router(journal_app)
is mounted under /api/<package>/. Docs: http://<host>:<port>/docs
"""
import importlib
import logging
import pkgutil
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Tuple

from fastapi import APIRouter, FastAPI

logger = logging.getLogger(__name__)

PLUGINS_PACKAGE = "nurdaily.plugins"


def _to_utc_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def _plugin_routers(journal_app: Any) -> Iterator[Tuple[str, APIRouter]]:
    """Yield (package name, router) for each plugin with an api module."""
    package = importlib.import_module(PLUGINS_PACKAGE)
    for module_info in pkgutil.iter_modules(package.__path__):
        if not module_info.ispkg:
            continue
        name = module_info.name
        try:
            api_module = importlib.import_module(f"{PLUGINS_PACKAGE}.{name}.api")
        except ImportError:
            logger.debug(f"Plugin {name} has no api module")
            continue
        get_router = getattr(api_module, "get_router", None)
        if not callable(get_router):
            continue
        try:
            router = get_router(journal_app)
        except Exception as e:
            logger.warning(f"Failed to build API router for plugin {name}: {e}", exc_info=True)
            continue
        if router is not None:
            yield name, router


def create_app(journal_app: Any) -> FastAPI:
    """FastAPI app bound to one JournalApp."""
    app = FastAPI(
        title="Nur Daily API",
        description="Journal entries, settings, Hijri date, daily inspiration, tasbeeh and analytics",
    )

    @app.get("/api/status")
    def get_status() -> Dict[str, Any]:
        status = journal_app.status()
        status["timers"] = [
            {"name": timer["name"], "next_run_at": _to_utc_iso(timer["next_run_at"])}
            for timer in status.get("timers", [])
        ]
        return status

    mounted = []
    for name, router in _plugin_routers(journal_app):
        app.include_router(router, prefix=f"/api/{name}")
        mounted.append(name)
    logger.debug(f"Mounted plugin APIs: {', '.join(mounted) or 'none'}")

    return app


def run_api_server(journal_app: Any) -> Optional[threading.Thread]:
    """Start uvicorn in a daemon thread when api.enabled is true.

    Host and port come from api.host / api.port (127.0.0.1:8765 by default).
    """
    api_config = journal_app.config.get_section("api")
    if not api_config.get("enabled", False):
        logger.info("API server disabled (api.enabled is false)")
        return None
    host = api_config.get("host", "127.0.0.1")
    port = int(api_config.get("port", 8765))
    fastapi_app = create_app(journal_app)

    def serve():
        import uvicorn

        try:
            logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
            uvicorn.run(fastapi_app, host=host, port=port, log_level="warning")
        except Exception as e:
            logger.exception(f"API server thread failed: {e}")

    thread = threading.Thread(target=serve, name="nur-daily-api", daemon=True)
    thread.start()
    return thread
