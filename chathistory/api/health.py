# chathistory/api/health.py
from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List

import pydantic  # type: ignore
import sqlalchemy
from fastapi import APIRouter, Depends, Request

from chathistory.api.deps import history_cache
from chathistory.services.cache import TTLCache

logger = logging.getLogger("chathistory.api.health")
router = APIRouter()


@router.get("/ping")
def ping():
    logger.info("GET /health/ping")
    return {
        "ok": True,
        "python": sys.version.split()[0],
        "pydantic": getattr(pydantic, "__version__", "unknown"),
        "sqlalchemy": getattr(sqlalchemy, "__version__", "unknown"),
    }


@router.get("/cache")
def cache_health(cache: TTLCache = Depends(history_cache)):
    s = cache.stats()
    logger.info("GET /health/cache entries=%d hits=%d misses=%d", s["entries"], s["hits"], s["misses"])
    return {"ok": True, "ttl": cache.default_ttl, **s}


@router.get("/routes")
def list_routes(request: Request):
    """Introspect all registered routes."""
    app = request.app
    out: List[Dict[str, Any]] = []
    for r in app.routes:
        path = getattr(r, "path", None)
        methods = getattr(r, "methods", None)
        name = getattr(r, "name", None)
        if path and methods:
            out.append({"path": path, "methods": sorted(list(methods)), "name": name})
    out.sort(key=lambda x: (x["path"], ",".join(x["methods"])))
    logger.info("GET /health/routes count=%d", len(out))
    return {"ok": True, "routes": out}
