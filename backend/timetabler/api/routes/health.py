from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from timetabler.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    settings = get_settings()
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "engine": {
            "population_size": settings.population_size,
            "max_generations": settings.max_generations,
            "evaluation_workers": settings.evaluation_workers,
        },
    }
