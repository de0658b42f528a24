import logging

from fastapi import APIRouter, Depends, status

from timetabler.api.deps import get_generation_service
from timetabler.core.exceptions import AppError
from timetabler.schemas.generator import (
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    GenerationDefaultsResponse,
)
from timetabler.services.generation_service import TimetableGenerationService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/defaults", response_model=GenerationDefaultsResponse)
def get_generation_defaults(
    service: TimetableGenerationService = Depends(get_generation_service),
) -> GenerationDefaultsResponse:
    return service.defaults()


@router.post("/generate", response_model=GenerateTimetableResponse, status_code=status.HTTP_200_OK)
def generate_timetable(
    payload: GenerateTimetableRequest,
    service: TimetableGenerationService = Depends(get_generation_service),
) -> GenerateTimetableResponse:
    try:
        return service.generate(payload)
    except AppError as exc:
        logger.warning(
            "Timetable generation rejected for department %s semester %d: %s",
            payload.department_id,
            payload.semester,
            exc.message,
        )
        raise
    except Exception:
        logger.exception(
            "Timetable generation failed for department %s semester %d",
            payload.department_id,
            payload.semester,
        )
        raise
