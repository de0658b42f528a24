from fastapi import Depends

from timetabler.core.config import Settings, get_settings
from timetabler.services.generation_service import TimetableGenerationService


def get_generation_service(settings: Settings = Depends(get_settings)) -> TimetableGenerationService:
    return TimetableGenerationService(settings)
