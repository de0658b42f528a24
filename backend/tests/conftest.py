import pytest
from fastapi.testclient import TestClient

from timetabler.api.deps import get_generation_service
from timetabler.core.config import Settings
from timetabler.main import app
from timetabler.services.generation_service import TimetableGenerationService


@pytest.fixture()
def test_settings():
    return Settings(population_size=12, max_generations=15, random_seed=7)


@pytest.fixture()
def client(test_settings):
    # Small, seeded engine so API runs stay fast and reproducible.
    app.dependency_overrides[get_generation_service] = lambda: TimetableGenerationService(test_settings)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
