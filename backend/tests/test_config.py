import pytest

from timetabler.core.config import Settings
from timetabler.core.exceptions import ConfigurationError
from timetabler.schemas.generator import GenerationSettingsBase
from timetabler.services.generation_service import default_generation_settings, resolve_generation_settings


def test_cors_origins_accept_comma_separated_string():
    settings = Settings(cors_origins="http://a.example, http://b.example ,")

    assert settings.cors_origins == ["http://a.example", "http://b.example"]


def test_cors_origins_accept_json_list_string():
    settings = Settings(cors_origins='["http://a.example"]')

    assert settings.cors_origins == ["http://a.example"]


def test_generation_defaults_come_from_settings():
    settings = Settings(population_size=20, mutation_rate=0.25, random_seed=3)

    defaults = default_generation_settings(settings)

    assert defaults.population_size == 20
    assert defaults.mutation_rate == 0.25
    assert defaults.random_seed == 3
    assert defaults.tournament_size == 3


def test_invalid_configured_defaults_raise_configuration_error():
    with pytest.raises(ConfigurationError):
        default_generation_settings(Settings(population_size=0))


def test_override_keeps_unsent_defaults():
    settings = Settings(population_size=20, max_generations=40)
    override = GenerationSettingsBase.model_validate({"max_generations": 5})

    resolved = resolve_generation_settings(settings, override)

    assert resolved.max_generations == 5
    assert resolved.population_size == 20


def test_missing_override_returns_defaults():
    settings = Settings(population_size=20)

    assert resolve_generation_settings(settings, None) == default_generation_settings(settings)
