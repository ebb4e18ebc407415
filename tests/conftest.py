import pytest

from uel import EngineConfig, UnifiedEngine


@pytest.fixture
def engine() -> UnifiedEngine:
    """Строгий, не тихий движок с кэшем на 128 выражений."""
    return UnifiedEngine(EngineConfig(strict=True, silent=False, cache_size=128))


@pytest.fixture
def vars() -> dict:
    return {}


@pytest.fixture(autouse=True)
def _clean_uel_env(monkeypatch):
    # переменные окружения не должны влиять на тесты конфигурации
    for name in ("UEL_CACHE_SIZE", "UEL_STRICT", "UEL_SILENT"):
        monkeypatch.delenv(name, raising=False)
