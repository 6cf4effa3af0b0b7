import pytest

from polyglot_tutor.config import DEFAULT_CHAT_MODEL, Settings, load_settings
from polyglot_tutor.logger import logger

ENV_VARS = ("OPENAI_API_KEY", "POLYGLOT_MODEL", "OPENAI_BASE_URL", "POLYGLOT_DEBUG")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    enabled = logger.enabled
    yield
    logger.enabled = enabled


def test_defaults_without_key() -> None:
    settings = load_settings(dotenv=False)
    assert settings.api_key is None
    assert not settings.api_available
    assert settings.model == DEFAULT_CHAT_MODEL
    assert settings.base_url is None
    assert settings.debug is True


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-abcdefgh12345678")
    monkeypatch.setenv("POLYGLOT_MODEL", "gpt-4o")
    monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:8080/v1")

    settings = load_settings(dotenv=False)

    assert settings.api_available
    assert settings.model == "gpt-4o"
    assert settings.base_url == "http://localhost:8080/v1"


def test_empty_values_count_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("POLYGLOT_MODEL", "")
    settings = load_settings(dotenv=False)
    assert settings.api_key is None
    assert settings.model == DEFAULT_CHAT_MODEL


def test_debug_switch(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POLYGLOT_DEBUG", "0")
    settings = load_settings(dotenv=False)
    assert settings.debug is False
    assert logger.enabled is False


@pytest.mark.parametrize(("key", "masked"), [
    (None, ""),
    ("short-key", "***"),
    ("sk-abcdefgh12345678", "sk-abcde...5678"),
])
def test_masked_api_key(key, masked: str) -> None:
    assert Settings(api_key=key).masked_api_key == masked
