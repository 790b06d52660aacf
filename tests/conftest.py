import pytest

from query_llm.utils.config import Config

ENV_VARS = [
    "LLM_API_BASE_URL",
    "LLM_API_KEY",
    "OPENAI_API_KEY",
    "LLM_CHAT_MODEL",
    "LLM_STREAMING",
    "LLM_JSON_SCHEMA",
    "LLM_ZERO_SHOT",
    "LLM_TIMEOUT",
    "LLM_MAX_RETRY_ATTEMPT",
    "LLM_MAX_TOKENS",
    "LLM_TEMPERATURE",
]

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config(clean_env):
    """Plain-text, chat-provider configuration with a test key."""
    clean_env.setenv("LLM_API_KEY", "sk-test")
    return Config()


@pytest.fixture
def gemini_config(clean_env):
    clean_env.setenv("LLM_API_BASE_URL", GEMINI_BASE_URL)
    clean_env.setenv("LLM_API_KEY", "gm-test")
    clean_env.setenv("LLM_CHAT_MODEL", "gemini-1.5-flash")
    return Config()


@pytest.fixture
def no_sleep(monkeypatch):
    """Replace the retry sleep and record the requested delays."""
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("query_llm.llms.http_client.asyncio.sleep", fake_sleep)
    return delays


