import copy
import os
from typing import Optional
from dotenv import load_dotenv

from query_llm.utils import prompts

load_dotenv()

GEMINI_HOST_MARKER = "generativelanguage.google"


def _flag(name: str) -> bool:
    """An environment flag is on when it is set to anything non-empty."""
    return bool(os.getenv(name, ""))


class Config:
    def __init__(self):
        # LLM API CONFIGURATION
        self.LLM_API_BASE_URL = os.getenv("LLM_API_BASE_URL", "https://api.openai.com/v1").rstrip("/")
        self.LLM_API_KEY = os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY", "")
        self.LLM_CHAT_MODEL = os.getenv("LLM_CHAT_MODEL") or "gpt-4o-mini"

        # Streaming is on unless explicitly disabled with "no"
        self.LLM_STREAMING = os.getenv("LLM_STREAMING", "yes") != "no"

        # Structured output: request JSON Schema completions instead of "key: value" text
        self.LLM_JSON_SCHEMA = _flag("LLM_JSON_SCHEMA")

        # Zero-shot: answer with a single reply stage instead of reason -> respond
        self.LLM_ZERO_SHOT = _flag("LLM_ZERO_SHOT")

        # COMPLETION SETTINGS
        self.LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "17"))
        self.LLM_MAX_RETRY_ATTEMPT = int(os.getenv("LLM_MAX_RETRY_ATTEMPT", "3"))
        self.LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "200"))
        # 0 produces the most deterministic completions
        self.LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0"))

        # PROMPTS & SCHEMAS
        # Ordered keys of the "key: value" completion format; the last one is the anchor.
        self.PREDEFINED_KEYS = list(prompts.PREDEFINED_KEYS)

        self.REPLY_PROMPT = prompts.REPLY_PROMPT

        self.REASON_PROMPT = prompts.REASON_PROMPT
        self.REASON_GUIDELINE = dict(prompts.REASON_GUIDELINE)
        self.REASON_EXAMPLE_INQUIRY = prompts.REASON_EXAMPLE_INQUIRY
        self.REASON_EXAMPLE_OUTPUT = dict(prompts.REASON_EXAMPLE_OUTPUT)
        self.REASON_SCHEMA = copy.deepcopy(prompts.REASON_SCHEMA)

        self.RESPOND_PROMPT = prompts.RESPOND_PROMPT
        self.RESPOND_GUIDELINE = prompts.RESPOND_GUIDELINE
        self.RESPOND_SCHEMA = copy.deepcopy(prompts.RESPOND_SCHEMA)

        # LOGGING CONFIGURATION
        #Logging level (DEBUG, INFO, WARNING, ERROR).
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

        #Path to log file.
        self.LOG_FILE = os.getenv("LOG_FILE", "logs/query-llm.log")

        # Console logging is off by default: stdout carries the streamed answer.
        self.LOG_TO_CONSOLE = os.getenv("LOG_TO_CONSOLE", "false").lower() == "true"

    @property
    def is_gemini(self) -> bool:
        return GEMINI_HOST_MARKER in self.LLM_API_BASE_URL

    def validate(self) -> None:
        """Validate configuration and raise errors if invalid."""
        if not self.LLM_API_BASE_URL.startswith(("http://", "https://")):
            raise ValueError(
                "LLM_API_BASE_URL must be an http(s) URL. "
                "Please set it in .env file or environment variables."
            )

        if self.LLM_TIMEOUT <= 0:
            raise ValueError("LLM_TIMEOUT must be positive")

        if self.LLM_MAX_RETRY_ATTEMPT < 1:
            raise ValueError("LLM_MAX_RETRY_ATTEMPT must be at least 1")

        if self.LLM_MAX_TOKENS <= 0:
            raise ValueError("LLM_MAX_TOKENS must be positive")

        if not self.PREDEFINED_KEYS:
            raise ValueError("PREDEFINED_KEYS must not be empty")

# Singleton instance
_config: Optional[Config] = None

def get_config() -> Config:
    """
    Get the global configuration instance (singleton).

    Returns:
        Config instance with loaded environment variables
    """
    global _config
    if _config is None:
        _config = Config()
    return _config

def reload_config() -> Config:
    """
    Reload configuration from environment variables.
    Useful for testing or runtime configuration changes.

    Returns:
        New Config instance
    """
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config
