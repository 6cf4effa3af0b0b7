"""
Runtime configuration for Polyglot Tutor.

Settings come from the environment, optionally populated from a .env file
at the project root:

    OPENAI_API_KEY=sk-...
    POLYGLOT_MODEL=gpt-4o-mini        # optional
    OPENAI_BASE_URL=https://...       # optional, for compatible endpoints
    POLYGLOT_DEBUG=0                  # optional, silences debug output

We use python-dotenv + os.getenv so secrets stay out of git.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .logger import logger

DEFAULT_CHAT_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    model: str = DEFAULT_CHAT_MODEL
    base_url: Optional[str] = None
    debug: bool = True

    @property
    def api_available(self) -> bool:
        """True when an API key was found, so requests can be made."""
        return bool(self.api_key)

    @property
    def masked_api_key(self) -> str:
        if not self.api_key:
            return ""
        if len(self.api_key) <= 12:
            return "***"
        return f"{self.api_key[:8]}...{self.api_key[-4:]}"


def load_settings(dotenv: bool = True) -> Settings:
    """Read settings from the environment (after loading .env, if requested)."""
    if dotenv:
        logger.env("Loading environment variables from .env file...")
        if load_dotenv():
            logger.env_success("dotenv file loaded successfully")
        else:
            logger.warning("No .env file found or file is empty")

    settings = Settings(
        api_key=os.getenv("OPENAI_API_KEY") or None,
        model=os.getenv("POLYGLOT_MODEL") or DEFAULT_CHAT_MODEL,
        base_url=os.getenv("OPENAI_BASE_URL") or None,
        debug=os.getenv("POLYGLOT_DEBUG", "1") != "0",
    )
    logger.enabled = settings.debug

    if settings.api_available:
        logger.env_success(f"OPENAI_API_KEY found: {settings.masked_api_key}")
    else:
        logger.env_error("OPENAI_API_KEY not found in environment!")
    logger.env(f"Chat model: {settings.model}")
    return settings
