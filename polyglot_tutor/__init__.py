"""Polyglot Tutor: an AI language tutor built on a hosted language model."""

from .api import OpenAIModelService, RequestDispatcher, create_client
from .chat import ChatSession
from .config import Settings, load_settings
from .models import SUPPORTED_LANGUAGES, Language, LearningGoal
from .navigation import NavigationShell

__all__ = [
    "ChatSession",
    "Language",
    "LearningGoal",
    "NavigationShell",
    "OpenAIModelService",
    "RequestDispatcher",
    "SUPPORTED_LANGUAGES",
    "Settings",
    "create_client",
    "load_settings",
]
