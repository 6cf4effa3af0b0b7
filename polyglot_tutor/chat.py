"""
Tutoring conversation sessions.

A ChatSession owns the visible transcript of one conversation. The
conversational memory itself lives with the remote chat, which is why turns
must be strictly sequential: the remote side depends on receiving them in
order.
"""

import threading
from typing import Any, Callable, List, Optional

from . import prompts
from .logger import logger
from .models import ChatMessage

CHAT_APOLOGY = "Sorry, I had trouble processing that. Please try again."


class TurnInProgressError(RuntimeError):
    """send() was called while the previous turn was still running."""


class ChatSession:
    def __init__(self, remote_chat: Any, language: str, topic: str) -> None:
        self.language = language
        self.topic = topic
        self._remote = remote_chat
        self._turn_lock = threading.Lock()
        self.messages: List[ChatMessage] = [
            ChatMessage(role="model", text=prompts.chat_greeting(language, topic)),
        ]

    @classmethod
    def open(cls, service: Any, language: str, topic: str, model: str) -> "ChatSession":
        """Start a remote chat seeded with the tutor persona for language/topic."""
        logger.chat(f"Opening session: {language} / \"{topic}\"")
        remote = service.create_chat(model, prompts.tutor_instruction(language, topic))
        return cls(remote, language, topic)

    @property
    def in_flight(self) -> bool:
        return self._turn_lock.locked()

    def send(self, text: str, on_sent: Optional[Callable[[], None]] = None) -> str:
        """
        Run one turn and return the model's reply.

        Appends the user message, then exactly one model message. A failed
        or empty reply is replaced by an apology; the session stays usable.
        on_sent, if given, is called once the user message is in the
        transcript, before waiting on the model.
        """
        if not self._turn_lock.acquire(blocking=False):
            raise TurnInProgressError("a turn is already in progress for this session")

        try:
            self.messages.append(ChatMessage(role="user", text=text))
            logger.chat_turn("user", text)
            if on_sent is not None:
                on_sent()

            try:
                reply = self._remote.send_message(text)
            except Exception as e:
                logger.api_error(f"Chat turn failed: {e}", exc_info=True)
                reply = None

            if not reply:
                logger.warning("Chat turn produced no reply, using apology message")
                reply = CHAT_APOLOGY

            self.messages.append(ChatMessage(role="model", text=reply))
            logger.chat_turn("model", reply)
            return reply
        finally:
            self._turn_lock.release()
