import json
from collections.abc import Callable
from typing import Any, Optional

import pytest

from polyglot_tutor.api import RequestDispatcher
from polyglot_tutor.schemas import ResponseSchema

TEST_MODEL = "test-model"

WRITING_PAYLOAD = {
    "correctedText": "Je suis allé au marché hier.",
    "explanation": "'Aller' takes 'être' in the passé composé.",
    "tips": ["Check your auxiliaries.", "Watch agreement.", "Read aloud."],
    "rating": {"grammar": 6, "clarity": 8, "tone": 9},
}

QUIZ_PAYLOAD = {
    "questions": [
        {
            "question": "How do you say 'apple'?",
            "options": ["la pomme", "le pain", "la poire"],
            "correctAnswerIndex": 0,
            "explanation": "'Pomme' means apple.",
        },
        {
            "question": "Which article goes with 'pain'?",
            "options": ["la", "le"],
            "correctAnswerIndex": 1,
            "explanation": "'Pain' is masculine.",
        },
    ],
}


class FakeChat:
    """Stands in for a remote chat: records messages and replays canned replies."""

    def __init__(self, model: str, system_instruction: str, replies: list[Any]) -> None:
        self.model = model
        self.system_instruction = system_instruction
        self.replies = replies
        self.sent: list[str] = []
        self.on_send: Optional[Callable[[str], None]] = None

    def send_message(self, message: str) -> Optional[str]:
        self.sent.append(message)
        if self.on_send is not None:
            self.on_send(message)
        reply = self.replies.pop(0) if self.replies else f"echo: {message}"
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeModelService:
    """Records every call and answers from a queue of canned responses.

    A queued Exception is raised instead of returned.
    """

    def __init__(self, responses: Optional[list[Any]] = None, chat_replies: Optional[list[Any]] = None) -> None:
        self.responses = list(responses or [])
        self.chat_replies = list(chat_replies or [])
        self.calls: list[tuple[str, str, Optional[ResponseSchema]]] = []
        self.chats: list[FakeChat] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def generate_content(self, model: str, prompt: str, response_schema: Optional[ResponseSchema] = None) -> Optional[str]:
        self.calls.append((model, prompt, response_schema))
        response = self.responses.pop(0) if self.responses else None
        if isinstance(response, Exception):
            raise response
        return response

    def create_chat(self, model: str, system_instruction: str) -> FakeChat:
        chat = FakeChat(model, system_instruction, self.chat_replies)
        self.chats.append(chat)
        return chat


class DeferredRunner:
    """A runner that holds work until run_pending(), to simulate in-flight requests."""

    def __init__(self) -> None:
        self.pending: list[Callable[[], None]] = []

    def __call__(self, work: Callable[[], None]) -> None:
        self.pending.append(work)

    def run_pending(self) -> None:
        while self.pending:
            self.pending.pop(0)()


def run_inline(work: Callable[[], None]) -> None:
    work()


@pytest.fixture
def service() -> FakeModelService:
    return FakeModelService()


@pytest.fixture
def dispatcher(service: FakeModelService) -> RequestDispatcher:
    return RequestDispatcher(service, TEST_MODEL)


@pytest.fixture
def deferred() -> DeferredRunner:
    return DeferredRunner()


@pytest.fixture
def writing_json() -> str:
    return json.dumps(WRITING_PAYLOAD)


@pytest.fixture
def quiz_json() -> str:
    return json.dumps(QUIZ_PAYLOAD)
