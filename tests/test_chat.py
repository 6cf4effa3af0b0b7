import pytest

from polyglot_tutor import prompts
from polyglot_tutor.chat import CHAT_APOLOGY, ChatSession, TurnInProgressError
from tests.conftest import TEST_MODEL, FakeModelService


def _open(service: FakeModelService, language: str = "Spanish", topic: str = "Travel") -> ChatSession:
    return ChatSession.open(service, language, topic, TEST_MODEL)


def test_open_seeds_remote_chat_and_greets(service: FakeModelService) -> None:
    session = _open(service)

    assert service.chats[0].model == TEST_MODEL
    assert service.chats[0].system_instruction == prompts.tutor_instruction("Spanish", "Travel")
    assert len(session.messages) == 1
    greeting = session.messages[0]
    assert greeting.role == "model"
    assert "Spanish" in greeting.text
    assert "Travel" in greeting.text


def test_send_appends_user_then_one_model_message() -> None:
    service = FakeModelService(chat_replies=["¡Claro! ¿Adónde quieres viajar?"])
    session = _open(service)

    reply = session.send("Quiero viajar")

    assert reply == "¡Claro! ¿Adónde quieres viajar?"
    assert [m.role for m in session.messages] == ["model", "user", "model"]
    assert session.messages[1].text == "Quiero viajar"
    assert session.messages[2].text == reply
    assert service.chats[0].sent == ["Quiero viajar"]


@pytest.mark.parametrize("failure", [RuntimeError("API down"), None, ""])
def test_failed_turn_becomes_apology_and_session_survives(failure) -> None:
    service = FakeModelService(chat_replies=[failure, "Sí, perfecto."])
    session = _open(service)

    assert session.send("Hola") == CHAT_APOLOGY
    assert session.messages[-1].role == "model"
    assert session.messages[-1].text == CHAT_APOLOGY

    assert session.send("¿Otra vez?") == "Sí, perfecto."
    assert len(session.messages) == 5
    assert not session.in_flight


def test_on_sent_runs_after_user_message_is_visible(service: FakeModelService) -> None:
    session = _open(service)
    seen = []
    session.send("Hola", on_sent=lambda: seen.append([m.role for m in session.messages]))
    assert seen == [["model", "user"]]


def test_concurrent_turn_is_refused(service: FakeModelService) -> None:
    session = _open(service)
    errors = []

    def send_again(_message: str) -> None:
        assert session.in_flight
        with pytest.raises(TurnInProgressError):
            session.send("second")
        errors.append("refused")

    service.chats[0].on_send = send_again
    session.send("first")

    assert errors == ["refused"]
    assert [m.text for m in session.messages if m.role == "user"] == ["first"]
    assert not session.in_flight
