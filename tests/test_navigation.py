import pytest

from polyglot_tutor.api import RequestDispatcher
from polyglot_tutor.controllers import (
    ConversationController,
    GrammarController,
    ToolController,
    ToolState,
    VocabularyController,
)
from polyglot_tutor.models import SUPPORTED_LANGUAGES, LearningGoal, get_language
from polyglot_tutor.navigation import TOOL_CONTROLLERS, NavigationShell, Stage
from tests.conftest import DeferredRunner, FakeModelService, run_inline


@pytest.fixture
def shell(dispatcher: RequestDispatcher) -> NavigationShell:
    return NavigationShell(dispatcher, runner=run_inline)


def test_every_goal_has_a_tool() -> None:
    assert set(TOOL_CONTROLLERS) == set(LearningGoal)
    for goal, controller_class in TOOL_CONTROLLERS.items():
        assert controller_class.goal is goal
        assert issubclass(controller_class, (ToolController, ConversationController))


def test_supported_languages() -> None:
    codes = [lang.code for lang in SUPPORTED_LANGUAGES]
    assert codes == ["en", "es", "fr", "de", "ja", "zh", "ko", "it", "pt", "vi"]
    assert get_language("zh").name == "Chinese (Mandarin)"
    with pytest.raises(KeyError):
        get_language("xx")


def test_stage_flow(shell: NavigationShell) -> None:
    assert shell.stage is Stage.LANGUAGE
    assert shell.active_controller is None

    shell.select_language(get_language("de"))
    assert shell.stage is Stage.GOAL

    controller = shell.select_goal(LearningGoal.GRAMMAR)
    assert shell.stage is Stage.TOOL
    assert isinstance(controller, GrammarController)
    assert controller.language == "German"
    assert shell.active_controller is controller

    shell.back_to_goals()
    assert shell.stage is Stage.GOAL
    assert shell.language.code == "de"

    shell.reset()
    assert shell.stage is Stage.LANGUAGE
    assert shell.language is None
    assert shell.goal is None


def test_goal_requires_language(shell: NavigationShell) -> None:
    with pytest.raises(RuntimeError):
        shell.select_goal(LearningGoal.QUIZ)


def test_switching_tools_keeps_their_state(service: FakeModelService, shell: NavigationShell) -> None:
    service.queue("Dative explained")
    shell.select_language(get_language("de"))

    grammar = shell.select_goal(LearningGoal.GRAMMAR)
    grammar.submit(topic="Dative")
    assert isinstance(shell.select_goal(LearningGoal.CONVERSATION), ConversationController)

    assert shell.select_goal(LearningGoal.GRAMMAR) is grammar
    assert grammar.result == "Dative explained"


def test_changing_language_rebuilds_tools(shell: NavigationShell) -> None:
    shell.select_language(get_language("es"))
    spanish = shell.select_goal(LearningGoal.VOCABULARY)

    shell.select_language(get_language("it"))
    assert shell.stage is Stage.GOAL

    italian = shell.select_goal(LearningGoal.VOCABULARY)
    assert italian is not spanish
    assert italian.language == "Italian"


def test_reset_discards_in_flight_work(dispatcher: RequestDispatcher, service: FakeModelService) -> None:
    deferred = DeferredRunner()
    shell = NavigationShell(dispatcher, runner=deferred)
    service.queue("too late")
    service.chat_replies.append("¡Hola!")

    shell.select_language(get_language("es"))
    grammar = shell.select_goal(LearningGoal.GRAMMAR)
    grammar.submit(topic="Ser vs estar")
    conversation = shell.select_goal(LearningGoal.CONVERSATION)
    conversation.start("Travel")
    conversation.send("Hola")

    shell.reset()
    deferred.run_pending()

    assert grammar.state is ToolState.INPUT_PENDING
    assert grammar.result is None
    assert conversation.session is None
    assert not conversation.loading


def test_french_airport_vocabulary(service: FakeModelService, shell: NavigationShell) -> None:
    table = (
        "| Word/Phrase | Pronunciation | Meaning | Example Sentence |\n"
        "|---|---|---|---|\n"
        "| l'aéroport | la-ay-ro-por | airport | Je vais à l'aéroport. |"
    )
    service.queue(table)

    shell.select_language(get_language("fr"))
    vocabulary = shell.select_goal(LearningGoal.VOCABULARY)
    assert isinstance(vocabulary, VocabularyController)

    assert vocabulary.submit(theme="At the Airport")

    assert vocabulary.state is ToolState.RESULT
    assert vocabulary.result == table
    assert len(service.calls) == 1
    prompt = service.calls[0][1]
    assert "French" in prompt
    assert '"At the Airport"' in prompt
    assert "Markdown table" in prompt
