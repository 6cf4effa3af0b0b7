"""
Tool controllers: one small state machine per learning tool.

Each controller collects input, runs a request on a background runner and
holds the observable {state, result, error}. The UI renders from a
controller and subscribes to be told when it changes; it never talks to
the model service directly.

Every request is tagged with a generation number. cancel() and resubmits
bump the generation, and a result that comes back tagged with an older
generation is discarded instead of being written into the controller.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from . import prompts
from .api import RequestDispatcher
from .chat import ChatSession
from .logger import Timer, logger
from .models import ChatMessage, LearningGoal, QuizData, WritingCorrectionResult
from .schemas import QUIZ_SCHEMA, WRITING_CORRECTION_SCHEMA, ResponseSchema

Runner = Callable[[Callable[[], None]], None]
Deliver = Callable[[Callable[[], None]], None]
Listener = Callable[[Any], None]


def run_in_thread(work: Callable[[], None]) -> None:
    """Default runner: do the work on a daemon thread so the UI stays responsive."""
    threading.Thread(target=work, daemon=True).start()


def deliver_now(callback: Callable[[], None]) -> None:
    """Default deliver: apply the outcome on whichever thread produced it."""
    callback()


class ToolState(Enum):
    IDLE = "idle"
    INPUT_PENDING = "input-pending"
    LOADING = "loading"
    RESULT = "result-shown"
    ERROR = "error-shown"


@dataclass(frozen=True)
class InputField:
    """Describes one input a tool collects; the UI builds its widgets from these."""
    name: str
    label: str
    placeholder: str = ""
    multiline: bool = False
    choices: Tuple[str, ...] = ()
    default: str = ""
    required: bool = True


class _Observable:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)


# ---------------------------------------------------------------------------
# Base request/response controller
# ---------------------------------------------------------------------------

class ToolController(_Observable):
    goal: LearningGoal
    title: str = ""
    fields: Tuple[InputField, ...] = ()
    submit_label: str = "Submit"
    error_message: str = "Something went wrong. Please try again."

    def __init__(
        self,
        language: str,
        dispatcher: RequestDispatcher,
        runner: Runner = run_in_thread,
        deliver: Deliver = deliver_now,
    ) -> None:
        super().__init__()
        self.language = language
        self.dispatcher = dispatcher
        self.runner = runner
        self.deliver = deliver

        self.inputs: Dict[str, str] = {f.name: f.default for f in self.fields}
        self.result: Any = None
        self.error: Optional[str] = None
        self.state = ToolState.INPUT_PENDING if self._inputs_complete() else ToolState.IDLE
        self._generation = 0
        # Outcomes may arrive on a worker thread when deliver runs them in place
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def description(self) -> str:
        return ""

    @property
    def loading(self) -> bool:
        return self.state is ToolState.LOADING

    @property
    def can_submit(self) -> bool:
        return not self.loading and self._inputs_complete()

    def _inputs_complete(self) -> bool:
        return all(self.inputs.get(f.name, "").strip() for f in self.fields if f.required)

    def _input_state(self) -> ToolState:
        return ToolState.INPUT_PENDING if self._inputs_complete() else ToolState.IDLE

    def _set_state(self, state: ToolState) -> None:
        if state is not self.state:
            logger.ui_transition(f"{self.name}: {self.state.value}", state.value)
        self.state = state
        self._notify()

    def set_input(self, name: str, value: str) -> None:
        if name not in self.inputs:
            raise KeyError(f"{self.name} has no input named '{name}'")
        with self._lock:
            self.inputs[name] = value
            if self.state in (ToolState.IDLE, ToolState.INPUT_PENDING):
                self._set_state(self._input_state())

    # --- request lifecycle ---------------------------------------------------

    def submit(self, **inputs: str) -> bool:
        """
        Start a request with the current inputs (updated by any keyword args).

        Returns False, without touching the network, when a request is
        already running or a required input is blank.
        """
        with self._lock:
            for name, value in inputs.items():
                if name not in self.inputs:
                    raise KeyError(f"{self.name} has no input named '{name}'")
                self.inputs[name] = value

            if self.loading:
                logger.debug(f"{self.name}: submit ignored, request already in flight")
                return False
            if not self._inputs_complete():
                logger.debug(f"{self.name}: submit ignored, required input is blank")
                return False

            self._generation += 1
            generation = self._generation
            snapshot = {name: value.strip() for name, value in self.inputs.items()}

            self._before_request()
            self.error = None
            self._set_state(ToolState.LOADING)

        task_name = f"{self.name} request #{generation}"

        def work() -> None:
            logger.task_start(task_name)
            try:
                with Timer() as timer:
                    outcome = self._perform(snapshot)
            except Exception as e:
                logger.task_error(task_name, str(e), exc_info=True)
                message = self._message_for(e)
                self.deliver(lambda: self._finish(generation, error=message))
                return
            logger.task_complete(task_name, duration_ms=timer.duration_ms)
            self.deliver(lambda: self._finish(generation, result=outcome))

        self.runner(work)
        return True

    def cancel(self) -> None:
        """Abandon any in-flight request; its result will be discarded."""
        with self._lock:
            self._generation += 1
            if self.loading:
                logger.ui(f"{self.name}: request cancelled")
                self._set_state(self._input_state())

    def _finish(self, generation: int, result: Any = None, error: Optional[str] = None) -> None:
        with self._lock:
            if generation != self._generation:
                logger.warning(f"{self.name}: discarding stale response from request #{generation}")
                return

            if error is not None:
                self.result = None
                self.error = error
                self._set_state(ToolState.ERROR)
            else:
                self.result = result
                self.error = None
                self._set_state(ToolState.RESULT)

    # --- subclass hooks ------------------------------------------------------

    def _before_request(self) -> None:
        """Called on the UI thread just before a request starts."""

    def _perform(self, inputs: Dict[str, str]) -> Any:
        raise NotImplementedError

    def _message_for(self, error: Exception) -> str:
        return self.error_message


class FreeTextToolController(ToolController):
    """A tool whose result is markdown text shown verbatim."""

    fallback_message: str = "Could not generate a response."

    def build_prompt(self, inputs: Dict[str, str]) -> str:
        raise NotImplementedError

    def _perform(self, inputs: Dict[str, str]) -> str:
        text = self.dispatcher.generate(self.build_prompt(inputs))
        if not text:
            logger.warning(f"{self.name}: empty response, showing fallback text")
            return self.fallback_message
        return text

    def _message_for(self, error: Exception) -> str:
        return self.fallback_message


class StructuredToolController(ToolController):
    """A tool whose result is a dataclass parsed from schema-constrained JSON."""

    schema: ResponseSchema

    def build_prompt(self, inputs: Dict[str, str]) -> str:
        raise NotImplementedError

    def _perform(self, inputs: Dict[str, str]) -> Any:
        return self.dispatcher.generate(self.build_prompt(inputs), self.schema)


# ---------------------------------------------------------------------------
# Free-text tools
# ---------------------------------------------------------------------------

class GrammarController(FreeTextToolController):
    goal = LearningGoal.GRAMMAR
    title = "Grammar Guide"
    submit_label = "Explain"
    fallback_message = "Could not generate explanation."
    fields = (
        InputField("topic", "Topic", "Enter a topic (e.g., Past Tense, Articles...)"),
    )

    @property
    def description(self) -> str:
        return f"Master {self.language} grammar with simple explanations."

    def build_prompt(self, inputs: Dict[str, str]) -> str:
        return prompts.explain_grammar(self.language, inputs["topic"])


class VocabularyController(FreeTextToolController):
    goal = LearningGoal.VOCABULARY
    title = "Vocabulary Builder"
    submit_label = "Generate"
    fallback_message = "Could not generate vocabulary."
    fields = (
        InputField("theme", "Theme", "Enter a theme (e.g., At the Airport, Business...)"),
    )

    @property
    def description(self) -> str:
        return f"Expand your {self.language} lexicon by theme."

    def build_prompt(self, inputs: Dict[str, str]) -> str:
        return prompts.vocabulary_list(self.language, inputs["theme"])


class TranslationController(FreeTextToolController):
    goal = LearningGoal.TRANSLATION
    title = "Smart Translation"
    submit_label = "Translate & Explain"
    fallback_message = "Translation failed."
    fields = (
        InputField("text", "Text", "Enter text in any language...", multiline=True),
    )

    @property
    def description(self) -> str:
        return f"Translate to {self.language} with context and explanation."

    def build_prompt(self, inputs: Dict[str, str]) -> str:
        return prompts.translate(self.language, inputs["text"])


class PronunciationController(FreeTextToolController):
    goal = LearningGoal.PRONUNCIATION
    title = "Pronunciation Guide"
    submit_label = "Analyze"
    fallback_message = "Guide generation failed."

    @property
    def fields(self) -> Tuple[InputField, ...]:  # type: ignore[override]
        return (InputField("text", "Phrase", f"Enter a {self.language} phrase..."),)

    @property
    def description(self) -> str:
        return "Learn how to sound like a native."

    def build_prompt(self, inputs: Dict[str, str]) -> str:
        return prompts.pronunciation_guide(self.language, inputs["text"])


class PlanController(FreeTextToolController):
    goal = LearningGoal.PLAN
    title = "Personalized Plan"
    submit_label = "Create Plan"
    fallback_message = "Plan generation failed."
    fields = (
        InputField("level", "My Level", choices=prompts.LEVELS, default=prompts.DEFAULT_PLAN_LEVEL),
    )

    @property
    def description(self) -> str:
        return "Get a 5-day tailored learning schedule."

    def build_prompt(self, inputs: Dict[str, str]) -> str:
        return prompts.learning_plan(self.language, inputs["level"])


# ---------------------------------------------------------------------------
# Structured tools
# ---------------------------------------------------------------------------

class WritingController(StructuredToolController):
    goal = LearningGoal.WRITING
    title = "Writing Correction"
    submit_label = "Correct Text"
    schema = WRITING_CORRECTION_SCHEMA
    error_message = "Could not correct your writing. Please try again."

    @property
    def fields(self) -> Tuple[InputField, ...]:  # type: ignore[override]
        return (
            InputField("text", "Your text", f"Type or paste your {self.language} text here...", multiline=True),
        )

    @property
    def description(self) -> str:
        return f"Get instant feedback on your {self.language} writing."

    @property
    def correction(self) -> Optional[WritingCorrectionResult]:
        return self.result

    def build_prompt(self, inputs: Dict[str, str]) -> str:
        return prompts.correct_writing(self.language, inputs["text"])


class QuizPhase(Enum):
    ANSWERING = "answering"
    GRADED = "graded"


class QuizController(StructuredToolController):
    """
    Generates a quiz, then tracks the learner's answers.

    Once a quiz is shown the learner picks one option per question
    (ANSWERING); grading is only allowed when every question has an answer,
    and freezes the selections (GRADED).
    """

    goal = LearningGoal.QUIZ
    title = "Quiz Mode"
    submit_label = "Start"
    schema = QUIZ_SCHEMA
    error_message = "Could not generate a quiz. Please try again."
    fields = (
        InputField("topic", "What topic do you want to test?", "e.g. Food vocabulary, Past tense verbs"),
        InputField("difficulty", "Difficulty", choices=prompts.LEVELS, default=prompts.DEFAULT_QUIZ_DIFFICULTY),
    )

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.selected_answers: Dict[int, int] = {}
        self.graded = False

    @property
    def description(self) -> str:
        return "Test your knowledge."

    @property
    def quiz(self) -> Optional[QuizData]:
        return self.result if self.state is ToolState.RESULT else None

    @property
    def phase(self) -> Optional[QuizPhase]:
        if self.quiz is None:
            return None
        return QuizPhase.GRADED if self.graded else QuizPhase.ANSWERING

    def build_prompt(self, inputs: Dict[str, str]) -> str:
        return prompts.quiz(self.language, inputs["topic"], inputs["difficulty"])

    def _before_request(self) -> None:
        self.result = None
        self.selected_answers = {}
        self.graded = False

    def select_option(self, question_index: int, option_index: int) -> bool:
        quiz = self.quiz
        if quiz is None or self.graded:
            return False
        if not 0 <= question_index < len(quiz.questions):
            return False
        if not 0 <= option_index < len(quiz.questions[question_index].options):
            return False

        self.selected_answers[question_index] = option_index
        self._notify()
        return True

    @property
    def can_grade(self) -> bool:
        quiz = self.quiz
        if quiz is None or self.graded:
            return False
        return all(i in self.selected_answers for i in range(len(quiz.questions)))

    def grade(self) -> bool:
        if not self.can_grade:
            return False
        self.graded = True
        logger.ui_transition(f"{self.name}: {QuizPhase.ANSWERING.value}", QuizPhase.GRADED.value)
        logger.info(f"Quiz graded: {self.score}/{len(self.quiz.questions)}")
        self._notify()
        return True

    def is_correct(self, question_index: int) -> Optional[bool]:
        """Correctness of one answer; None until the quiz has been graded."""
        quiz = self.quiz
        if quiz is None or not self.graded:
            return None
        chosen = self.selected_answers.get(question_index)
        return chosen == quiz.questions[question_index].correct_answer_index

    @property
    def score(self) -> Optional[int]:
        quiz = self.quiz
        if quiz is None or not self.graded:
            return None
        return sum(1 for i in range(len(quiz.questions)) if self.is_correct(i))

    def new_quiz(self) -> None:
        """Drop the current quiz and go back to choosing a topic."""
        with self._lock:
            self._generation += 1
            self._before_request()
            self.error = None
            self._set_state(self._input_state())


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------

class ConversationPhase(Enum):
    NOT_STARTED = "not-started"
    STARTED = "started"


SUGGESTED_TOPICS = ("Travel", "Restaurants", "Hobbies", "Family", "Work")


class ConversationController(_Observable):
    """
    Practice conversation with the tutor persona.

    Wraps a ChatSession: start() opens one for the chosen topic, send()
    runs a single turn in the background, end() throws the session away.
    """

    goal = LearningGoal.CONVERSATION
    title = "Start a Conversation"
    suggested_topics = SUGGESTED_TOPICS

    def __init__(
        self,
        language: str,
        dispatcher: RequestDispatcher,
        runner: Runner = run_in_thread,
        deliver: Deliver = deliver_now,
    ) -> None:
        super().__init__()
        self.language = language
        self.dispatcher = dispatcher
        self.runner = runner
        self.deliver = deliver

        self.topic = ""
        self.session: Optional[ChatSession] = None
        self.loading = False
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def description(self) -> str:
        return f"Choose a topic to practice speaking {self.language}."

    @property
    def phase(self) -> ConversationPhase:
        return ConversationPhase.STARTED if self.session is not None else ConversationPhase.NOT_STARTED

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self.session.messages) if self.session is not None else []

    def set_topic(self, topic: str) -> None:
        self.topic = topic
        self._notify()

    @property
    def can_start(self) -> bool:
        return self.session is None and bool(self.topic.strip())

    def start(self, topic: Optional[str] = None) -> bool:
        if topic is not None:
            self.topic = topic
        if not self.can_start:
            return False

        self.session = ChatSession.open(
            self.dispatcher.service, self.language, self.topic.strip(), self.dispatcher.model
        )
        logger.ui_transition(f"{self.name}: {ConversationPhase.NOT_STARTED.value}",
                             ConversationPhase.STARTED.value)
        self._notify()
        return True

    def can_send(self, text: str) -> bool:
        if self.session is None or self.loading or self.session.in_flight:
            return False
        return bool(text.strip())

    def send(self, text: str) -> bool:
        """Run one turn in the background. Input is refused while a turn is in flight."""
        with self._lock:
            if not self.can_send(text):
                return False

            session = self.session
            self._generation += 1
            generation = self._generation
            self.loading = True
            self._notify()

        task_name = f"{self.name} turn #{generation}"

        def work() -> None:
            logger.task_start(task_name)
            try:
                session.send(text, on_sent=lambda: self.deliver(self._notify))
            except Exception as e:
                logger.task_error(task_name, str(e), exc_info=True)
            else:
                logger.task_complete(task_name)
            self.deliver(lambda: self._finish_turn(generation))

        self.runner(work)
        return True

    def _finish_turn(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.warning(f"{self.name}: discarding reply for an ended session")
                return
            self.loading = False
            self._notify()

    def end(self) -> None:
        """Discard the session; there is nothing to close on the remote side."""
        with self._lock:
            if self.session is None:
                return
            self._generation += 1
            self.session = None
            self.loading = False
            logger.ui_transition(f"{self.name}: {ConversationPhase.STARTED.value}",
                                 ConversationPhase.NOT_STARTED.value)
            self._notify()

    def cancel(self) -> None:
        self.end()


Controller = Union[ToolController, ConversationController]
