"""
Onboarding and routing between tools.

The shell walks the learner through language → goal → tool. Controllers
are built lazily from TOOL_CONTROLLERS, one per goal, and kept for as long
as the language stays selected, so hopping between tools keeps each tool's
input and results.
"""

from enum import Enum
from typing import Dict, Optional, Type

from .api import RequestDispatcher
from .controllers import (
    Controller,
    ConversationController,
    Deliver,
    GrammarController,
    PlanController,
    PronunciationController,
    QuizController,
    Runner,
    TranslationController,
    VocabularyController,
    WritingController,
    deliver_now,
    run_in_thread,
)
from .logger import logger
from .models import Language, LearningGoal

TOOL_CONTROLLERS: Dict[LearningGoal, Type[Controller]] = {
    LearningGoal.GRAMMAR: GrammarController,
    LearningGoal.VOCABULARY: VocabularyController,
    LearningGoal.WRITING: WritingController,
    LearningGoal.TRANSLATION: TranslationController,
    LearningGoal.PRONUNCIATION: PronunciationController,
    LearningGoal.CONVERSATION: ConversationController,
    LearningGoal.PLAN: PlanController,
    LearningGoal.QUIZ: QuizController,
}


class Stage(Enum):
    LANGUAGE = "language-select"
    GOAL = "goal-select"
    TOOL = "tool"


class NavigationShell:
    def __init__(
        self,
        dispatcher: RequestDispatcher,
        runner: Runner = run_in_thread,
        deliver: Deliver = deliver_now,
    ) -> None:
        self.dispatcher = dispatcher
        self.runner = runner
        self.deliver = deliver

        self.language: Optional[Language] = None
        self.goal: Optional[LearningGoal] = None
        self._controllers: Dict[LearningGoal, Controller] = {}

    @property
    def stage(self) -> Stage:
        if self.language is None:
            return Stage.LANGUAGE
        if self.goal is None:
            return Stage.GOAL
        return Stage.TOOL

    @property
    def active_controller(self) -> Optional[Controller]:
        if self.goal is None:
            return None
        return self._controllers.get(self.goal)

    def select_language(self, language: Language) -> None:
        old_stage = self.stage
        self._discard_controllers()
        self.language = language
        self.goal = None
        logger.ui(f"Language selected: {language.flag} {language.name}")
        logger.ui_transition(old_stage.value, self.stage.value)

    def select_goal(self, goal: LearningGoal) -> Controller:
        """Activate the tool for goal and return its controller."""
        if self.language is None:
            raise RuntimeError("select a language before choosing a goal")

        old_stage = self.stage
        self.goal = goal
        controller = self._controllers.get(goal)
        if controller is None:
            controller_class = TOOL_CONTROLLERS[goal]
            controller = controller_class(
                self.language.name, self.dispatcher, runner=self.runner, deliver=self.deliver
            )
            self._controllers[goal] = controller
            logger.debug(f"Created {controller_class.__name__} for {self.language.name}")

        logger.ui_transition(old_stage.value, f"{self.stage.value} ({goal.value})")
        return controller

    def back_to_goals(self) -> None:
        if self.goal is not None:
            logger.ui_transition(self.stage.value, Stage.GOAL.value)
            self.goal = None

    def reset(self) -> None:
        """Forget the language and goal; every tool's state is thrown away."""
        old_stage = self.stage
        self._discard_controllers()
        self.language = None
        self.goal = None
        logger.ui_transition(old_stage.value, self.stage.value)

    back_to_languages = reset

    def _discard_controllers(self) -> None:
        for controller in self._controllers.values():
            controller.cancel()
        self._controllers = {}
