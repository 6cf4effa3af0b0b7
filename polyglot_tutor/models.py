import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal


@dataclass(frozen=True)
class Language:
    """A language the learner can study."""
    code: str                        # ISO 639-1 code, e.g. "es"
    name: str                        # Display name used in prompts
    flag: str                        # Flag glyph shown next to the name


SUPPORTED_LANGUAGES: List[Language] = [
    Language("en", "English", "🇺🇸"),
    Language("es", "Spanish", "🇪🇸"),
    Language("fr", "French", "🇫🇷"),
    Language("de", "German", "🇩🇪"),
    Language("ja", "Japanese", "🇯🇵"),
    Language("zh", "Chinese (Mandarin)", "🇨🇳"),
    Language("ko", "Korean", "🇰🇷"),
    Language("it", "Italian", "🇮🇹"),
    Language("pt", "Portuguese", "🇧🇷"),
    Language("vi", "Vietnamese", "🇻🇳"),
]

_LANGUAGES_BY_CODE: Dict[str, Language] = {lang.code: lang for lang in SUPPORTED_LANGUAGES}


def get_language(code: str) -> Language:
    """Look up a supported language by its code. Raises KeyError if unknown."""
    return _LANGUAGES_BY_CODE[code]


class LearningGoal(Enum):
    GRAMMAR = "Grammar Practice"
    VOCABULARY = "Vocabulary Building"
    WRITING = "Writing Correction"
    TRANSLATION = "Translation Help"
    PRONUNCIATION = "Pronunciation Guide"
    CONVERSATION = "Conversation Practice"
    PLAN = "Personalized Plan"
    QUIZ = "Quizzes & Exercises"

    @property
    def short_label(self) -> str:
        """Compact label used in the tool sidebar."""
        return _SHORT_LABELS[self]


_SHORT_LABELS: Dict[LearningGoal, str] = {
    LearningGoal.GRAMMAR: "Grammar",
    LearningGoal.VOCABULARY: "Vocabulary",
    LearningGoal.WRITING: "Writing",
    LearningGoal.TRANSLATION: "Translation",
    LearningGoal.CONVERSATION: "Conversation",
    LearningGoal.PRONUNCIATION: "Pronunciation",
    LearningGoal.QUIZ: "Quiz",
    LearningGoal.PLAN: "My Plan",
}


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ChatMessage:
    """One visible message in a conversation transcript."""
    role: Literal["user", "model"]
    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: int = field(default_factory=_now_ms)   # ms since epoch


@dataclass
class WritingRating:
    """1–10 scores for a corrected piece of writing."""
    grammar: float
    clarity: float
    tone: float


@dataclass
class WritingCorrectionResult:
    """Structured result of a writing correction request."""
    corrected_text: str
    explanation: str
    tips: List[str] = field(default_factory=list)
    rating: WritingRating = field(default_factory=lambda: WritingRating(0, 0, 0))


@dataclass
class QuizQuestion:
    question: str
    options: List[str]
    correct_answer_index: int        # Index into options (0-based)
    explanation: str


@dataclass
class QuizData:
    """A generated multiple choice quiz."""
    questions: List[QuizQuestion] = field(default_factory=list)
