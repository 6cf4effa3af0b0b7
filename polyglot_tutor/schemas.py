"""
Structured output schemas and parsers.

Each ResponseSchema pairs the JSON schema sent to the model (strict
json_schema mode, so every property is required and no extras are
allowed) with a parser that turns the decoded payload into one of the
dataclasses in models.py. Parsers raise MalformedResponseError instead of
returning partially filled objects.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, TypeVar

from .models import QuizData, QuizQuestion, WritingCorrectionResult, WritingRating

T = TypeVar("T")

SCORE_MIN = 1
SCORE_MAX = 10


class MalformedResponseError(Exception):
    """The model returned an empty payload, invalid JSON, or the wrong shape."""


@dataclass(frozen=True)
class ResponseSchema(Generic[T]):
    name: str
    schema: Dict[str, Any]
    parse: Callable[[Any], T]

    def response_format(self) -> Dict[str, Any]:
        """The response_format argument for chat.completions.create."""
        return {
            "type": "json_schema",
            "json_schema": {
                "name": self.name,
                "schema": self.schema,
                "strict": True,
            },
        }


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _require(data: Any, key: str) -> Any:
    if not isinstance(data, dict):
        raise MalformedResponseError(f"expected an object containing '{key}', got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise MalformedResponseError(f"missing required field '{key}'")
    return data[key]


def _string(data: Any, key: str) -> str:
    value = _require(data, key)
    if not isinstance(value, str):
        raise MalformedResponseError(f"field '{key}' should be a string")
    return value


def _number(data: Any, key: str) -> float:
    value = _require(data, key)
    # bool is an int subclass; a true/false score is not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponseError(f"field '{key}' should be a number")
    if not math.isfinite(value):
        raise MalformedResponseError(f"field '{key}' should be a finite number")
    return value


def _score(data: Any, key: str) -> float:
    value = _number(data, key)
    if not SCORE_MIN <= value <= SCORE_MAX:
        raise MalformedResponseError(f"score '{key}' should be between {SCORE_MIN} and {SCORE_MAX}, got {value}")
    return value


def _index(data: Any, key: str) -> int:
    value = _number(data, key)
    if int(value) != value:
        raise MalformedResponseError(f"field '{key}' should be a whole number")
    return int(value)


def _string_list(data: Any, key: str) -> List[str]:
    value = _require(data, key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise MalformedResponseError(f"field '{key}' should be a list of strings")
    return list(value)


# ---------------------------------------------------------------------------
# Writing correction
# ---------------------------------------------------------------------------

def parse_writing_correction(data: Any) -> WritingCorrectionResult:
    rating = _require(data, "rating")
    return WritingCorrectionResult(
        corrected_text=_string(data, "correctedText"),
        explanation=_string(data, "explanation"),
        tips=_string_list(data, "tips"),
        rating=WritingRating(
            grammar=_score(rating, "grammar"),
            clarity=_score(rating, "clarity"),
            tone=_score(rating, "tone"),
        ),
    )


WRITING_CORRECTION_SCHEMA: ResponseSchema[WritingCorrectionResult] = ResponseSchema(
    name="writing_correction",
    schema={
        "type": "object",
        "properties": {
            "correctedText": {"type": "string"},
            "explanation": {"type": "string"},
            "tips": {"type": "array", "items": {"type": "string"}},
            "rating": {
                "type": "object",
                "properties": {
                    "grammar": {"type": "number"},
                    "clarity": {"type": "number"},
                    "tone": {"type": "number"},
                },
                "required": ["grammar", "clarity", "tone"],
                "additionalProperties": False,
            },
        },
        "required": ["correctedText", "explanation", "tips", "rating"],
        "additionalProperties": False,
    },
    parse=parse_writing_correction,
)


# ---------------------------------------------------------------------------
# Quiz
# ---------------------------------------------------------------------------

def _parse_quiz_question(data: Any) -> QuizQuestion:
    options = _string_list(data, "options")
    correct = _index(data, "correctAnswerIndex")
    if not options:
        raise MalformedResponseError("quiz question has no options")
    if not 0 <= correct < len(options):
        raise MalformedResponseError(
            f"correctAnswerIndex {correct} is out of range for {len(options)} options"
        )
    return QuizQuestion(
        question=_string(data, "question"),
        options=options,
        correct_answer_index=correct,
        explanation=_string(data, "explanation"),
    )


def parse_quiz(data: Any) -> QuizData:
    questions = _require(data, "questions")
    if not isinstance(questions, list) or not questions:
        raise MalformedResponseError("field 'questions' should be a non-empty list")
    return QuizData(questions=[_parse_quiz_question(q) for q in questions])


QUIZ_SCHEMA: ResponseSchema[QuizData] = ResponseSchema(
    name="quiz",
    schema={
        "type": "object",
        "properties": {
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "question": {"type": "string"},
                        "options": {"type": "array", "items": {"type": "string"}},
                        "correctAnswerIndex": {"type": "integer"},
                        "explanation": {"type": "string"},
                    },
                    "required": ["question", "options", "correctAnswerIndex", "explanation"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["questions"],
        "additionalProperties": False,
    },
    parse=parse_quiz,
)
