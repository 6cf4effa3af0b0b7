import copy

import pytest

from polyglot_tutor.models import QuizData, WritingCorrectionResult
from polyglot_tutor.schemas import (
    QUIZ_SCHEMA,
    WRITING_CORRECTION_SCHEMA,
    MalformedResponseError,
    parse_quiz,
    parse_writing_correction,
)
from tests.conftest import QUIZ_PAYLOAD, WRITING_PAYLOAD


def test_parse_writing_correction() -> None:
    result = parse_writing_correction(WRITING_PAYLOAD)
    assert isinstance(result, WritingCorrectionResult)
    assert result.corrected_text == WRITING_PAYLOAD["correctedText"]
    assert result.tips == WRITING_PAYLOAD["tips"]
    assert (result.rating.grammar, result.rating.clarity, result.rating.tone) == (6, 8, 9)


@pytest.mark.parametrize("missing", ["correctedText", "explanation", "tips", "rating"])
def test_writing_correction_missing_field(missing: str) -> None:
    payload = copy.deepcopy(WRITING_PAYLOAD)
    del payload[missing]
    with pytest.raises(MalformedResponseError, match=missing):
        parse_writing_correction(payload)


@pytest.mark.parametrize("bad_rating", [
    {"grammar": 7, "clarity": 8},
    {"grammar": "7", "clarity": 8, "tone": 9},
    {"grammar": True, "clarity": 8, "tone": 9},
])
def test_writing_correction_bad_rating(bad_rating: dict) -> None:
    payload = copy.deepcopy(WRITING_PAYLOAD)
    payload["rating"] = bad_rating
    with pytest.raises(MalformedResponseError):
        parse_writing_correction(payload)


@pytest.mark.parametrize("score", [0, 0.5, 10.5, 99, -3, float("nan"), float("inf")])
def test_writing_correction_scores_are_one_to_ten(score: float) -> None:
    payload = copy.deepcopy(WRITING_PAYLOAD)
    payload["rating"]["tone"] = score
    with pytest.raises(MalformedResponseError, match="tone"):
        parse_writing_correction(payload)


def test_writing_correction_accepts_score_bounds() -> None:
    payload = copy.deepcopy(WRITING_PAYLOAD)
    payload["rating"] = {"grammar": 1, "clarity": 10, "tone": 7.5}
    rating = parse_writing_correction(payload).rating
    assert (rating.grammar, rating.clarity, rating.tone) == (1, 10, 7.5)


def test_writing_correction_tips_must_be_strings() -> None:
    payload = copy.deepcopy(WRITING_PAYLOAD)
    payload["tips"] = ["ok", 3]
    with pytest.raises(MalformedResponseError, match="tips"):
        parse_writing_correction(payload)


def test_parse_quiz() -> None:
    quiz = parse_quiz(QUIZ_PAYLOAD)
    assert isinstance(quiz, QuizData)
    assert len(quiz.questions) == 2
    assert quiz.questions[1].correct_answer_index == 1
    assert quiz.questions[0].options == ["la pomme", "le pain", "la poire"]


def test_quiz_index_accepts_whole_floats() -> None:
    payload = copy.deepcopy(QUIZ_PAYLOAD)
    payload["questions"][0]["correctAnswerIndex"] = 2.0
    assert parse_quiz(payload).questions[0].correct_answer_index == 2


@pytest.mark.parametrize("index", [3, -1, 0.5, float("nan"), float("inf"), float("-inf")])
def test_quiz_index_must_point_at_an_option(index) -> None:
    payload = copy.deepcopy(QUIZ_PAYLOAD)
    payload["questions"][0]["correctAnswerIndex"] = index
    with pytest.raises(MalformedResponseError):
        parse_quiz(payload)


@pytest.mark.parametrize("payload", [
    {},
    {"questions": []},
    {"questions": "none"},
    [],
    "quiz",
])
def test_quiz_shape_errors(payload) -> None:
    with pytest.raises(MalformedResponseError):
        parse_quiz(payload)


@pytest.mark.parametrize("schema", [WRITING_CORRECTION_SCHEMA, QUIZ_SCHEMA])
def test_response_format_is_strict_json_schema(schema) -> None:
    response_format = schema.response_format()
    assert response_format["type"] == "json_schema"
    assert response_format["json_schema"]["name"] == schema.name
    assert response_format["json_schema"]["strict"] is True
    body = response_format["json_schema"]["schema"]
    assert body["additionalProperties"] is False
    assert set(body["required"]) == set(body["properties"])
