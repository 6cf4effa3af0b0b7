import pytest

from polyglot_tutor import prompts


@pytest.mark.parametrize(("builder", "args"), [
    (prompts.explain_grammar, ("German", "Dative case")),
    (prompts.vocabulary_list, ("French", "At the Airport")),
    (prompts.correct_writing, ("Spanish", "Yo soy cansado.")),
    (prompts.translate, ("Japanese", "Good morning")),
    (prompts.pronunciation_guide, ("Vietnamese", "Xin chào")),
    (prompts.learning_plan, ("Korean", "Advanced")),
    (prompts.quiz, ("Italian", "Food", "Beginner")),
    (prompts.tutor_instruction, ("Spanish", "Travel")),
])
def test_prompts_are_pure_and_embed_inputs(builder, args) -> None:
    first = builder(*args)
    second = builder(*args)
    assert first == second
    for arg in args:
        assert arg in first


def test_vocabulary_prompt_requests_four_column_table() -> None:
    prompt = prompts.vocabulary_list("French", "At the Airport")
    assert "French" in prompt
    assert '"At the Airport"' in prompt
    assert "Markdown table" in prompt
    for column in ("Word/Phrase", "Pronunciation", "Meaning", "Example Sentence"):
        assert column in prompt


def test_learning_plan_defaults_to_beginner() -> None:
    assert prompts.learning_plan("Portuguese") == prompts.learning_plan("Portuguese", "Beginner")
    assert "5-day" in prompts.learning_plan("Portuguese")


def test_quiz_prompt_defaults_and_asks_for_json() -> None:
    prompt = prompts.quiz("Chinese (Mandarin)", "Numbers")
    assert "Intermediate" in prompt
    assert f"{prompts.QUIZ_QUESTION_COUNT}-question" in prompt
    assert prompt.rstrip().endswith("Return JSON.")


def test_writing_prompt_asks_for_the_result_fields() -> None:
    prompt = prompts.correct_writing("French", "Je suis allé")
    for name in ("correctedText", "explanation", "tips", "rating"):
        assert name in prompt


def test_tutor_instruction_sets_persona() -> None:
    instruction = prompts.tutor_instruction("German", "Hobbies")
    assert "tutor" in instruction
    assert "Correct the user gently" in instruction
    assert "under 50 words" in instruction


def test_chat_greeting_mentions_language_and_topic() -> None:
    assert prompts.chat_greeting("Spanish", "Travel") == \
        "Hello! Let's talk about \"Travel\" in Spanish. How are you?"
