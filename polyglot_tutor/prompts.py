"""
Prompt text for every tool.

All functions are pure: the same language and parameters always produce
the same prompt string.
"""

LEVELS = ("Beginner", "Intermediate", "Advanced")
DEFAULT_PLAN_LEVEL = "Beginner"
DEFAULT_QUIZ_DIFFICULTY = "Intermediate"
QUIZ_QUESTION_COUNT = 5


def explain_grammar(language: str, topic: str) -> str:
    return (
        f"You are an expert {language} teacher. "
        f"Explain the grammar topic \"{topic}\" to a student.\n"
        "Include:\n"
        "1. A clear explanation.\n"
        f"2. Examples in {language} with translations.\n"
        "3. Common mistakes to avoid.\n"
        "Format the output in clean Markdown."
    )


def vocabulary_list(language: str, theme: str) -> str:
    return (
        f"Create a vocabulary list for the theme \"{theme}\" in {language}.\n"
        "Provide a table with columns: Word/Phrase, Pronunciation (if applicable), "
        "Meaning, and Example Sentence.\n"
        "Format as a Markdown table. Add a brief usage note at the end."
    )


def correct_writing(language: str, text: str) -> str:
    return (
        f"Act as a strict but helpful language editor for {language}. "
        "Correct the following text:\n"
        f"\"{text}\"\n\n"
        "Return a JSON object with:\n"
        "- correctedText: The rewritten version.\n"
        "- explanation: Why changes were made.\n"
        "- tips: A list of 3 tips for improvement.\n"
        "- rating: Object with scores (1-10) for grammar, clarity, and tone."
    )


def translate(language: str, text: str) -> str:
    return (
        f"Translate the following text into {language}:\n"
        f"\"{text}\"\n\n"
        "After the translation, provide a bulleted list explaining 2-3 key grammar "
        "points or vocabulary choices used in the translation.\n"
        "Format in Markdown."
    )


def pronunciation_guide(language: str, text: str) -> str:
    return (
        f"Provide a pronunciation guide for this {language} sentence:\n"
        f"\"{text}\"\n\n"
        "Include:\n"
        "1. Phonetic breakdown (IPA or simple phonetic spelling).\n"
        "2. Syllable stress indication.\n"
        f"3. Tone explanation (if applicable for {language}).\n"
        "4. Notes on difficult sounds for learners.\n"
        "Format in Markdown."
    )


def learning_plan(language: str, level: str = DEFAULT_PLAN_LEVEL) -> str:
    return (
        f"Create a 5-day mini learning plan for a {level} student learning {language}.\n"
        "For each day, suggest:\n"
        "- A grammar topic.\n"
        "- A vocabulary theme.\n"
        "- A quick practice exercise.\n"
        "Format in clear Markdown."
    )


def quiz(language: str, topic: str, difficulty: str = DEFAULT_QUIZ_DIFFICULTY) -> str:
    return (
        f"Generate a {QUIZ_QUESTION_COUNT}-question multiple choice quiz for {language} "
        f"regarding \"{topic}\" at a {difficulty} level.\n"
        "Each question needs its options, the 0-based index of the correct option "
        "and a short explanation.\n"
        "Return JSON."
    )


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------

def tutor_instruction(language: str, topic: str) -> str:
    """System instruction that seeds a conversation session."""
    return (
        "You are a friendly and patient language tutor conversation partner.\n"
        f"The language being learned is {language}. The topic is \"{topic}\".\n"
        "Correct the user gently if they make major mistakes, but prioritize keeping "
        "the conversation flowing.\n"
        f"Speak mostly in {language}, but you can use English for complex explanations "
        "if the user is struggling.\n"
        "Keep responses concise (under 50 words) to encourage back-and-forth."
    )


def chat_greeting(language: str, topic: str) -> str:
    return f"Hello! Let's talk about \"{topic}\" in {language}. How are you?"
