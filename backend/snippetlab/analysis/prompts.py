"""Prompt construction for the text-completion service.

The service generates free prose, so the prompt is the only place the
expected JSON shape can be pinned down. Each builder spells out the exact
keys and array shapes that the parsers in ``snippetlab.analysis.parser`` read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from snippetlab.analysis.languages import language_name

ANALYSIS_SYSTEM_PROMPT = (
    "You are a helpful language learning assistant. Always respond with valid JSON."
)

FLASHCARD_SYSTEM_PROMPT = (
    "You are a language learning assistant creating flashcards. Always respond with valid JSON."
)

QUIZ_SYSTEM_PROMPT = (
    "You are a language learning assistant creating quiz questions. Always respond with valid JSON."
)

# Keys the analysis parser reads
ANALYSIS_RESPONSE_KEYS: tuple[str, ...] = (
    "contextualExplanation",
    "examples",
    "explanations",
    "translation",
)

_ANALYSIS_SCHEMA = """{
  "contextualExplanation": "...",
  "examples": [
    {"example": "...", "translation": "..."},
    {"example": "...", "translation": "..."},
    {"example": "...", "translation": "..."}
  ],
  "explanations": ["...", "...", "...", "..."],
  "translation": "..."
}"""

_WORKED_EXAMPLE = {
    "contextualExplanation": (
        "In this context of 'etwas lustig zu machen', 'lustig' translates to funny, "
        "indicating that the action involves adding humor to a situation or event."
    ),
    "examples": [
        {
            "example": "Der Clown wollte die Party etwas lustig machen.",
            "translation": "The clown wanted to make the party a bit funny.",
        },
        {
            "example": "Die Komödie war so lustig, dass wir alle laut gelacht haben.",
            "translation": "The comedy was so funny that we all laughed out loud.",
        },
        {
            "example": "Kannst du das etwas lustig machen, damit es interessanter wird?",
            "translation": "Can you make it a bit funny so that it becomes more interesting?",
        },
    ],
    "explanations": [
        "'Lustig' generally means 'funny' or 'amusing.' It describes something that causes "
        "laughter or entertainment and works as an adjective modifying nouns.",
        "The phrase 'etwas lustig machen' means introducing humor into a situation: 'etwas' "
        "means 'something', 'lustig' means 'funny' and 'machen' means 'to make'.",
        "'Lustig' can also describe a person's character, e.g. 'Er ist sehr lustig' means "
        "'He is very funny.'",
    ],
    "translation": "funny",
}

ANALYSIS_USER_PROMPT = """You are a language learning assistant. Analyze the following {learning_language} text and provide a comprehensive learning breakdown.

Text: "{text}"
Context: "{context}"

Please provide:
1. Contextual meaning of the text in the context where it was found. If the context is the same as the text or the context is insufficient, go for the most common meaning.
2. 3-4 example sentences for the most common usages (in {learning_language} with {base_language} translations).
3. Each meaning with explanations about the structure, words, or usage and a set of examples.
4. {base_language} translation.

Format your response as JSON with this structure:
{schema}

For example, for the text "lustig" in German in the context of "etwas lustig zu machen", the response could look like this:
{worked_example}"""

FLASHCARD_USER_PROMPT = """Based on this {language} snippet and its translation, generate 2-3 useful flashcards for learning.

Snippet: "{snippet}"
Translation: "{translation}"

Create flashcards that help learn:
- The main phrase/sentence
- Key vocabulary words
- Important grammar patterns

Format as JSON:
{{
  "flashcards": [
    {{"front": "{language} text", "back": "{base_language} meaning"}},
    {{"front": "{language} text", "back": "{base_language} meaning"}}
  ]
}}"""

QUIZ_USER_PROMPT = """Create a multiple-choice quiz question based on this {language} learning material:

Snippet: "{snippet}"
Translation: "{translation}"
Grammar points: {grammar}

Create ONE quiz question that tests understanding of:
- Translation/meaning
- Grammar usage
- Vocabulary

Provide 4 options with only one correct answer.

Format as JSON:
{{
  "question": "...",
  "options": ["option1", "option2", "option3", "option4"],
  "correctAnswer": 0,
  "explanation": "Brief explanation of the correct answer"
}}

correctAnswer should be the index (0-3) of the correct option."""


@dataclass(frozen=True)
class CompletionRequest:
    """Role-tagged messages plus the JSON-object directive."""

    messages: list[dict[str, str]]
    json_mode: bool = True


def build_analysis_request(
    text: str,
    context: str,
    learning_language_code: str,
    base_language_code: str | None = None,
    *,
    default_base_language: str = "en",
) -> CompletionRequest:
    """Assemble the analysis prompt for a selected snippet.

    Language codes are resolved to names where known and passed through
    unchanged otherwise.
    """
    learning = language_name(learning_language_code)
    base = language_name(base_language_code or default_base_language)
    user_prompt = ANALYSIS_USER_PROMPT.format(
        learning_language=learning,
        base_language=base,
        text=text,
        context=context,
        schema=_ANALYSIS_SCHEMA,
        worked_example=json.dumps(_WORKED_EXAMPLE, ensure_ascii=False, indent=2),
    )
    return CompletionRequest(
        messages=[
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ]
    )


def build_flashcard_request(
    snippet: str,
    translation: str,
    language_code: str,
    base_language_code: str = "en",
) -> CompletionRequest:
    user_prompt = FLASHCARD_USER_PROMPT.format(
        language=language_name(language_code),
        base_language=language_name(base_language_code),
        snippet=snippet,
        translation=translation,
    )
    return CompletionRequest(
        messages=[
            {"role": "system", "content": FLASHCARD_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ]
    )


def build_quiz_request(
    snippet: str,
    translation: str,
    grammar: list[str],
    language_code: str,
) -> CompletionRequest:
    user_prompt = QUIZ_USER_PROMPT.format(
        language=language_name(language_code),
        snippet=snippet,
        translation=translation,
        grammar="; ".join(grammar) if grammar else "(none given)",
    )
    return CompletionRequest(
        messages=[
            {"role": "system", "content": QUIZ_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ]
    )
