# api/app/prompts.py
# ------------------------------------------------------------
# Fixed instruction tables sent to the model
# ------------------------------------------------------------
from types import MappingProxyType

DEFAULT_LANGUAGE = "auto"

LANGUAGE_PROMPTS = MappingProxyType({
    "auto": (
        "Extract the handwritten text from this document. Detect the language "
        "automatically and respond only with the transcribed text."
    ),
    "en": (
        "Extract and transcribe the handwritten text in English. "
        "Respond with the best English transcription."
    ),
    "hi": "Extract and transcribe the handwritten text in Hindi using Devanagari script.",
    "mr": "Extract and transcribe the handwritten text in Marathi using Devanagari script.",
    "es": "Extract and transcribe the handwritten text in Spanish. Respond in Spanish.",
})

MODE_INSTRUCTIONS = MappingProxyType({
    "summarize": (
        "Provide a concise summary of the following handwritten transcription. "
        "Return clear paragraphs."
    ),
    "rewrite": (
        "Rewrite the following handwritten transcription into polished, "
        "easy-to-read prose while preserving meaning."
    ),
})

ALLOWED_MODES = frozenset(MODE_INSTRUCTIONS)


def normalize_language(value) -> str:
    """Lower-case a form value; anything that is not a string means auto."""
    if isinstance(value, str):
        return value.lower()
    return DEFAULT_LANGUAGE


def language_prompt(language) -> str:
    """
    Resolve the extraction instruction for a language hint.
    Unknown or missing hints use the auto-detect instruction.
    """
    return LANGUAGE_PROMPTS.get(normalize_language(language), LANGUAGE_PROMPTS[DEFAULT_LANGUAGE])


def transform_prompt(text: str, mode: str) -> str:
    """Instruction for the mode followed by the transcription."""
    return f"{MODE_INSTRUCTIONS[mode]}\n\n---\n\n{text}"
