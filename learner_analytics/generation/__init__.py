"""Advisory text generation: clients, prompts, and JSON extraction."""

from learner_analytics.generation.json_extract import (
    extract_json_array,
    strip_code_fences,
)
from learner_analytics.generation.text_generator import (
    ChatCompletionsTextGenerator,
    GeminiTextGenerator,
    ResilientGenerator,
    StaticTextGenerator,
    TextGenerator,
    build_text_generator,
)

__all__ = [
    "ChatCompletionsTextGenerator",
    "GeminiTextGenerator",
    "ResilientGenerator",
    "StaticTextGenerator",
    "TextGenerator",
    "build_text_generator",
    "extract_json_array",
    "strip_code_fences",
]
