"""
Diagnostic Test Generation.

Builds the question bank a learner answers before a chapter. The text
generator is asked for a JSON array of questions; items missing a field the
learner needs (question, options, answer, topic, concept) are dropped, and
when nothing usable remains a fixed bank is returned instead.
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from learner_analytics.generation.prompts import diagnostic_test_prompt
from learner_analytics.generation.text_generator import ResilientGenerator
from learner_analytics.schemas import BankQuestion, Difficulty

DEFAULT_QUESTION_COUNT = 30
DEFAULT_CLASS_LEVEL = 9

CONCEPTS_BY_CLASS: dict[int, list[str]] = {
    1: ["Basic counting (1-100)", "Simple addition and subtraction", "Shapes recognition", "Number patterns"],
    2: ["Addition and subtraction (up to 1000)", "Multiplication tables (2-10)", "Basic geometry shapes", "Time and money"],
    3: ["Multiplication and division", "Fractions (basic)", "Measurement units", "Data handling (simple graphs)"],
    4: ["Large numbers", "Fractions (proper/improper)", "Decimals (basic)", "Geometry (angles, triangles)"],
    5: ["Decimals and fractions", "Factors and multiples", "Area and perimeter", "Data handling"],
    6: ["Integers", "Fractions and decimals (operations)", "Basic algebra", "Ratio and proportion"],
    7: ["Rational numbers", "Simple equations", "Lines and angles", "Triangles and quadrilaterals"],
    8: ["Rational numbers (operations)", "Linear equations", "Quadrilaterals", "Mensuration"],
    9: [
        "Number systems (rational/irrational)",
        "Polynomials (basic)",
        "Coordinate geometry",
        "Linear equations in two variables",
    ],
    10: ["Real numbers", "Polynomials", "Quadratic equations", "Coordinate geometry (advanced)"],
    11: ["Sets and functions", "Trigonometry", "Sequences and series", "Coordinate geometry (3D)"],
    12: ["Calculus (limits, derivatives)", "Probability", "Vectors", "Linear programming"],
}

_BASE_FALLBACK = [
    BankQuestion(
        id="diag_1",
        question="What is 15 + 27?",
        options=["42", "41", "43", "40"],
        correct_answer="42",
        explanation="15 + 27 = 42. Add the ones place: 5 + 7 = 12, write 2 carry 1. Add tens: 1 + 2 + 1 = 4.",
        difficulty=Difficulty.EASY,
        topic="Basic Arithmetic",
        concept="Addition",
    ),
    BankQuestion(
        id="diag_2",
        question="Which of these is a rational number?",
        options=["√2", "π", "3/4", "√5"],
        correct_answer="3/4",
        explanation="A rational number can be expressed as p/q where q ≠ 0. 3/4 is in this form.",
        difficulty=Difficulty.MEDIUM,
        topic="Number Systems",
        concept="Rational Numbers",
    ),
    BankQuestion(
        id="diag_3",
        question="What is 2³?",
        options=["6", "8", "9", "4"],
        correct_answer="8",
        explanation="2³ means 2 × 2 × 2 = 8",
        difficulty=Difficulty.EASY,
        topic="Exponents",
        concept="Powers",
    ),
    BankQuestion(
        id="diag_4",
        question="What is the area of a square with side 5 cm?",
        options=["20 cm²", "25 cm²", "10 cm²", "15 cm²"],
        correct_answer="25 cm²",
        explanation="Area of square = side × side = 5 × 5 = 25 cm²",
        difficulty=Difficulty.EASY,
        topic="Geometry",
        concept="Area calculation",
    ),
    BankQuestion(
        id="diag_5",
        question="If 3x = 15, what is x?",
        options=["3", "4", "5", "6"],
        correct_answer="5",
        explanation="To find x, divide both sides by 3: x = 15 ÷ 3 = 5",
        difficulty=Difficulty.MEDIUM,
        topic="Algebra",
        concept="Simple equations",
    ),
]


def concepts_for_class(class_level: int) -> list[str]:
    """Concepts a class level's diagnostic covers; unknown levels use class 9."""
    return CONCEPTS_BY_CLASS.get(class_level, CONCEPTS_BY_CLASS[DEFAULT_CLASS_LEVEL])


def fallback_bank(count: int = DEFAULT_QUESTION_COUNT) -> list[BankQuestion]:
    """Fixed bank: five core questions topped up with addition drills."""
    bank = list(_BASE_FALLBACK[:count])
    for n in range(len(bank) + 1, count + 1):
        answer = 2 * n + 5
        bank.append(
            BankQuestion(
                id=f"diag_{n}",
                question=f"What is {n + 2} + {n + 3}?",
                options=[str(2 * n + 4), str(answer), str(2 * n + 6), str(2 * n + 7)],
                correct_answer=str(answer),
                explanation=f"{n + 2} + {n + 3} = {answer}",
                difficulty=Difficulty.HARD if n % 3 == 0 else Difficulty.MEDIUM if n % 2 == 0 else Difficulty.EASY,
                topic="Basic Arithmetic",
                concept="Addition",
            )
        )
    return bank


class GeneratedQuestion(BaseModel):
    """One generated diagnostic question, after coercion."""

    id: str | None = None
    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=2)
    correct_answer: str = Field(min_length=1)
    explanation: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    topic: str = Field(min_length=1)
    concept: str = Field(min_length=1)

    @field_validator("id", "correct_answer", mode="before")
    @classmethod
    def scalar_as_text(cls, value: Any) -> Any:
        return str(value).strip() if isinstance(value, (int, float, str)) else value

    @field_validator("question", "topic", "concept", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("explanation", mode="before")
    @classmethod
    def single_line(cls, value: Any) -> str:
        return " ".join(value.split()) if isinstance(value, str) else ""

    @field_validator("options", mode="before")
    @classmethod
    def options_as_text(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [str(option).strip() for option in value if isinstance(option, (int, float, str))]

    @field_validator("difficulty", mode="before")
    @classmethod
    def known_difficulty(cls, value: Any) -> Difficulty:
        try:
            return Difficulty(str(value).lower())
        except ValueError:
            return Difficulty.MEDIUM


def coerce_question(item: Any) -> GeneratedQuestion | None:
    """Validate one generated item; None drops it."""
    if not isinstance(item, dict):
        return None
    try:
        return GeneratedQuestion.model_validate(item)
    except ValidationError as e:
        logger.debug(f"Dropping generated question: {e.error_count()} validation errors")
        return None


class DiagnosticTestGenerator:
    """Produces the question bank for a chapter diagnostic."""

    def __init__(self, generator: ResilientGenerator | None = None):
        self.generator = generator or ResilientGenerator(None)

    def generate(self, class_level: int, count: int = DEFAULT_QUESTION_COUNT) -> list[BankQuestion]:
        """
        Generated questions, or the fixed bank.

        Ids are unique within the returned bank: a missing id becomes
        ``diag_<position>`` and a repeated one gets a position suffix.
        """
        prompt = diagnostic_test_prompt(class_level, count, concepts_for_class(class_level))
        generated = self.generator.json_list_or(prompt, [], purpose="diagnostic test", coerce=coerce_question)
        if not generated:
            return fallback_bank(count)

        bank: list[BankQuestion] = []
        seen: set[str] = set()
        for position, item in enumerate(generated[:count], start=1):
            question_id = item.id or f"diag_{position}"
            while question_id in seen:
                question_id = f"{question_id}_{position}"
            seen.add(question_id)
            bank.append(BankQuestion(**item.model_dump(exclude={"id"}), id=question_id))

        logger.info(f"Generated diagnostic test for class {class_level}: {len(bank)} questions")
        return bank
