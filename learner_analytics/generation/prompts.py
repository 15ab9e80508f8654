"""
Prompts for Advisory Text Generation.

Four prompts, all advisory:
- Diagnostic test: JSON array of question objects
- Diagnostic recommendations: JSON array of encouraging strings
- Diagnostic remediation plan: JSON array of structured recommendation objects
- Progress insight: free-form narrative, never parsed
"""
from __future__ import annotations


def _listing(items: list[str]) -> str:
    return ", ".join(items) if items else "None identified"


# =============================================================================
# Diagnostic Test (question bank)
# =============================================================================

DIAGNOSTIC_TEST_PROMPT = """You are an expert math educator creating diagnostic questions for Class {class_level} students.

CRITICAL: Return ONLY a valid JSON array. No additional text, explanations, or formatting.

Create exactly {count} diagnostic questions that test prerequisite knowledge for Class {class_level} mathematics.

Cover these concepts:
{concepts}

JSON Structure (return exactly this format):
[
  {{
    "id": "diag_1",
    "question": "What is 2/3 + 1/4?",
    "options": ["5/7", "11/12", "3/7", "5/12"],
    "correct_answer": "11/12",
    "explanation": "To add fractions, find common denominator: 2/3 = 8/12, 1/4 = 3/12, so 8/12 + 3/12 = 11/12",
    "difficulty": "medium",
    "topic": "Fractions",
    "concept": "Addition of fractions"
  }}
]

Requirements:
- Mix of difficulties: 40% easy, 40% medium, 20% hard
- Include both computational and conceptual questions
- Clear, student-friendly explanations
- Valid JSON format only"""


def diagnostic_test_prompt(class_level: int, count: int, concepts: list[str]) -> str:
    return DIAGNOSTIC_TEST_PROMPT.format(
        class_level=class_level,
        count=count,
        concepts="\n".join(f"- {concept}" for concept in concepts),
    )


# =============================================================================
# Diagnostic Recommendations (strings)
# =============================================================================

DIAGNOSTIC_RECOMMENDATIONS_PROMPT = """You are a friendly math mentor helping a student. Based on their diagnostic test results, provide 5-7 personalized recommendations.

Results:
- Score: {score}/{total} ({percent}%)
- Strengths: {strengths}
- Weaknesses: {weaknesses}
- Major gaps: {gaps}

CRITICAL: Return ONLY a valid JSON array of strings. No additional text.

Each recommendation should be:
- Encouraging and positive
- Specific and actionable
- Written like a friendly mentor

Example format:
["Great job on {example_strength}! Keep practicing to stay sharp.", "Focus on {example_weakness} with daily 10-minute practice sessions."]

Return only the JSON array."""


def diagnostic_recommendations_prompt(
    score: int,
    total: int,
    strengths: list[str],
    weaknesses: list[str],
    gaps: list[str],
) -> str:
    percent = round(score / total * 100) if total else 0
    return DIAGNOSTIC_RECOMMENDATIONS_PROMPT.format(
        score=score,
        total=total,
        percent=percent,
        strengths=_listing(strengths),
        weaknesses=_listing(weaknesses),
        gaps=_listing(gaps),
        example_strength=strengths[0] if strengths else "basic concepts",
        example_weakness=weaknesses[0] if weaknesses else "problem areas",
    )


# =============================================================================
# Remediation Plan (structured objects)
# =============================================================================

REMEDIATION_PLAN_PROMPT = """Analyze this student's diagnostic test results and generate specific recommendations:

Chapter: {chapter_id}
Score: {score}%
Strengths: {strengths}
Weaknesses: {weaknesses}
Knowledge Gaps: {gaps}

Generate 3-5 specific recommendations with:
1. What to study (specific concepts)
2. How to study (methods and resources)
3. Practice question types
4. Estimated time needed in minutes
5. Priority level (1-5, 5 is most urgent)

Return as a JSON array with this structure:
[
  {{
    "type": "weakness_fix",
    "concept": "specific concept",
    "weakness_area": "area name",
    "recommendation": "detailed recommendation",
    "study_materials": {{"videos": [], "exercises": [], "explanations": []}},
    "practice_questions": {{"easy": [], "medium": [], "hard": []}},
    "estimated_time": 30,
    "priority": 5
  }}
]

"type" must be one of: weakness_fix, concept_review, practice_suggestion."""


def remediation_plan_prompt(
    chapter_id: str,
    score_percentage: float,
    strengths: list[str],
    weaknesses: list[str],
    gaps: list[str],
) -> str:
    return REMEDIATION_PLAN_PROMPT.format(
        chapter_id=chapter_id,
        score=round(score_percentage, 1),
        strengths=_listing(strengths),
        weaknesses=_listing(weaknesses),
        gaps=_listing(gaps),
    )


# =============================================================================
# Progress Insight (narrative)
# =============================================================================

PROGRESS_INSIGHT_PROMPT = """Analyze this student's learning progress and provide insights:

Performance Data:
- Total Questions: {total_attempts}
- Accuracy: {accuracy:.1f}%
- Study Time: {time_spent} minutes
- Strengths: {strengths}
- Weaknesses: {weaknesses}
- Mastered Concepts: {mastered}

Provide a comprehensive analysis including:
1. Overall performance assessment
2. Learning patterns identified
3. Areas of improvement
4. Motivational feedback
5. Next steps recommendations

Write in an encouraging, mentor-like tone. Keep it concise but insightful."""


def progress_insight_prompt(
    total_attempts: int,
    accuracy: float,
    time_spent: int,
    strengths: list[str],
    weaknesses: list[str],
    mastered: list[str],
) -> str:
    return PROGRESS_INSIGHT_PROMPT.format(
        total_attempts=total_attempts,
        accuracy=accuracy,
        time_spent=time_spent,
        strengths=_listing(strengths),
        weaknesses=_listing(weaknesses),
        mastered=_listing(mastered),
    )
