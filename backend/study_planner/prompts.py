"""Prompt templates and Gemini response schemas for the study plan flows.

The schemas use the OpenAPI subset accepted by Gemini's ``responseSchema`` and
``functionDeclarations`` (upper-case type names, no ``title`` keys).
"""
from __future__ import annotations
import json
from typing import Any, Dict


_RESOURCE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "url": {"type": "STRING"},
        "platform": {"type": "STRING"},
    },
    "required": ["title", "url"],
}

STRUCTURED_PLAN_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "subject": {"type": "STRING"},
        "topics": {"type": "ARRAY", "items": {"type": "STRING"}},
        "resource": _RESOURCE_SCHEMA,
        "difficulty": {"type": "STRING"},
    },
    "required": ["subject", "topics", "resource"],
}

# The enhanced flow computes per-topic data itself, so it only asks for names
ENHANCED_PLAN_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "subject": {"type": "STRING"},
        "topics": {"type": "ARRAY", "items": {"type": "STRING"}},
        "resource": _RESOURCE_SCHEMA,
    },
    "required": ["subject", "topics", "resource"],
}

QUIZ_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "type": {
                        "type": "STRING",
                        "enum": ["multiple-choice", "true-false", "short-answer"],
                    },
                    "answer": {"type": "STRING"},
                    "options": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "explanation": {"type": "STRING"},
                },
                "required": ["question", "type", "answer"],
            },
        },
    },
    "required": ["questions"],
}


def study_topics_prompt(subject: str, topic_count: int = 5) -> str:
    return (
        "You are an expert tutor with deep knowledge across all academic subjects.\n\n"
        f'Given the subject "{subject}", suggest {topic_count} concise, actionable study topics as a bullet list.\n\n'
        "Guidelines:\n"
        "- Start from fundamentals and progress to advanced concepts\n"
        "- Focus on core understanding before details\n"
        "- Make each topic specific and actionable\n"
        "- Order topics in a logical learning sequence"
    )


def structured_study_plan_prompt(subject: str, difficulty: str = "beginner") -> str:
    return (
        "You are an expert educational consultant creating personalized study plans.\n\n"
        f"Subject: {subject}\n"
        f"Difficulty Level: {difficulty}\n\n"
        "Create a structured study plan that includes:\n"
        "1. Subject name (exactly as provided)\n"
        "2. 3-5 core topics to study in logical order\n"
        "3. A recommended educational resource\n\n"
        "Guidelines:\n"
        "- For beginners: focus on fundamentals and core concepts\n"
        "- For intermediate: include practical applications and deeper theory\n"
        "- For advanced: emphasize mastery, research, and real-world problems\n"
        "- Topics should be specific, measurable learning objectives\n"
        "- Use the findEducationalLink tool to find a high-quality resource for the main subject"
    )


def quiz_questions_prompt(topic: str, count: int = 3, difficulty: str = "beginner") -> str:
    return (
        f'Generate {count} quiz questions about "{topic}" for {difficulty} level learners.\n\n'
        "For each question, provide:\n"
        "1. The question text\n"
        "2. The correct answer\n"
        "3. For multiple-choice: 4 options (including the correct answer)\n"
        "4. A brief explanation of why the answer is correct\n\n"
        "Mix question types: multiple-choice, true-false, and short-answer.\n"
        'Return a JSON object {"questions": [...]} where each item has the format:\n'
        "{\n"
        '  "question": "...",\n'
        '  "type": "multiple-choice|true-false|short-answer",\n'
        '  "answer": "...",\n'
        '  "options": ["A", "B", "C", "D"] (only for multiple-choice),\n'
        '  "explanation": "..."\n'
        "}"
    )


def json_output_instructions(schema: Dict[str, Any]) -> str:
    # Used when the provider cannot combine tools with a response schema
    return (
        "Return ONLY a JSON object (no markdown, no commentary) that matches this schema:\n"
        f"{json.dumps(schema, indent=2)}"
    )
