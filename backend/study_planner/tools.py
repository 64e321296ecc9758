from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Type
from urllib.parse import quote

from pydantic import BaseModel, Field, ValidationError

from .gemini_client import ProviderError
from .models import (
    CamelModel,
    Difficulty,
    EstimatedTime,
    Platform,
    QuizQuestion,
    QuizResult,
    Resource,
    StudyTimeEstimate,
)
from .prompts import QUIZ_SCHEMA, quiz_questions_prompt

if TYPE_CHECKING:
    from .gemini_client import GeminiClient

logger = logging.getLogger(__name__)


DEFAULT_RESOURCE = Resource(
    title="Getting Started",
    url="https://www.khanacademy.org",
    platform="Khan Academy",
)

# difficulty -> (hours per week, total weeks)
STUDY_TIME_TABLE: Dict[str, EstimatedTime] = {
    "beginner": EstimatedTime(hours_per_week=5, total_weeks=4),
    "intermediate": EstimatedTime(hours_per_week=8, total_weeks=8),
    "advanced": EstimatedTime(hours_per_week=12, total_weeks=12),
}


def _encode(text: str) -> str:
    # Same escaping as JavaScript's encodeURIComponent
    return quote(text, safe="-_.!~*'()")


def find_educational_link(topic: Optional[str], preferred_platform: Optional[str] = None) -> Resource:
    q = (topic or "").strip()
    if not q:
        return DEFAULT_RESOURCE.model_copy()
    encoded = _encode(q)
    if preferred_platform == "khanacademy":
        return Resource(
            title=f"{q} - Khan Academy",
            url=f"https://www.khanacademy.org/search?page_search_query={encoded}",
            platform="Khan Academy",
        )
    if preferred_platform == "coursera":
        return Resource(
            title=f"{q} Courses",
            url=f"https://www.coursera.org/search?query={encoded}",
            platform="Coursera",
        )
    return Resource(
        title=f"Introduction to {q}",
        url=f"https://www.youtube.com/results?search_query={encoded}+tutorial",
        platform="YouTube",
    )


def estimate_study_time(topic: str, difficulty: str) -> StudyTimeEstimate:
    base = STUDY_TIME_TABLE.get(difficulty)
    if base is None:
        raise ValueError(f"difficulty must be one of {list(STUDY_TIME_TABLE)}, got {difficulty!r}")
    return StudyTimeEstimate(
        topic=topic,
        hours_per_week=base.hours_per_week,
        total_weeks=base.total_weeks,
        description=(
            f"For {difficulty} level {topic}, we recommend "
            f"{base.hours_per_week} hours per week for {base.total_weeks} weeks."
        ),
    )


async def generate_quiz_questions(
    provider: "GeminiClient",
    topic: str,
    count: int = 3,
    difficulty: str = "beginner",
) -> QuizResult:
    """Ask the provider for ``count`` mixed-type questions about ``topic``.

    Quiz output is an optional enrichment: provider failures and malformed
    output degrade to an empty question list instead of raising.
    """
    count = max(1, min(int(count), 10))
    try:
        result = await provider.generate(
            quiz_questions_prompt(topic, count, difficulty),
            output_schema=QUIZ_SCHEMA,
        )
    except ProviderError as exc:
        logger.warning("Quiz generation failed for %r: %s", topic, exc)
        return QuizResult(topic=topic, questions=[])

    raw_questions = (result.structured or {}).get("questions")
    if not isinstance(raw_questions, list):
        logger.warning("Quiz output for %r had no questions list", topic)
        return QuizResult(topic=topic, questions=[])

    questions = []
    for item in raw_questions:
        try:
            questions.append(QuizQuestion.model_validate(item))
        except ValidationError:
            continue
    return QuizResult(topic=topic, questions=questions)


class FindEducationalLinkArgs(CamelModel):
    topic: str
    preferred_platform: Optional[Platform] = None


class EstimateStudyTimeArgs(CamelModel):
    topic: str
    difficulty: Difficulty


class Tool:
    """A local function offered to the model through function calling."""

    def __init__(
        self,
        name: str,
        description: str,
        parameters: Dict[str, Any],
        args_model: Type[BaseModel],
        handler: Callable[..., BaseModel],
    ) -> None:
        self.name = name
        self.description = description
        self.parameters = parameters
        self.args_model = args_model
        self.handler = handler

    def declaration(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "parameters": self.parameters}

    def invoke(self, args: Dict[str, Any]) -> Dict[str, Any]:
        # Bad arguments go back to the model as an error payload so it can retry
        try:
            parsed = self.args_model.model_validate(args)
        except ValidationError as exc:
            return {"error": f"Invalid arguments for {self.name}: {exc.errors(include_url=False)}"}
        result = self.handler(**parsed.model_dump())
        return result.model_dump(by_alias=True, exclude_none=True)


FIND_EDUCATIONAL_LINK = Tool(
    name="findEducationalLink",
    description=(
        "Find a relevant educational link for a topic. Can target specific platforms "
        "like YouTube, Khan Academy, or Coursera."
    ),
    parameters={
        "type": "OBJECT",
        "properties": {
            "topic": {"type": "STRING"},
            "preferredPlatform": {
                "type": "STRING",
                "enum": ["youtube", "khanacademy", "coursera", "any"],
            },
        },
        "required": ["topic"],
    },
    args_model=FindEducationalLinkArgs,
    handler=find_educational_link,
)

ESTIMATE_STUDY_TIME = Tool(
    name="estimateStudyTime",
    description=(
        "Estimate the time required to master a topic based on difficulty level. "
        "Returns recommended hours per week and total weeks needed."
    ),
    parameters={
        "type": "OBJECT",
        "properties": {
            "topic": {"type": "STRING"},
            "difficulty": {
                "type": "STRING",
                "enum": ["beginner", "intermediate", "advanced"],
            },
        },
        "required": ["topic", "difficulty"],
    },
    args_model=EstimateStudyTimeArgs,
    handler=estimate_study_time,
)
