from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Any, List, Optional

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from .models import EnhancedPlan, EnhancedTopic, EstimatedTime, Resource, StructuredPlan, TextPlan
from .prompts import (
    ENHANCED_PLAN_SCHEMA,
    STRUCTURED_PLAN_SCHEMA,
    structured_study_plan_prompt,
    study_topics_prompt,
)
from .tools import ESTIMATE_STUDY_TIME, FIND_EDUCATIONAL_LINK, estimate_study_time, find_educational_link

if TYPE_CHECKING:
    from .gemini_client import GeminiClient

logger = logging.getLogger(__name__)


NO_SUGGESTIONS = "No suggestions available."

_http_url = TypeAdapter(AnyHttpUrl)


def _is_absolute_url(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        _http_url.validate_python(value)
    except ValidationError:
        return False
    return True


def _ensure_resource(raw: Any, subject: str) -> Resource:
    """Keep the model's resource when it carries a usable URL, else look one up."""
    if isinstance(raw, dict) and _is_absolute_url(raw.get("url")):
        title = raw.get("title")
        platform = raw.get("platform")
        return Resource(
            title=title if isinstance(title, str) and title.strip() else subject,
            url=raw["url"].strip(),
            platform=platform if isinstance(platform, str) and platform.strip() else None,
        )
    logger.info("No usable resource in model output for %r; using lookup", subject)
    return find_educational_link(subject)


def _topic_names(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [t.strip() for t in raw if isinstance(t, str) and t.strip()]


def _plan_subject(raw: Any, subject: str) -> str:
    return raw.strip() if isinstance(raw, str) and raw.strip() else subject


async def study_plan_generator(
    provider: "GeminiClient",
    subject: str,
    model: Optional[str] = None,
    topic_count: int = 5,
) -> TextPlan:
    result = await provider.generate(study_topics_prompt(subject, topic_count), model=model)
    text = result.text if result.text and result.text.strip() else NO_SUGGESTIONS
    return TextPlan(text=text)


async def structured_study_plan_generator(
    provider: "GeminiClient",
    subject: str,
    model: Optional[str] = None,
    difficulty: str = "beginner",
) -> StructuredPlan:
    result = await provider.generate(
        structured_study_plan_prompt(subject, difficulty),
        model=model,
        output_schema=STRUCTURED_PLAN_SCHEMA,
        tools=[FIND_EDUCATIONAL_LINK],
    )
    data = result.structured or {}
    # difficulty always reflects the request, whatever the model echoed
    return StructuredPlan(
        subject=_plan_subject(data.get("subject"), subject),
        topics=_topic_names(data.get("topics")),
        resource=_ensure_resource(data.get("resource"), subject),
        difficulty=difficulty,
    )


async def enhanced_study_plan_generator(
    provider: "GeminiClient",
    subject: str,
    difficulty: str = "beginner",
    model: Optional[str] = None,
    include_time_estimates: bool = False,
) -> EnhancedPlan:
    result = await provider.generate(
        structured_study_plan_prompt(subject, difficulty),
        model=model,
        output_schema=ENHANCED_PLAN_SCHEMA,
        tools=[FIND_EDUCATIONAL_LINK, ESTIMATE_STUDY_TIME],
    )
    data = result.structured or {}

    topics: List[EnhancedTopic] = []
    total_hours = 0
    for name in _topic_names(data.get("topics")):
        if not include_time_estimates:
            topics.append(EnhancedTopic(name=name))
            continue
        estimate = estimate_study_time(name, difficulty)
        topics.append(
            EnhancedTopic(
                name=name,
                estimated_time=EstimatedTime(
                    hours_per_week=estimate.hours_per_week,
                    total_weeks=estimate.total_weeks,
                ),
            )
        )
        total_hours += estimate.hours_per_week * estimate.total_weeks

    return EnhancedPlan(
        subject=_plan_subject(data.get("subject"), subject),
        difficulty=difficulty,
        topics=topics,
        resource=_ensure_resource(data.get("resource"), subject),
        total_estimated_hours=total_hours if include_time_estimates else None,
    )
