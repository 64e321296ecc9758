from __future__ import annotations
import math
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


Difficulty = Literal["beginner", "intermediate", "advanced"]
FlowMode = Literal["simple", "structured", "enhanced"]
Platform = Literal["youtube", "khanacademy", "coursera", "any"]
QuestionType = Literal["multiple-choice", "true-false", "short-answer"]

DIFFICULTIES = ("beginner", "intermediate", "advanced")
FLOW_MODES = ("simple", "structured", "enhanced")

MIN_TOPIC_COUNT = 3
MAX_TOPIC_COUNT = 10


class CamelModel(BaseModel):
	# Python attributes stay snake_case; JSON keys are camelCase
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Resource(CamelModel):
	title: str
	url: str
	platform: Optional[str] = None


class EstimatedTime(CamelModel):
	hours_per_week: int
	total_weeks: int


class StudyTimeEstimate(EstimatedTime):
	topic: str
	description: str


class EnhancedTopic(CamelModel):
	name: str
	estimated_time: Optional[EstimatedTime] = None


class TextPlan(CamelModel):
	mode: ClassVar[FlowMode] = "simple"

	text: str

	def topic_names(self) -> List[str]:
		return []


class StructuredPlan(CamelModel):
	mode: ClassVar[FlowMode] = "structured"

	subject: str
	topics: List[str] = Field(default_factory=list)
	resource: Resource
	difficulty: Difficulty

	def topic_names(self) -> List[str]:
		return list(self.topics)


class EnhancedPlan(CamelModel):
	mode: ClassVar[FlowMode] = "enhanced"

	subject: str
	difficulty: Difficulty
	topics: List[EnhancedTopic] = Field(default_factory=list)
	resource: Resource
	# Present only when time estimates were requested
	total_estimated_hours: Optional[int] = None

	def topic_names(self) -> List[str]:
		return [t.name for t in self.topics]


PlanResult = Union[TextPlan, StructuredPlan, EnhancedPlan]


class QuizQuestion(CamelModel):
	question: str
	type: QuestionType
	answer: str
	options: Optional[List[str]] = None
	explanation: Optional[str] = None


class QuizResult(CamelModel):
	topic: str
	questions: List[QuizQuestion] = Field(default_factory=list)


class ResponseMeta(CamelModel):
	flow_mode: FlowMode
	tools_used: List[str]


class ResponseEnvelope(CamelModel):
	data: PlanResult
	quiz: Optional[List[QuizResult]] = None
	meta: ResponseMeta

	def to_wire(self) -> Dict[str, Any]:
		# Absent optionals are omitted inside data/quiz, but "quiz" itself is always sent
		return {
			"data": self.data.model_dump(by_alias=True, exclude_none=True),
			"quiz": None if self.quiz is None else [q.model_dump(by_alias=True, exclude_none=True) for q in self.quiz],
			"meta": self.meta.model_dump(by_alias=True),
		}


class GenerationRequest(CamelModel):
	"""Body of ``POST /generate``.

	Every field except ``subject`` is forgiving: a wrong type or an unknown
	enum value falls back to the default instead of failing validation. A blank
	subject survives validation as ``""`` so the router can answer 400 itself.
	"""

	subject: str = ""
	model: Optional[str] = None
	difficulty: Difficulty = "beginner"
	flow_mode: FlowMode = "structured"
	enhanced: bool = False
	topic_count: int = Field(default=5, ge=MIN_TOPIC_COUNT, le=MAX_TOPIC_COUNT)
	include_time_estimates: bool = False
	include_quiz: bool = False

	@field_validator("subject", mode="before")
	@classmethod
	def _coerce_subject(cls, value: Any) -> str:
		return value.strip() if isinstance(value, str) else ""

	@field_validator("model", mode="before")
	@classmethod
	def _coerce_model(cls, value: Any) -> Optional[str]:
		if isinstance(value, str) and value.strip():
			return value.strip()
		return None

	@field_validator("difficulty", mode="before")
	@classmethod
	def _coerce_difficulty(cls, value: Any) -> str:
		return value if value in DIFFICULTIES else "beginner"

	@field_validator("flow_mode", mode="before")
	@classmethod
	def _coerce_flow_mode(cls, value: Any) -> str:
		return value if value in FLOW_MODES else "structured"

	@field_validator("enhanced", "include_time_estimates", "include_quiz", mode="before")
	@classmethod
	def _coerce_flag(cls, value: Any) -> bool:
		# Only a literal JSON true switches a flag on
		return value is True

	@field_validator("topic_count", mode="before")
	@classmethod
	def _coerce_topic_count(cls, value: Any) -> int:
		if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
			return 5
		return max(MIN_TOPIC_COUNT, min(int(value), MAX_TOPIC_COUNT))

	@property
	def resolved_flow_mode(self) -> FlowMode:
		if self.flow_mode == "simple":
			return "simple"
		if self.enhanced or self.flow_mode == "enhanced":
			return "enhanced"
		return "structured"
