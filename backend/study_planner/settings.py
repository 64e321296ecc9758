from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	# Default model when the request does not name one
	gemini_model: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_MODEL")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	# Upper bound on functionCall -> functionResponse exchanges per generation
	gemini_max_tool_rounds: int = Field(default=4, ge=1, validation_alias="GEMINI_MAX_TOOL_ROUNDS")
	# Applies to each provider call as a whole, tool rounds included
	provider_timeout_seconds: float = Field(default=30.0, gt=0, validation_alias="PROVIDER_TIMEOUT_SECONDS")

	# OpenRouter (OpenAI-compatible) configuration: serves non-Gemini model ids and plain-text fallback
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_fallback_model: str = Field(default="openai/gpt-4o-mini", validation_alias="OPENROUTER_MODEL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="Study Planner", validation_alias="OPENROUTER_TITLE")

	# Questions requested per topic when a quiz is attached
	quiz_question_count: int = Field(default=3, ge=1, le=10, validation_alias="QUIZ_QUESTION_COUNT")

	cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"], validation_alias="CORS_ALLOW_ORIGINS")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
