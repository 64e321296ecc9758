from __future__ import annotations
import asyncio
import json
import logging
import re
import httpx
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from .prompts import json_output_instructions
from .settings import Settings, settings as default_settings

if TYPE_CHECKING:
	from .tools import Tool

logger = logging.getLogger(__name__)

GEMINI_PREFIX = "googleai/"
# Gemini model names are interpolated into the request path
_MODEL_NAME_RE = re.compile(r"[A-Za-z0-9._-]+")


class ProviderError(RuntimeError):
	"""Any failure talking to the generation provider (auth, quota, network, timeout, bad output)."""


class GenerationResult(BaseModel):
	text: Optional[str] = None
	structured: Optional[Dict[str, Any]] = None


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
	if not isinstance(text, str) or not text:
		raise ProviderError("Model returned no content where JSON was expected")
	candidates = [text]
	code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
	if code_block:
		candidates.append(code_block.group(1))
	first = text.find("{")
	last = text.rfind("}")
	if first != -1 and last != -1 and last > first:
		candidates.append(text[first : last + 1])
	for candidate in candidates:
		try:
			data = json.loads(candidate)
		except ValueError:
			continue
		if isinstance(data, dict):
			return data
	raise ProviderError("Model did not return a valid JSON object")


def _candidate_parts(data: Dict[str, Any]) -> List[Dict[str, Any]]:
	try:
		candidate = data["candidates"][0]
	except (KeyError, IndexError, TypeError):
		raise ProviderError(f"Unexpected Gemini response: {str(data)[:200]}")
	if not isinstance(candidate, dict):
		raise ProviderError(f"Unexpected Gemini candidate: {str(candidate)[:200]}")
	content = candidate.get("content") or {}
	if not isinstance(content, dict):
		raise ProviderError(f"Unexpected Gemini content: {str(content)[:200]}")
	parts = content.get("parts") or []
	if not isinstance(parts, list):
		raise ProviderError("Unexpected Gemini parts")
	return [p for p in parts if isinstance(p, dict)]


def _join_text(parts: Sequence[Dict[str, Any]]) -> Optional[str]:
	texts = [p["text"] for p in parts if isinstance(p.get("text"), str)]
	return "".join(texts) if texts else None


class GeminiClient:
	"""Generation provider adapter.

	Gemini models go through the ``generateContent`` REST endpoint (AI Studio or
	Vertex express). Other ``vendor/model`` ids are served by the OpenAI-compatible
	OpenRouter endpoint, which also backs up plain-text Gemini calls when a key
	is configured. One instance is shared per process; it owns a pooled httpx client.
	"""

	def __init__(self, config: Optional[Settings] = None, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
		self.settings = config or default_settings
		self.api_key = self.settings.gemini_api_key
		self.model = self.settings.gemini_model
		self.provider = self.settings.gemini_provider
		self._auth_in_query = self.provider != "vertex"
		self._client = http_client or httpx.AsyncClient(timeout=self.settings.provider_timeout_seconds)
		self._openrouter_api_key = self.settings.openrouter_api_key
		self._openrouter_base_url = self.settings.openrouter_base_url
		self._openrouter_headers = {
			"Authorization": f"Bearer {self._openrouter_api_key}" if self._openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": self.settings.openrouter_referer,
			"X-Title": self.settings.openrouter_title,
		}
		self._fallback_enabled = bool(self._openrouter_api_key)

	@property
	def configured(self) -> bool:
		return bool(self.api_key)

	def resolve_model(self, model: Optional[str] = None) -> Tuple[str, str]:
		"""Map a request model id to ``(backend, model_name)``."""
		requested = (model or "").strip() or self.model
		if requested.startswith(GEMINI_PREFIX):
			return "gemini", requested[len(GEMINI_PREFIX):]
		if "/" in requested:
			return "openrouter", requested
		return "gemini", requested

	def _endpoint(self, model_name: str) -> str:
		if not _MODEL_NAME_RE.fullmatch(model_name) or ".." in model_name:
			raise ProviderError(f"Invalid Gemini model name: {model_name[:80]!r}")
		if self.provider == "vertex":
			region = self.settings.vertex_region
			project = self.settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			return (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{model_name}:generateContent"
			)
		# Google AI Studio (Generative Language API)
		return f"https://generativelanguage.googleapis.com/v1beta/models/{model_name}:generateContent"

	async def generate(
		self,
		prompt: str,
		*,
		model: Optional[str] = None,
		output_schema: Optional[Dict[str, Any]] = None,
		tools: Optional[Sequence["Tool"]] = None,
	) -> GenerationResult:
		timeout = self.settings.provider_timeout_seconds
		try:
			return await asyncio.wait_for(
				self._generate(prompt, model=model, output_schema=output_schema, tools=tools),
				timeout=timeout,
			)
		except asyncio.TimeoutError as exc:
			raise ProviderError(f"Provider call timed out after {timeout}s") from exc

	async def _generate(
		self,
		prompt: str,
		*,
		model: Optional[str],
		output_schema: Optional[Dict[str, Any]],
		tools: Optional[Sequence["Tool"]],
	) -> GenerationResult:
		backend, model_name = self.resolve_model(model)
		if backend == "openrouter":
			# Tools are not forwarded here; callers repair missing tool output themselves
			text = await self._openrouter_generate(prompt, model_name, output_schema=output_schema)
		elif tools:
			text = await self._generate_with_tools(prompt, model_name, output_schema=output_schema, tools=tools)
		else:
			payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
			if output_schema is not None:
				payload["generationConfig"] = {
					"responseMimeType": "application/json",
					"responseSchema": output_schema,
				}
			try:
				data = await self._post_gemini(model_name, payload)
				text = _join_text(_candidate_parts(data))
			except ProviderError as err:
				if output_schema is not None or not self._fallback_enabled:
					raise
				text = await self._fallback_generate(prompt, err)
		if output_schema is None:
			return GenerationResult(text=text)
		return GenerationResult(text=text, structured=extract_json_object(text))

	async def _generate_with_tools(
		self,
		prompt: str,
		model_name: str,
		*,
		output_schema: Optional[Dict[str, Any]],
		tools: Sequence["Tool"],
	) -> Optional[str]:
		# Gemini rejects responseSchema together with function calling, so JSON is requested in the prompt
		if output_schema is not None:
			prompt = f"{prompt}\n\n{json_output_instructions(output_schema)}"
		by_name = {tool.name: tool for tool in tools}
		declarations = [tool.declaration() for tool in tools]
		contents: List[Dict[str, Any]] = [{"role": "user", "parts": [{"text": prompt}]}]
		for _ in range(self.settings.gemini_max_tool_rounds):
			data = await self._post_gemini(
				model_name,
				{"contents": contents, "tools": [{"functionDeclarations": declarations}]},
			)
			parts = _candidate_parts(data)
			calls = [p["functionCall"] for p in parts if isinstance(p.get("functionCall"), dict)]
			if not calls:
				return _join_text(parts)
			contents.append({"role": "model", "parts": parts})
			responses: List[Dict[str, Any]] = []
			for call in calls:
				name = str(call.get("name", ""))
				tool = by_name.get(name)
				if tool is None:
					logger.warning("Model requested unknown tool %r", name)
					result: Dict[str, Any] = {"error": f"Unknown tool: {name}"}
				else:
					logger.info("Model invoked tool %s", name)
					result = tool.invoke(call.get("args") or {})
				responses.append({"functionResponse": {"name": name, "response": result}})
			contents.append({"role": "user", "parts": responses})
		raise ProviderError(
			f"Gemini kept requesting tools after {self.settings.gemini_max_tool_rounds} rounds"
		)

	async def _post_gemini(self, model_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
		if not self.api_key:
			raise ProviderError("GEMINI_API_KEY is not configured")
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		try:
			r = await self._client.post(self._endpoint(model_name), params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			raise ProviderError(f"Gemini returned HTTP {http_err.response.status_code}") from http_err
		except httpx.RequestError as net_err:
			raise ProviderError(f"Gemini request failed: {net_err.__class__.__name__}") from net_err
		try:
			data = r.json()
		except ValueError as err:
			raise ProviderError("Gemini returned a non-JSON body") from err
		if not isinstance(data, dict):
			raise ProviderError("Gemini returned an unexpected body")
		return data

	async def _openrouter_generate(
		self,
		prompt: str,
		model_name: str,
		*,
		output_schema: Optional[Dict[str, Any]] = None,
	) -> Optional[str]:
		if not self._openrouter_api_key:
			raise ProviderError(f"OPENROUTER_API_KEY is not configured; cannot serve model {model_name}")
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		payload: Dict[str, Any] = {"model": model_name}
		if output_schema is not None:
			prompt = f"{prompt}\n\n{json_output_instructions(output_schema)}"
			payload["response_format"] = {"type": "json_object"}
		payload["messages"] = [{"role": "user", "content": prompt}]
		try:
			r = await self._client.post(self._openrouter_base_url, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			raise ProviderError(f"OpenRouter returned HTTP {http_err.response.status_code}") from http_err
		except httpx.RequestError as net_err:
			raise ProviderError(f"OpenRouter request failed: {net_err.__class__.__name__}") from net_err
		try:
			content = r.json()["choices"][0]["message"]["content"]
		except (ValueError, KeyError, IndexError, TypeError) as err:
			raise ProviderError("Unexpected OpenRouter response") from err
		if content is not None and not isinstance(content, str):
			raise ProviderError("Unexpected OpenRouter message content")
		return content

	async def _fallback_generate(self, prompt: str, primary_error: ProviderError) -> Optional[str]:
		logger.warning("Gemini call failed (%s); retrying via OpenRouter", primary_error)
		try:
			return await self._openrouter_generate(prompt, self.settings.openrouter_fallback_model)
		except ProviderError as fallback_err:
			raise ProviderError(
				f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed"
			) from fallback_err

	async def aclose(self) -> None:
		await self._client.aclose()
