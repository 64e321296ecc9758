"""
Pytest configuration and fixtures
"""
import asyncio
import re

import pytest
from fastapi.testclient import TestClient

from study_planner.gemini_client import GenerationResult, ProviderError
from study_planner.main import app
from study_planner.prompts import QUIZ_SCHEMA
from study_planner.routers.generate import get_provider, get_settings
from study_planner.settings import Settings


class FakeProvider:
    """Scripted stand-in for GeminiClient.

    Plan calls return ``text`` (plain mode) or ``plan`` (JSON mode). Quiz calls
    echo the topic back with one question, optionally after a per-topic delay
    or by raising for topics listed in ``failing_topics``.
    """

    def __init__(self, *, text="- Topic one\n- Topic two", plan=None, plan_error=None,
                 quiz_delays=None, failing_topics=()):
        self.text = text
        self.plan = plan if plan is not None else {
            "subject": "Algebra",
            "topics": ["Variables", "Equations", "Functions"],
            "resource": {
                "title": "Algebra basics",
                "url": "https://www.khanacademy.org/math/algebra",
                "platform": "Khan Academy",
            },
        }
        self.plan_error = plan_error
        self.quiz_delays = quiz_delays or {}
        self.failing_topics = set(failing_topics)
        self.calls = []
        self.quiz_completion_order = []

    async def generate(self, prompt, *, model=None, output_schema=None, tools=None):
        self.calls.append({
            "prompt": prompt,
            "model": model,
            "output_schema": output_schema,
            "tools": [t.name for t in tools or []],
        })
        if output_schema is QUIZ_SCHEMA:
            topic = re.search(r'about "(.*?)"', prompt).group(1)
            await asyncio.sleep(self.quiz_delays.get(topic, 0))
            self.quiz_completion_order.append(topic)
            if topic in self.failing_topics:
                raise ProviderError("quota exceeded")
            return GenerationResult(structured={"questions": [{
                "question": f"What is {topic}?",
                "type": "short-answer",
                "answer": topic,
            }]})
        if self.plan_error is not None:
            raise self.plan_error
        if output_schema is None:
            return GenerationResult(text=self.text)
        return GenerationResult(structured=dict(self.plan))

    @property
    def quiz_calls(self):
        return [c for c in self.calls if c["output_schema"] is QUIZ_SCHEMA]


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, GEMINI_API_KEY="test-key", QUIZ_QUESTION_COUNT=3)


@pytest.fixture
def client(fake_provider, test_settings):
    app.dependency_overrides[get_provider] = lambda: fake_provider
    app.dependency_overrides[get_settings] = lambda: test_settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
