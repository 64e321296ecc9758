"""
Tests for tools.py - resource lookup, time estimator, quiz generator
"""
import pytest

from study_planner.gemini_client import GenerationResult, ProviderError
from study_planner.tools import (
    ESTIMATE_STUDY_TIME,
    FIND_EDUCATIONAL_LINK,
    estimate_study_time,
    find_educational_link,
    generate_quiz_questions,
)


class TestFindEducationalLink:

    def test_khan_academy(self):
        resource = find_educational_link("Algebra", "khanacademy")
        assert resource.platform == "Khan Academy"
        assert resource.title == "Algebra - Khan Academy"
        assert resource.url == "https://www.khanacademy.org/search?page_search_query=Algebra"

    def test_coursera_encodes_topic(self):
        resource = find_educational_link("Linear Algebra & Geometry", "coursera")
        assert resource.platform == "Coursera"
        assert resource.title == "Linear Algebra & Geometry Courses"
        assert resource.url == "https://www.coursera.org/search?query=Linear%20Algebra%20%26%20Geometry"

    @pytest.mark.parametrize("platform", [None, "youtube", "any"])
    def test_youtube_is_default(self, platform):
        resource = find_educational_link("  Calculus  ", platform)
        assert resource.platform == "YouTube"
        assert resource.title == "Introduction to Calculus"
        assert resource.url == "https://www.youtube.com/results?search_query=Calculus+tutorial"

    @pytest.mark.parametrize("platform", ["any", "coursera", "youtube", None])
    def test_blank_topic_returns_default(self, platform):
        for topic in ("", "   ", None):
            resource = find_educational_link(topic, platform)
            assert resource.url == "https://www.khanacademy.org"
            assert resource.platform == "Khan Academy"
            assert resource.title == "Getting Started"

    def test_is_pure(self):
        first = find_educational_link("Organic Chemistry", "khanacademy")
        second = find_educational_link("Organic Chemistry", "khanacademy")
        assert first.model_dump_json() == second.model_dump_json()


class TestEstimateStudyTime:

    @pytest.mark.parametrize("difficulty,hours,weeks", [
        ("beginner", 5, 4),
        ("intermediate", 8, 8),
        ("advanced", 12, 12),
    ])
    def test_table_values(self, difficulty, hours, weeks):
        estimate = estimate_study_time("X", difficulty)
        assert estimate.hours_per_week == hours
        assert estimate.total_weeks == weeks
        assert estimate.topic == "X"
        assert estimate.description == (
            f"For {difficulty} level X, we recommend {hours} hours per week for {weeks} weeks."
        )

    def test_unknown_difficulty_is_rejected(self):
        with pytest.raises(ValueError):
            estimate_study_time("X", "expert")

    def test_is_pure(self):
        assert (
            estimate_study_time("Sets", "advanced").model_dump_json()
            == estimate_study_time("Sets", "advanced").model_dump_json()
        )


class TestToolInvocation:

    def test_find_link_accepts_camel_case_args(self):
        result = FIND_EDUCATIONAL_LINK.invoke({"topic": "Physics", "preferredPlatform": "coursera"})
        assert result == {
            "title": "Physics Courses",
            "url": "https://www.coursera.org/search?query=Physics",
            "platform": "Coursera",
        }

    def test_estimate_serializes_camel_case(self):
        result = ESTIMATE_STUDY_TIME.invoke({"topic": "Physics", "difficulty": "intermediate"})
        assert result["hoursPerWeek"] == 8
        assert result["totalWeeks"] == 8

    def test_invalid_args_become_error_payload(self):
        result = ESTIMATE_STUDY_TIME.invoke({"topic": "Physics", "difficulty": "expert"})
        assert "error" in result

    def test_declaration_shape(self):
        declaration = FIND_EDUCATIONAL_LINK.declaration()
        assert declaration["name"] == "findEducationalLink"
        assert declaration["parameters"]["required"] == ["topic"]


class _QuizProvider:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.prompts = []

    async def generate(self, prompt, *, model=None, output_schema=None, tools=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.result


class TestGenerateQuizQuestions:

    @pytest.mark.asyncio
    async def test_returns_valid_questions(self):
        provider = _QuizProvider(GenerationResult(structured={"questions": [
            {"question": "2+2?", "type": "multiple-choice", "answer": "4",
             "options": ["1", "2", "3", "4"], "explanation": "Arithmetic"},
            {"question": "Zero is even.", "type": "true-false", "answer": "True"},
        ]}))
        quiz = await generate_quiz_questions(provider, "Arithmetic", count=2, difficulty="advanced")
        assert quiz.topic == "Arithmetic"
        assert [q.type for q in quiz.questions] == ["multiple-choice", "true-false"]
        assert quiz.questions[0].options == ["1", "2", "3", "4"]
        assert 'Generate 2 quiz questions about "Arithmetic" for advanced level learners.' in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_provider_failure_degrades_to_empty(self):
        provider = _QuizProvider(error=ProviderError("rate limited"))
        quiz = await generate_quiz_questions(provider, "Sets")
        assert quiz.topic == "Sets"
        assert quiz.questions == []

    @pytest.mark.asyncio
    async def test_malformed_entries_are_dropped(self):
        provider = _QuizProvider(GenerationResult(structured={"questions": [
            {"question": "Valid?", "type": "short-answer", "answer": "Yes"},
            {"question": "Bad type", "type": "essay", "answer": "x"},
            "not an object",
        ]}))
        quiz = await generate_quiz_questions(provider, "Logic")
        assert [q.question for q in quiz.questions] == ["Valid?"]

    @pytest.mark.asyncio
    async def test_missing_questions_list_degrades_to_empty(self):
        provider = _QuizProvider(GenerationResult(structured={"items": []}))
        quiz = await generate_quiz_questions(provider, "Logic")
        assert quiz.questions == []

    @pytest.mark.asyncio
    async def test_count_is_clamped(self):
        provider = _QuizProvider(GenerationResult(structured={"questions": []}))
        await generate_quiz_questions(provider, "Logic", count=50)
        assert "Generate 10 quiz questions" in provider.prompts[0]
