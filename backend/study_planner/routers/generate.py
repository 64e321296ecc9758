from __future__ import annotations
import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..flows import enhanced_study_plan_generator, structured_study_plan_generator, study_plan_generator
from ..gemini_client import GeminiClient
from ..models import GenerationRequest, PlanResult, QuizResult, ResponseEnvelope, ResponseMeta
from ..settings import Settings
from ..tools import generate_quiz_questions


logger = logging.getLogger(__name__)

router = APIRouter(tags=["generate"])


def get_provider(request: Request) -> GeminiClient:
    return request.app.state.gemini_client


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def tools_used(req: GenerationRequest) -> List[str]:
    # Declarative: derived from the request, not from what the model actually called
    tools: List[str] = []
    if req.resolved_flow_mode == "simple":
        tools.append("studyTopicsPrompt")
    else:
        tools.append("structuredStudyPlanPrompt")
        tools.append("findEducationalLink")
        if req.resolved_flow_mode == "enhanced" or req.include_time_estimates:
            tools.append("estimateStudyTime")
    if req.include_quiz:
        tools.append("generateQuizQuestions")
    return tools


async def run_flow(provider: GeminiClient, req: GenerationRequest) -> PlanResult:
    mode = req.resolved_flow_mode
    logger.info("Generating %s study plan for %r", mode, req.subject)
    if mode == "simple":
        return await study_plan_generator(provider, req.subject, model=req.model, topic_count=req.topic_count)
    if mode == "enhanced":
        return await enhanced_study_plan_generator(
            provider,
            req.subject,
            difficulty=req.difficulty,
            model=req.model,
            include_time_estimates=req.include_time_estimates,
        )
    return await structured_study_plan_generator(provider, req.subject, model=req.model, difficulty=req.difficulty)


async def build_quiz(
    provider: GeminiClient,
    plan: PlanResult,
    difficulty: str,
    count: int,
) -> Optional[List[QuizResult]]:
    # One call per distinct topic, first occurrence wins the position
    topics = list(dict.fromkeys(plan.topic_names()))
    if not topics:
        return None
    results = await asyncio.gather(
        *(generate_quiz_questions(provider, topic, count=count, difficulty=difficulty) for topic in topics)
    )
    return list(results)


@router.post("/generate")
@router.post("/api/generate", include_in_schema=False)
async def generate(
    request: Request,
    provider: GeminiClient = Depends(get_provider),
    config: Settings = Depends(get_settings),
):
    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    req = GenerationRequest.model_validate(body)
    if not req.subject:
        return JSONResponse({"error": "Missing subject"}, status_code=400)

    try:
        plan = await run_flow(provider, req)
        quiz = None
        if req.include_quiz:
            quiz = await build_quiz(provider, plan, req.difficulty, config.quiz_question_count)
    except Exception:
        logger.exception("Error generating study plan for %r", req.subject)
        return JSONResponse({"error": "Internal Server Error"}, status_code=500)

    envelope = ResponseEnvelope(
        data=plan,
        quiz=quiz,
        meta=ResponseMeta(flow_mode=req.resolved_flow_mode, tools_used=tools_used(req)),
    )
    return JSONResponse(envelope.to_wire(), status_code=200)
