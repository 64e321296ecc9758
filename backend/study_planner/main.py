import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .gemini_client import GeminiClient
from .settings import settings
from .routers import generate

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	# One provider client per process, shared by every request
	app.state.settings = settings
	app.state.gemini_client = GeminiClient(settings)
	if not app.state.gemini_client.configured:
		logger.warning("GEMINI_API_KEY is not set; Gemini-backed generation will fail")
	try:
		yield
	finally:
		await app.state.gemini_client.aclose()


app = FastAPI(title="Study Planner API", lifespan=lifespan)

app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

app.include_router(generate.router)


@app.get("/info")
def root():
	return {
		"status": "ok",
		"gemini_configured": bool(settings.gemini_api_key),
		"default_model": settings.gemini_model,
	}
