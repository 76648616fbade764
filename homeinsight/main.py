from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from .config import Settings, get_settings
from .exceptions import ValidationError, get_error_response
from .models import ChatRequest, ChatResponse, HealthResponse
from .services.router import QuestionRouter
from .services.validation import APOLOGY

logger = logging.getLogger("homeinsight")
logging.basicConfig(level=logging.INFO)


settings: Settings = get_settings()
_router: Optional[QuestionRouter] = None


def get_router() -> QuestionRouter:
    """Get the global question router, built on first use."""
    global _router
    if _router is None:
        _router = QuestionRouter.from_settings(settings)
    return _router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    from .utils.http_pool import HTTPClientPool, close_http_pool

    HTTPClientPool()
    router = get_router()
    logger.info(
        f"HomeInsight ready (environment={settings.environment}, "
        f"live providers={router.registry.live_ids() or 'none'}, ai={router.ai_backend.name})"
    )

    yield

    await close_http_pool()


app = FastAPI(title="HomeInsight API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins if settings.allowed_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


ERROR_BODY = {
    "error": "Failed to process question",
    "answer": APOLOGY,
    "sources": [],
    "confidence": "low",
}

USAGE = {
    "usage": "GET /api/chat?q=your+question or POST /api/chat with {\"question\": \"...\", \"propertyContext\": {...}}",
    "examples": [
        "How far is the nearest grocery store?",
        "Is this a good investment?",
        "What's the true monthly cost?",
        "Any red flags?",
    ],
}


def require_question(question: Optional[str]) -> str:
    """Return the stripped question.

    Raises:
        ValidationError: If the question is missing or blank
    """
    if not question or not question.strip():
        raise ValidationError("Question is required", field="question")
    return question.strip()


def format_sse_event(event_type: str, data: dict) -> str:
    """Format data as a Server-Sent Event string."""
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"


@app.get("/api/health", response_model=HealthResponse)
async def health(router: QuestionRouter = Depends(get_router)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.environment,
        mockMode=settings.mock_mode,
        services={pid: router.availability.is_live(pid) for pid in sorted(settings.configured_providers())},
    )


@app.post("/api/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, router: QuestionRouter = Depends(get_router)):
    try:
        require_question(request.question)
    except ValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": e.message})

    logger.info(f"Chat question: {request.question}")
    try:
        return await router.route(request)
    except Exception as e:
        logger.exception(f"Chat request failed: {get_error_response(e)}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=ERROR_BODY)


@app.get("/api/chat")
async def chat_get(q: Optional[str] = Query(default=None), router: QuestionRouter = Depends(get_router)):
    """Convenience endpoint for quick manual testing."""
    try:
        question = require_question(q)
    except ValidationError:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=USAGE)

    try:
        response = await router.route(ChatRequest(question=question))
    except Exception as e:
        logger.exception(f"Chat request failed: {get_error_response(e)}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=ERROR_BODY)
    return response.model_dump(mode="json")


@app.post("/api/chat/stream")
async def chat_stream(request: ChatRequest, router: QuestionRouter = Depends(get_router)):
    """Streaming version of /api/chat using Server-Sent Events"""
    try:
        require_question(request.question)
    except ValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": e.message})

    logger.info(f"Stream question: {request.question}")

    async def generate_events():
        try:
            async for event in router.stream(request):
                payload = event.model_dump(mode="json", exclude_none=True, exclude={"type"})
                yield format_sse_event(event.type, payload)
        except Exception:
            logger.exception("Streaming chat error")
            yield format_sse_event("error", ERROR_BODY)
            yield format_sse_event("done", {})

    return StreamingResponse(
        generate_events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@app.get("/")
async def root():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("homeinsight.main:app", host="0.0.0.0", port=3001, reload=settings.environment == "development")
