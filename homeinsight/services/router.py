"""
Question Router - the orchestrator behind /api/chat.

Sequence per question:
1. Build the PropertyContext (defaults for anything the caller omitted)
2. Classify and plan (category, providers, handler kinds)
3. Fan out every handler concurrently and merge the results
4. Validate / enrich the merged data through the AI backend
5. Short-circuit to an AI-only answer when nothing usable came back or
   confidence is low, otherwise format the answer for the category

Every failure degrades the answer; ``route`` always returns a ChatResponse.
"""

from __future__ import annotations

import logging
import time
from typing import AsyncIterator, List, Optional, Tuple

from ..ai.backend import AIBackend, create_ai_backend
from ..config import ProviderAvailability, Settings, get_settings
from ..handlers.ai_query import DEFAULT_AI_RETRY, AIQueryHandler
from ..handlers.direct_api import DirectAPIHandler
from ..handlers.executor import FanOutExecutor, FanOutResult, HandlerInvocation
from ..handlers.extrapolation import ExtrapolationHandler
from ..handlers.vision import StaticVisionAnalyzer, VisionAnalyzer, VisionHandler
from ..models import ChatRequest, ChatResponse, HandlerKind, PropertyContext, QuestionCategory, StreamEvent
from ..providers.base import ProviderRegistry
from ..routing.provider_index import provider_timeout
from ..routing.provider_selector import RoutingPlan, build_routing_plan, describe_plan
from ..utils.retry import RetryPolicy
from .formatter import AI_LOOKUP_KEY, VISION_KEY, AnswerFormatter
from .validation import AI_RETRY, APOLOGY, DEFAULT_FOLLOW_UPS, ValidationService

logger = logging.getLogger(__name__)


STREAM_CHUNK_CHARS = 80

# Added to each handler's own time budget to get its fan-out cutoff;
# a slow provider then falls back to its mock payload before the cutoff fires
FANOUT_GRACE_SECONDS = 1.0


def chunk_answer(answer: str, size: int = STREAM_CHUNK_CHARS) -> List[str]:
    """Split an answer into consecutive pieces that join back to the original."""
    return [answer[i:i + size] for i in range(0, len(answer), size)] or [""]


class QuestionRouter:
    """Routes one question through plan, fan-out, validation and formatting.

    Collaborators are injected; anything omitted is built from settings
    and the ProviderAvailability the router was constructed with.
    """

    def __init__(
        self,
        availability: ProviderAvailability,
        registry: Optional[ProviderRegistry] = None,
        ai_backend: Optional[AIBackend] = None,
        vision_analyzer: Optional[VisionAnalyzer] = None,
        executor: Optional[FanOutExecutor] = None,
        formatter: Optional[AnswerFormatter] = None,
        settings: Optional[Settings] = None,
        ai_retry: RetryPolicy = DEFAULT_AI_RETRY,
        validation_retry: RetryPolicy = AI_RETRY,
        ai_call_timeout: Optional[float] = None,
    ):
        settings = settings or get_settings()
        self.availability = availability
        self.registry = registry if registry is not None else ProviderRegistry.from_availability(availability, settings)
        self.ai_backend = ai_backend if ai_backend is not None else create_ai_backend(availability, settings)
        self.executor = executor or FanOutExecutor()
        self.formatter = formatter or AnswerFormatter()

        self.direct_api = DirectAPIHandler(self.registry)
        self.extrapolation = ExtrapolationHandler(self.registry)
        self.ai_query = AIQueryHandler(
            self.ai_backend,
            ai_retry,
            call_timeout=ai_call_timeout if ai_call_timeout is not None else settings.ai_timeout,
        )
        self.vision = VisionHandler(vision_analyzer or StaticVisionAnalyzer())
        self.validation = ValidationService(self.ai_backend, validation_retry)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "QuestionRouter":
        settings = settings or get_settings()
        return cls(ProviderAvailability.from_settings(settings), settings=settings)

    def provider_budget(self, provider_id: str) -> float:
        """Time a provider may spend before it falls back to its mock payload."""
        if provider_id in self.registry:
            return self.registry.get(provider_id).timeout
        return provider_timeout(provider_id)

    def build_invocations(self, plan: RoutingPlan, context: PropertyContext) -> List[HandlerInvocation]:
        """One invocation per direct provider, plus recipe, AI lookup and vision as planned."""
        invocations: List[HandlerInvocation] = []

        for provider_id in plan.direct_providers:
            invocations.append(HandlerInvocation(
                key=provider_id,
                kind=HandlerKind.DIRECT_API,
                call=lambda pid=provider_id: self.direct_api.call(pid, context),
                timeout=self.provider_budget(provider_id) + FANOUT_GRACE_SECONDS,
            ))

        if plan.recipe is not None:
            recipe = plan.recipe
            invocations.append(HandlerInvocation(
                key=recipe.type.value,
                kind=HandlerKind.EXTRAPOLATOR,
                call=lambda: self.extrapolation.run(recipe, context),
                timeout=max(self.provider_budget(pid) for pid in recipe.dataSources) + FANOUT_GRACE_SECONDS,
            ))

        if plan.ai_queries:
            queries = list(plan.ai_queries)
            invocations.append(HandlerInvocation(
                key=AI_LOOKUP_KEY,
                kind=HandlerKind.AI_QUERY,
                call=lambda: self.ai_query.run(queries, context),
                timeout=self.ai_query.time_budget(len(queries)) + FANOUT_GRACE_SECONDS,
            ))

        if plan.vision is not None:
            vision_request = plan.vision
            invocations.append(HandlerInvocation(
                key=VISION_KEY,
                kind=HandlerKind.VISION,
                call=lambda: self.vision.run(vision_request, context),
                timeout=provider_timeout("gemini_vision"),
            ))

        return invocations

    async def _answer(self, question: str, context: PropertyContext, plan: RoutingPlan) -> ChatResponse:
        category = plan.category

        invocations = self.build_invocations(plan, context)
        fanout = await self.executor.execute(invocations) if invocations else FanOutResult()

        outcome = await self.validation.validate_and_enrich(question, category, fanout, context)
        data = outcome.enriched_data

        if not data or outcome.confidence == "low":
            reason = "no data" if not data else f"failed handlers {sorted(fanout.errors)}"
            logger.info(f"[Router] Short-circuit to AI-only answer ({reason})")
            formatted = await self.validation.answer_directly(question, context, data)
        else:
            formatted = self.formatter.format(
                question,
                category,
                data,
                context,
                contributors=fanout.contributors,
                confidence=outcome.confidence,
            )
            formatted.sources += [s for s in outcome.sources if s not in formatted.sources]

        response = ChatResponse(
            answer=formatted.answer,
            confidence=formatted.confidence,
            sources=formatted.sources,
            followUpSuggestions=formatted.followUpSuggestions,
            category=category.value,
            corrections=outcome.corrections or None,
            askSellerButton=self.formatter.ask_seller(category, data),
        )
        return response

    async def _process(self, request: ChatRequest) -> Tuple[ChatResponse, Optional[RoutingPlan]]:
        start = time.perf_counter()
        question = (request.question or "").strip()
        context = PropertyContext.from_partial(request.propertyContext)

        plan: Optional[RoutingPlan] = None
        try:
            plan = build_routing_plan(question, context)
            response = await self._answer(question, context, plan)
        except Exception as e:
            logger.exception(f"[Router] Failed to answer {question!r}: {e}")
            response = ChatResponse(
                answer=APOLOGY,
                confidence="low",
                followUpSuggestions=list(DEFAULT_FOLLOW_UPS),
                category=plan.category.value if plan else QuestionCategory.GENERAL.value,
            )

        response.responseTime_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            f"[Router] {response.category} answered in {response.responseTime_ms}ms "
            f"(confidence={response.confidence}, sources={response.sources})"
        )
        return response, plan

    async def route(self, request: ChatRequest) -> ChatResponse:
        response, _ = await self._process(request)
        return response

    async def stream(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        """Chunk events carrying the answer, then one metadata and one done event."""
        response, plan = await self._process(request)

        for chunk in chunk_answer(response.answer):
            yield StreamEvent(type="chunk", content=chunk)

        metadata = response.model_dump(mode="json", exclude={"answer"})
        metadata["plan"] = describe_plan(plan) if plan else None
        yield StreamEvent(type="metadata", data=metadata)

        yield StreamEvent(type="done", data=response.model_dump(mode="json"))
