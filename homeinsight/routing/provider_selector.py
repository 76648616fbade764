"""
Provider Selector - Which providers and handlers answer a classified question.

Usage:
    from homeinsight.routing import build_routing_plan

    plan = build_routing_plan(question, context)
    print(plan.category, sorted(plan.providers), plan.handlers)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from ..models import (
    ExtrapolationConfig,
    HandlerKind,
    PropertyContext,
    QuestionCategory,
)
from .classifier import classify_question
from .provider_index import (
    CATEGORY_DEFAULTS,
    CATEGORY_RECIPES,
    EXTRAPOLATION_RECIPES,
    PROVIDER_INDEX,
    ProviderDescriptor,
    is_structured,
)

logger = logging.getLogger(__name__)


AI_CATEGORIES: FrozenSet[QuestionCategory] = frozenset({
    QuestionCategory.NEIGHBORHOOD_VIBE,
    QuestionCategory.PROPERTY_HISTORY,
    QuestionCategory.GENERAL,
})

# Information that lives in forums, news and public records, not in any structured feed
AI_KEYWORDS: Tuple[str, ...] = (
    "permit", "hoa", "neighbor", "reddit", "nextdoor", "sex offender",
    "development", "construction", "what is it like", "liens", "sentiment",
)

EXTRAPOLATION_CATEGORIES: FrozenSet[QuestionCategory] = frozenset({
    QuestionCategory.FINANCIAL_VALUE,
    QuestionCategory.FINANCIAL_INVESTMENT,
    QuestionCategory.FINANCIAL_COST,
    QuestionCategory.RED_FLAGS,
    QuestionCategory.COMPARISON,
})

VISION_KEYWORDS: Tuple[str, ...] = (
    "fit", "garage", "kitchen", "updated", "condition", "look like",
    "natural light", "backyard", "private", "room", "photo",
)


@dataclass(frozen=True)
class AIQueryConfig:
    """One AI lookup: a template name plus the parameters it is rendered with."""
    template: str
    params: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class VisionRequest:
    prompt: str
    photo_indices: Tuple[int, ...] = (0,)


@dataclass
class RoutingPlan:
    """Everything the fan-out needs to know about one question."""
    category: QuestionCategory
    providers: FrozenSet[str]
    handlers: List[HandlerKind] = field(default_factory=list)
    direct_providers: Tuple[str, ...] = ()
    recipe: Optional[ExtrapolationConfig] = None
    ai_queries: List[AIQueryConfig] = field(default_factory=list)
    vision: Optional[VisionRequest] = None


def select_providers(
    category: QuestionCategory,
    question: str,
    index: Optional[Mapping[str, ProviderDescriptor]] = None,
) -> FrozenSet[str]:
    """Keyword pass over every descriptor, falling back to the category defaults.

    The result is a set: iteration order of ``index`` never changes it.
    """
    index = PROVIDER_INDEX if index is None else index
    lowered = (question or "").lower()

    selected = {
        provider_id
        for provider_id, descriptor in index.items()
        if descriptor.matches(lowered)
    }
    if not selected:
        selected = set(CATEGORY_DEFAULTS.get(category, ()))
    return frozenset(selected)


def needs_ai_fallback(category: QuestionCategory, question: str) -> bool:
    if category in AI_CATEGORIES:
        return True
    lowered = (question or "").lower()
    return any(keyword in lowered for keyword in AI_KEYWORDS)


def needs_extrapolation(category: QuestionCategory) -> bool:
    return category in EXTRAPOLATION_CATEGORIES


def needs_vision(question: str, has_photos: bool) -> bool:
    if not has_photos:
        return False
    lowered = (question or "").lower()
    return any(keyword in lowered for keyword in VISION_KEYWORDS)


def recipe_for(category: QuestionCategory) -> Optional[ExtrapolationConfig]:
    """Recipe answering this category, if any (comparison has none)."""
    recipe_type = CATEGORY_RECIPES.get(category)
    if recipe_type is None:
        return None
    return EXTRAPOLATION_RECIPES[recipe_type]


def build_ai_queries(
    category: QuestionCategory,
    question: str,
    context: PropertyContext,
) -> List[AIQueryConfig]:
    """Pick the AI lookup templates a question needs (at least one)."""
    lowered = (question or "").lower()
    queries: List[AIQueryConfig] = []

    if "neighbor" in lowered or "vibe" in lowered or "like to live" in lowered:
        queries.append(AIQueryConfig("neighborhoodSentiment", {"neighborhood": context.city, "city": context.city}))
    if "permit" in lowered:
        queries.append(AIQueryConfig("permitHistory", {"address": context.address, "city": context.city}))
    if "hoa" in lowered:
        queries.append(AIQueryConfig("hoaInfo", {"address": context.address, "neighborhood": context.city}))
    if "sex offender" in lowered:
        queries.append(AIQueryConfig("sexOffenders", {"address": context.address, "zipCode": context.zipCode}))
    if "development" in lowered or "construction" in lowered:
        queries.append(AIQueryConfig("upcomingDevelopment", {"neighborhood": context.city, "city": context.city}))

    if not queries:
        if category == QuestionCategory.GENERAL:
            queries.append(AIQueryConfig("general", {"question": question}))
        else:
            queries.append(AIQueryConfig("neighborhoodSentiment", {"neighborhood": context.city, "city": context.city}))
    return queries


def choose_vision_prompt(question: str) -> str:
    lowered = (question or "").lower()
    if "garage" in lowered or "fit" in lowered:
        return "garageSize"
    if "kitchen" in lowered:
        return "kitchenCondition"
    if "light" in lowered:
        return "naturalLight"
    if "backyard" in lowered or "private" in lowered:
        return "backyardPrivacy"
    return "overallCondition"


def build_routing_plan(question: str, context: PropertyContext) -> RoutingPlan:
    """Classify the question and decide which handlers run.

    - VISION when the context has photos and the question asks about them
    - AI_QUERY when the answer lives outside structured data, or the
      AI provider was selected
    - EXTRAPOLATOR when the category has a recipe
    - DIRECT_API otherwise, for every structured provider selected
    """
    category = classify_question(question)
    providers = select_providers(category, question)

    plan = RoutingPlan(category=category, providers=providers)

    if needs_vision(question, bool(context.photos)):
        plan.handlers.append(HandlerKind.VISION)
        plan.vision = VisionRequest(prompt=choose_vision_prompt(question))

    if needs_ai_fallback(category, question) or "perplexity" in providers:
        plan.handlers.append(HandlerKind.AI_QUERY)
        plan.ai_queries = build_ai_queries(category, question, context)

    recipe = recipe_for(category) if needs_extrapolation(category) else None
    if recipe is not None:
        plan.handlers.append(HandlerKind.EXTRAPOLATOR)
        plan.recipe = recipe
    else:
        direct = tuple(sorted(p for p in providers if is_structured(p)))
        if direct:
            plan.handlers.append(HandlerKind.DIRECT_API)
            plan.direct_providers = direct

    logger.info(
        f"[Router] category={category.value} providers={sorted(providers)} "
        f"handlers={[h.value for h in plan.handlers]}"
    )
    return plan


def describe_plan(plan: RoutingPlan) -> Dict[str, object]:
    """Plain-dict view of a plan for logs and stream metadata."""
    return {
        "category": plan.category.value,
        "providers": sorted(plan.providers),
        "handlers": [h.value for h in plan.handlers],
        "recipe": plan.recipe.type.value if plan.recipe else None,
        "aiTemplates": [q.template for q in plan.ai_queries],
        "visionPrompt": plan.vision.prompt if plan.vision else None,
    }
