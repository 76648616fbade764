"""
Question Routing Module

Deterministic routing of a property question to data providers:
- CategoryClassifier: ordered pattern rules, first match wins
- provider_index: static provider table, category defaults, recipes
- provider_selector: provider set, handler kinds and the routing plan
"""

from .classifier import CATEGORY_PATTERNS, CategoryClassifier, ClassificationResult, classify_question
from .provider_index import (
    CATEGORY_DEFAULTS,
    CATEGORY_RECIPES,
    EXTRAPOLATION_RECIPES,
    PROVIDER_INDEX,
    ProviderDescriptor,
)
from .provider_selector import (
    AIQueryConfig,
    RoutingPlan,
    VisionRequest,
    build_routing_plan,
    needs_ai_fallback,
    needs_extrapolation,
    needs_vision,
    select_providers,
)

__all__ = [
    "CATEGORY_PATTERNS",
    "CategoryClassifier",
    "ClassificationResult",
    "classify_question",
    "CATEGORY_DEFAULTS",
    "CATEGORY_RECIPES",
    "EXTRAPOLATION_RECIPES",
    "PROVIDER_INDEX",
    "ProviderDescriptor",
    "AIQueryConfig",
    "RoutingPlan",
    "VisionRequest",
    "build_routing_plan",
    "needs_ai_fallback",
    "needs_extrapolation",
    "needs_vision",
    "select_providers",
]
