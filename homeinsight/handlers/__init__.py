"""Handler kinds run by the fan-out executor."""

from .ai_query import AIQueryHandler, is_useful_response
from .direct_api import DirectAPIHandler
from .executor import FanOutExecutor, FanOutResult, HandlerInvocation
from .extrapolation import (
    ExtrapolationHandler,
    calculate_investment_analysis,
    calculate_monthly_mortgage,
    calculate_true_monthly_cost,
    check_overpriced,
    scan_red_flags,
)
from .vision import StaticVisionAnalyzer, VisionAnalyzer, VisionHandler

__all__ = [
    "AIQueryHandler",
    "is_useful_response",
    "DirectAPIHandler",
    "FanOutExecutor",
    "FanOutResult",
    "HandlerInvocation",
    "ExtrapolationHandler",
    "calculate_investment_analysis",
    "calculate_monthly_mortgage",
    "calculate_true_monthly_cost",
    "check_overpriced",
    "scan_red_flags",
    "StaticVisionAnalyzer",
    "VisionAnalyzer",
    "VisionHandler",
]
