"""
Category Classifier - Ordered Pattern Rules for Property Questions

Maps a free-form question to exactly one QuestionCategory. Categories are
tested top to bottom and the first pattern that matches anywhere in the
lower-cased question wins, so the order of CATEGORY_PATTERNS matters:
several categories share trigger words ("garage" is both a feature and a
vision cue, "issue" reads as a red flag only after everything else missed).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple

from ..models import QuestionCategory

logger = logging.getLogger(__name__)


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# Evaluation order is significant. Do not sort.
CATEGORY_PATTERNS: Tuple[Tuple[QuestionCategory, Tuple[Pattern[str], ...]], ...] = (
    (QuestionCategory.LOCATION_DISTANCE, _compile(
        r"how far", r"distance to", r"nearest", r"closest", r"miles to", r"minutes to",
    )),
    (QuestionCategory.LOCATION_AMENITIES, _compile(
        r"what.*(nearby|around|close)", r"restaurants", r"grocery", r"shopping",
        r"parks near", r"things to do",
    )),
    (QuestionCategory.LOCATION_COMMUTE, _compile(
        r"commute", r"rush hour", r"traffic", r"drive to work",
        r"get to (downtown|sf|work|office)",
    )),
    (QuestionCategory.FINANCIAL_VALUE, _compile(
        r"overpriced", r"underpriced", r"worth", r"fair price", r"value", r"good deal",
    )),
    (QuestionCategory.FINANCIAL_INVESTMENT, _compile(
        r"good investment", r"roi", r"cap rate", r"cash flow", r"rental income", r"airbnb",
    )),
    (QuestionCategory.FINANCIAL_COST, _compile(
        r"monthly cost", r"true cost", r"total cost", r"afford", r"payment",
    )),
    (QuestionCategory.FINANCIAL_MORTGAGE, _compile(
        r"mortgage rate", r"interest rate", r"loan", r"financing",
    )),
    (QuestionCategory.ENVIRONMENTAL_RISK, _compile(
        r"flood", r"earthquake", r"wildfire", r"fire risk", r"natural disaster", r"hazard",
    )),
    (QuestionCategory.ENVIRONMENTAL_QUALITY, _compile(
        r"air quality", r"noise", r"pollution", r"quiet", r"loud", r"pollen",
    )),
    (QuestionCategory.NEIGHBORHOOD_SAFETY, _compile(
        r"safe", r"crime", r"dangerous", r"security", r"sex offender",
    )),
    (QuestionCategory.NEIGHBORHOOD_VIBE, _compile(
        r"what.*(like|living)", r"neighborhood feel", r"neighbors", r"community", r"vibe",
    )),
    (QuestionCategory.NEIGHBORHOOD_DEMOGRAPHICS, _compile(
        r"who lives", r"demographics", r"median income", r"population", r"families",
    )),
    (QuestionCategory.SCHOOLS, _compile(
        r"school", r"education", r"district", r"elementary", r"high school",
    )),
    (QuestionCategory.PROPERTY_FEATURES, _compile(
        r"does it have", r"pool", r"garage", r"backyard", r"bedrooms", r"bathrooms",
    )),
    (QuestionCategory.PROPERTY_CONDITION, _compile(
        r"condition", r"updated", r"renovated", r"new kitchen", r"roof age",
    )),
    (QuestionCategory.PROPERTY_HISTORY, _compile(
        r"permit", r"renovation history", r"previous owner", r"sold before",
    )),
    (QuestionCategory.PROPERTY_LEGAL, _compile(
        r"zoning", r"adu", r"what can i build", r"legal", r"restrictions",
    )),
    (QuestionCategory.UTILITIES, _compile(
        r"internet", r"wifi", r"fiber", r"utilities", r"electric", r"solar",
    )),
    (QuestionCategory.COMPARISON, _compile(
        r"compare", r"which.*(better|best)", r"vs", r"versus", r"difference between",
    )),
    (QuestionCategory.RED_FLAGS, _compile(
        r"red flag", r"concern", r"worry", r"problem", r"issue", r"wrong with",
    )),
    (QuestionCategory.GENERAL, ()),
)


@dataclass
class ClassificationResult:
    """Result of classifying one question."""
    category: QuestionCategory
    matched_pattern: Optional[str] = None


class CategoryClassifier:
    """Deterministic first-match-wins rule engine over CATEGORY_PATTERNS."""

    PATTERNS = CATEGORY_PATTERNS

    @classmethod
    def match(cls, question: str) -> ClassificationResult:
        lowered = (question or "").lower()
        for category, patterns in cls.PATTERNS:
            for pattern in patterns:
                if pattern.search(lowered):
                    logger.info(f"[Classifier] Matched {question!r} to category: {category.value}")
                    return ClassificationResult(category=category, matched_pattern=pattern.pattern)

        logger.info(f"[Classifier] No pattern match for {question!r}, classifying as general")
        return ClassificationResult(category=QuestionCategory.GENERAL)

    @classmethod
    def category_order(cls) -> Tuple[QuestionCategory, ...]:
        return tuple(category for category, _ in cls.PATTERNS)


def classify_question(question: str) -> QuestionCategory:
    """Classify a question into exactly one category (``general`` when nothing matches)."""
    return CategoryClassifier.match(question).category
