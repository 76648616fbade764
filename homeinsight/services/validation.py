"""
Validation / Enrichment Pass

Runs after every fan-out. Whenever anything was merged, the data and the
question go to the AI backend, which is asked to flag inconsistent values
and fill fields that are still null. Corrections are advisory: they are
returned to the caller and never overwrite provider values. Only null
fields are filled.

The same service answers questions directly from the AI backend when the
router short-circuits (no data, or low confidence).
"""

from __future__ import annotations

import copy
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..ai.backend import AIBackend, AIResponse
from ..exceptions import AIBackendError, AIResponseParseError, HomeInsightError, ProviderTimeoutError
from ..handlers.executor import FanOutResult
from ..models import Confidence, Correction, FormattedResponse, PropertyContext, QuestionCategory
from ..utils.json_parser import parse_json_object
from ..utils.retry import RetryPolicy, retry_with_policy

logger = logging.getLogger(__name__)


CORRECTION_PATTERN = re.compile(
    r"CORRECTION:\s*(\w+)\s*should be\s*([^\(]+)\s*\(([^)]+)\)",
    re.IGNORECASE,
)

FAIL_KEYWORDS = ("fail", "inconsistent", "incorrect", "inaccurate", "outdated", "wrong")
PASS_KEYWORDS = ("pass", "consistent", "accurate", "verified", "correct")

MAX_PROMPT_DATA_CHARS = 6000

AI_RETRY = RetryPolicy(max_attempts=2, initial_delay=0.5, backoff_factor=2.0)

# Extra verification focus per category
CATEGORY_FOCUS: Dict[QuestionCategory, str] = {
    QuestionCategory.NEIGHBORHOOD_DEMOGRAPHICS: "Check population, median household income and median age against current Census figures.",
    QuestionCategory.SCHOOLS: "Check school ratings against GreatSchools.org and Niche.com and note any nearby schools that are missing.",
    QuestionCategory.NEIGHBORHOOD_SAFETY: "Check crime grades and rates against FBI UCR, local police reports and NeighborhoodScout.",
    QuestionCategory.ENVIRONMENTAL_RISK: "Check the FEMA flood zone, CAL FIRE wildfire risk and USGS earthquake data.",
    QuestionCategory.LOCATION_COMMUTE: "Check commute times with typical rush-hour traffic.",
    QuestionCategory.FINANCIAL_VALUE: "Check the estimated value against recent comparable sales.",
    QuestionCategory.FINANCIAL_INVESTMENT: "Check rent estimates against current rental listings nearby.",
}

VALIDATION_SYSTEM_PROMPT = """You are a real estate data analyst verifying data gathered from several APIs about one property.

Respond with a single JSON object and nothing else:
{
  "status": "pass" or "fail",
  "corrections": [{"field": "<provider>.<path>", "original": <value>, "corrected": <value>, "reason": "<source>"}],
  "filled": {"<provider>.<path>": <value>}
}

Only report a correction when you are confident the API value is wrong.
Only fill fields whose current value is null.
If you cannot produce JSON, write one line per correction as:
CORRECTION: field should be value (source)"""

ANSWER_SYSTEM_PROMPT = """You are HomeInsight AI, an expert real estate assistant. Answer the user's question about this property with specific, actionable information.

Guidelines:
1. Be specific with numbers, dates, and facts
2. Always cite your sources
3. If the existing API data seems wrong, provide corrections
4. Include both positives and negatives (be balanced)
5. End with 2-3 relevant follow-up questions the user might want to ask

Format your response clearly with sections if needed.
If you're not confident about something, say so."""

APOLOGY = (
    "I'm sorry, I wasn't able to find reliable information to answer that question right now. "
    "Please try rephrasing it or ask about something more specific."
)

DEFAULT_FOLLOW_UPS = [
    "What else would you like to know about this property?",
    "Would you like me to analyze the investment potential?",
    "Should I check for any red flags?",
]

FOLLOW_UP_SECTION = re.compile(r"(?:follow[- ]?up|related|you might also ask)[:\s]*([\s\S]*?)$", re.IGNORECASE)
FOLLOW_UP_ITEM = re.compile(r"[•\-*\d.]\s*[^•\-\n]+\?")
FOLLOW_UP_PREFIX = re.compile(r"^[•\-*\d.\s]+")


@dataclass
class ValidationOutcome:
    enriched_data: Dict[str, Any]
    corrections: List[Correction] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    confidence: Confidence = "low"
    status: str = "unknown"  # pass, fail or unknown
    filled_fields: List[str] = field(default_factory=list)


def compute_confidence(fanout: FanOutResult) -> Confidence:
    """high: all handlers ok and one was live; medium: all ok, mock only; low: any failure."""
    if not fanout.results or not fanout.all_succeeded:
        return "low"
    return "high" if fanout.source == "live" else "medium"


def rate_ai_answer(content: str, citations: List[str]) -> Confidence:
    if len(citations) >= 3 and len(content) > 500:
        return "high"
    if not citations or len(content) < 200:
        return "low"
    return "medium"


def extract_follow_ups(content: str) -> List[str]:
    match = FOLLOW_UP_SECTION.search(content or "")
    if not match:
        return []
    questions = [FOLLOW_UP_PREFIX.sub("", item).strip() for item in FOLLOW_UP_ITEM.findall(match.group(1))]
    return [q for q in questions if q]


def _find_value(data: Any, path: str) -> Any:
    """Resolve ``a.b.c``; a bare key is searched for anywhere in the tree."""
    if "." in path:
        current = data
        for part in path.split("."):
            if not isinstance(current, Mapping):
                return None
            current = current.get(part)
        return current

    if isinstance(data, Mapping):
        for key, value in data.items():
            if key.lower() == path.lower():
                return value
            found = _find_value(value, path)
            if found is not None:
                return found
    return None


def _fill_if_null(data: Dict[str, Any], path: str, value: Any) -> bool:
    parts = path.split(".")
    current: Any = data
    for part in parts[:-1]:
        if not isinstance(current, dict) or part not in current:
            return False
        current = current[part]
    leaf = parts[-1]
    if isinstance(current, dict) and leaf in current and current[leaf] is None and value is not None:
        current[leaf] = value
        return True
    return False


def parse_corrections_text(content: str, data: Mapping[str, Any]) -> List[Correction]:
    """Pull ``CORRECTION: field should be value (reason)`` lines out of free text."""
    corrections = []
    for match in CORRECTION_PATTERN.finditer(content or ""):
        field_name = match.group(1).strip()
        corrections.append(Correction(
            field=field_name,
            original=_find_value(data, field_name),
            corrected=match.group(2).strip(),
            reason=match.group(3).strip(),
        ))
    return corrections


def keyword_status(content: str) -> str:
    lowered = (content or "").lower()
    if any(word in lowered for word in FAIL_KEYWORDS):
        return "fail"
    if any(word in lowered for word in PASS_KEYWORDS):
        return "pass"
    return "unknown"


class ValidationService:
    def __init__(self, backend: AIBackend, retry_policy: RetryPolicy = AI_RETRY):
        self.backend = backend
        self.retry_policy = retry_policy

    async def _complete(self, query: str, system_prompt: str) -> AIResponse:
        return await retry_with_policy(
            lambda: self.backend.complete(query, system_prompt),
            self.retry_policy,
            exceptions=(AIBackendError, ProviderTimeoutError),
        )

    def _build_validation_query(
        self,
        question: str,
        category: QuestionCategory,
        data: Mapping[str, Any],
        context: PropertyContext,
    ) -> str:
        serialized = json.dumps(data, default=str)
        if len(serialized) > MAX_PROMPT_DATA_CHARS:
            serialized = serialized[:MAX_PROMPT_DATA_CHARS] + "...(truncated)"
        focus = CATEGORY_FOCUS.get(category, "")
        return (
            f"Question: {question}\n"
            f"Property: {context.address} ({context.city}, {context.state} {context.zipCode})\n"
            f"{focus}\n"
            f"API data:\n{serialized}"
        ).replace("\n\n", "\n")

    def _interpret(self, content: str, data: Dict[str, Any]) -> ValidationOutcome:
        outcome = ValidationOutcome(enriched_data=data)
        try:
            parsed = parse_json_object(content, service=self.backend.name)
        except AIResponseParseError:
            outcome.corrections = parse_corrections_text(content, data)
            outcome.status = "fail" if outcome.corrections else keyword_status(content)
            return outcome

        for raw in parsed.get("corrections") or []:
            if not isinstance(raw, dict) or not raw.get("field"):
                continue
            field_name = str(raw["field"])
            outcome.corrections.append(Correction(
                field=field_name,
                original=raw.get("original", _find_value(data, field_name)),
                corrected=raw.get("corrected"),
                reason=str(raw.get("reason") or ""),
            ))

        filled = parsed.get("filled") or {}
        if isinstance(filled, dict):
            for path, value in filled.items():
                if _fill_if_null(data, str(path), value):
                    outcome.filled_fields.append(str(path))

        status = str(parsed.get("status") or "").lower()
        if status not in ("pass", "fail"):
            status = "fail" if outcome.corrections else "pass"
        outcome.status = status
        return outcome

    async def validate_and_enrich(
        self,
        question: str,
        category: QuestionCategory,
        fanout: FanOutResult,
        context: PropertyContext,
    ) -> ValidationOutcome:
        """Cross-check the merged data; never raises for AI failures.

        Runs after every fan-out. With nothing merged there is nothing to
        cross-check or fill, so the backend is not called and the empty
        outcome goes straight to the AI-only answer.
        """
        data = copy.deepcopy(fanout.data)
        confidence = compute_confidence(fanout)

        if not data:
            return ValidationOutcome(enriched_data=data, confidence=confidence)

        try:
            response = await self._complete(
                self._build_validation_query(question, category, data, context),
                VALIDATION_SYSTEM_PROMPT,
            )
        except HomeInsightError as e:
            logger.warning(f"[Validation] AI backend unavailable, keeping provider data as-is: {e}")
            return ValidationOutcome(enriched_data=data, confidence=confidence)

        outcome = self._interpret(response.content, data)
        outcome.sources = list(response.citations)
        outcome.confidence = confidence

        if outcome.corrections:
            logger.info(f"[Validation] {len(outcome.corrections)} advisory corrections: "
                        f"{[c.field for c in outcome.corrections]}")
        if outcome.filled_fields:
            logger.info(f"[Validation] filled {outcome.filled_fields}")
        return outcome

    async def answer_directly(
        self,
        question: str,
        context: PropertyContext,
        data: Optional[Mapping[str, Any]] = None,
    ) -> FormattedResponse:
        """Answer from the AI backend alone, using any partial data as context."""
        details = {
            k: v for k, v in {
                "price": context.list_price,
                "beds": context.beds,
                "baths": context.baths,
                "sqft": context.sqft,
                "yearBuilt": context.yearBuilt,
            }.items() if v is not None
        }
        lines = [
            f"Property: {context.address}",
            f"City: {context.city}, {context.state} {context.zipCode}",
        ]
        if details:
            lines.append(f"Details: {json.dumps(details)}")
        if data:
            serialized = json.dumps(data, indent=2, default=str)
            lines.append(f"\nExisting data from our APIs:\n{serialized[:MAX_PROMPT_DATA_CHARS]}")

        try:
            response = await self._complete(
                f"{question}\n\nContext:\n" + "\n".join(lines),
                ANSWER_SYSTEM_PROMPT,
            )
        except HomeInsightError as e:
            logger.error(f"[Validation] AI-only answer failed: {e}")
            return FormattedResponse(answer=APOLOGY, confidence="low", followUpSuggestions=list(DEFAULT_FOLLOW_UPS))

        content = (response.content or "").strip()
        if not content:
            return FormattedResponse(answer=APOLOGY, confidence="low", followUpSuggestions=list(DEFAULT_FOLLOW_UPS))

        return FormattedResponse(
            answer=content,
            sources=list(response.citations),
            confidence=rate_ai_answer(content, list(response.citations)),
            followUpSuggestions=extract_follow_ups(content) or list(DEFAULT_FOLLOW_UPS),
        )
