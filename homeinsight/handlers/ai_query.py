"""
AI lookup handler for information no structured provider carries
(neighborhood sentiment, permits, HOA rules, upcoming development).

Each template expands into an ordered list of prompt strategies. They are
tried in turn, pausing between attempts per the RetryPolicy, until one
produces a useful answer.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..ai.backend import AIBackend
from ..exceptions import HomeInsightError, is_retryable_error
from ..models import HandlerResult, PropertyContext
from ..routing.provider_index import provider_timeout
from ..routing.provider_selector import AIQueryConfig
from ..utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


REFUSAL_PHRASES = (
    "i couldn't find",
    "i could not find",
    "no specific information",
    "unable to find",
    "no results",
    "i don't have access",
    "i cannot access",
    "no data available",
)

MIN_USEFUL_LENGTH = 100

RESULT_SEPARATOR = "\n\n---\n\n"

DEFAULT_AI_RETRY = RetryPolicy(max_attempts=5, initial_delay=0.5, backoff_factor=1.0)

DEFAULT_AI_CALL_TIMEOUT = provider_timeout("perplexity")


@dataclass(frozen=True)
class PromptStrategy:
    query: str
    system_prompt: str


StrategyBuilder = Callable[[PropertyContext, Dict[str, Any]], PromptStrategy]


def is_useful_response(content: Optional[str]) -> bool:
    """At least MIN_USEFUL_LENGTH characters and no refusal phrase."""
    if not content or len(content) < MIN_USEFUL_LENGTH:
        return False
    lowered = content.lower()
    return not any(phrase in lowered for phrase in REFUSAL_PHRASES)


NEIGHBORHOOD_SENTIMENT: List[StrategyBuilder] = [
    lambda ctx, p: PromptStrategy(
        f'site:reddit.com "{ctx.city}" neighborhood review OR living experience OR "what\'s it like" OR "moving to"',
        "Search Reddit for real resident experiences. Summarize what people say about living in this area. "
        "Include specific quotes if available.",
    ),
    lambda ctx, p: PromptStrategy(
        f'"{ctx.city}" {ctx.state} neighborhood reviews Nextdoor OR local forum OR community',
        "Find local community discussions about this neighborhood. What do residents like and dislike?",
    ),
    lambda ctx, p: PromptStrategy(
        f"What is it like to live in {ctx.city}, {ctx.state}? pros cons neighborhood character community vibe",
        "Describe the neighborhood character, community vibe, and what daily life is like. "
        "Include both positives and negatives.",
    ),
    lambda ctx, p: PromptStrategy(
        f"{ctx.zipCode} {ctx.city} neighborhood safe family-friendly walkable restaurants shops parks",
        "Describe this specific area. Is it safe? Family-friendly? Walkable? What amenities are nearby?",
    ),
    lambda ctx, p: PromptStrategy(
        f"{ctx.city} {ctx.state} neighborhood guide best areas to live",
        "Provide a neighborhood guide. What are the best and worst aspects of living here?",
    ),
]

PERMIT_HISTORY: List[StrategyBuilder] = [
    lambda ctx, p: PromptStrategy(
        f'"{ctx.address}" building permit construction renovation',
        "Find any building permits for this specific address.",
    ),
    lambda ctx, p: PromptStrategy(
        f"{ctx.city} {ctx.state} building permits lookup {ctx.address.split(' ')[0]}",
        "Search for building permit records. Include permit type, date, and description.",
    ),
]

GENERAL: List[StrategyBuilder] = [
    lambda ctx, p: PromptStrategy(
        f"{p.get('question', '')} {ctx.address} {ctx.city} {ctx.state}",
        f"Answer this real estate question about the property at {ctx.address}, {ctx.city}, {ctx.state}. "
        "Be specific, factual, and helpful. If you can find specific data, include it.",
    ),
    lambda ctx, p: PromptStrategy(
        f"{p.get('question', '')} {ctx.city} {ctx.state} real estate",
        f"Answer this question about real estate in {ctx.city}, {ctx.state}. Be specific and factual.",
    ),
    lambda ctx, p: PromptStrategy(
        p.get("question", ""),
        "Answer this real estate question. Provide helpful, accurate information.",
    ),
]

TOPICS: Dict[str, str] = {
    "hoaInfo": "HOA fees, rules and restrictions",
    "sexOffenders": "registered sex offenders nearby",
    "upcomingDevelopment": "upcoming development and construction projects",
}

TEMPLATES: Dict[str, List[StrategyBuilder]] = {
    "neighborhoodSentiment": NEIGHBORHOOD_SENTIMENT,
    "permitHistory": PERMIT_HISTORY,
    "general": GENERAL,
}


def build_strategies(query: AIQueryConfig, context: PropertyContext) -> List[PromptStrategy]:
    params = dict(query.params)
    builders = TEMPLATES.get(query.template)
    if builders:
        return [build(context, params) for build in builders]

    topic = TOPICS.get(query.template, query.template)
    return [PromptStrategy(
        f"{context.address} {context.city} {topic}",
        f"Find information about {topic} for this property at {context.address}.",
    )]


class AIQueryHandler:
    """Runs AI lookups and merges the useful answers."""

    def __init__(
        self,
        backend: AIBackend,
        policy: RetryPolicy = DEFAULT_AI_RETRY,
        call_timeout: float = DEFAULT_AI_CALL_TIMEOUT,
    ):
        self.backend = backend
        self.policy = policy
        self.call_timeout = call_timeout

    def time_budget(self, template_count: int) -> float:
        """Worst-case duration of ``run`` over this many templates.

        Counts every attempt at the full ``call_timeout`` plus the longest pauses.
        """
        per_template = self.call_timeout * self.policy.max_attempts + self.policy.total_delay()
        return per_template * max(template_count, 1)

    async def _lookup(self, query: AIQueryConfig, context: PropertyContext) -> Optional[Dict[str, Any]]:
        strategies = build_strategies(query, context)[: self.policy.max_attempts]

        for attempt, strategy in enumerate(strategies, start=1):
            delay = self.policy.delay_for(attempt)
            if delay:
                await asyncio.sleep(delay)
            try:
                response = await asyncio.wait_for(
                    self.backend.complete(strategy.query, strategy.system_prompt),
                    timeout=self.call_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(f"[AI] {query.template} attempt {attempt} timed out after {self.call_timeout:g}s")
                continue
            except HomeInsightError as e:
                logger.warning(f"[AI] {query.template} attempt {attempt} failed: {e}")
                if not is_retryable_error(e):
                    break
                continue

            if is_useful_response(response.content):
                return {
                    "template": query.template,
                    "query": strategy.query,
                    "response": response.content,
                    "citations": list(response.citations),
                    "source": response.source,
                }
            logger.info(f"[AI] {query.template} attempt {attempt} was not useful, trying next strategy")
        return None

    async def run(self, queries: List[AIQueryConfig], context: PropertyContext) -> HandlerResult:
        found: List[Dict[str, Any]] = []
        attempted: List[str] = []
        for query in queries:
            result = await self._lookup(query, context)
            if result is None:
                attempted.append(query.template)
            else:
                found.append(result)

        if not found:
            return HandlerResult(
                success=False,
                data={
                    "message": "Unable to find detailed information after multiple search attempts.",
                    "attemptedQueries": attempted,
                },
                source="mock",
                error="No useful AI response",
            )

        citations: List[str] = []
        for result in found:
            for citation in result["citations"]:
                if citation not in citations:
                    citations.append(citation)

        return HandlerResult(
            success=True,
            data={
                "queries": found,
                "summary": RESULT_SEPARATOR.join(r["response"] for r in found),
                "allCitations": citations,
            },
            source="live" if any(r["source"] == "live" for r in found) else "mock",
        )
