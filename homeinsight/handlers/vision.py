"""Photo analysis handler (garage size, kitchen condition, natural light...)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..models import DataSource, HandlerResult, PropertyContext
from ..providers.fixtures import get_vision_analysis
from ..routing.provider_selector import VisionRequest

logger = logging.getLogger(__name__)


class VisionAnalyzer(ABC):
    """Collaborator that turns one listing photo into a structured analysis."""

    source: DataSource = "live"

    @abstractmethod
    async def analyze(self, photo_url: str, prompt: str) -> Dict[str, Any]:
        pass


class StaticVisionAnalyzer(VisionAnalyzer):
    """Returns the canned analysis for each prompt."""

    source: DataSource = "mock"

    async def analyze(self, photo_url: str, prompt: str) -> Dict[str, Any]:
        return get_vision_analysis(prompt)


class VisionHandler:
    def __init__(self, analyzer: VisionAnalyzer):
        self.analyzer = analyzer

    async def run(self, request: VisionRequest, context: PropertyContext) -> HandlerResult:
        if not context.photos:
            return HandlerResult(success=False, source="mock", error="No photos available for analysis")

        analyses: List[Dict[str, Any]] = []
        for index in request.photo_indices:
            if index >= len(context.photos):
                continue
            analysis = await self.analyzer.analyze(context.photos[index], request.prompt)
            analyses.append({"photoIndex": index, "prompt": request.prompt, "analysis": analysis})

        if not analyses:
            return HandlerResult(success=False, source="mock", error="Requested photos are not in the listing")

        return HandlerResult(
            success=True,
            data={
                "prompt": request.prompt,
                "analyses": analyses,
                "primaryAnalysis": analyses[0]["analysis"],
            },
            source=self.analyzer.source,
        )
