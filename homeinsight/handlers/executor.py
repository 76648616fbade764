"""
Fan-out Executor - run every handler invocation concurrently and merge.

All invocations start together and the executor waits for every one of
them (a barrier, not a pipeline). Each carries its own timeout. A handler
that raises or times out is recorded as a failed HandlerResult; the batch
itself never raises for handler failures.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Sequence

from ..exceptions import RoutingError
from ..models import DataSource, HandlerKind, HandlerResult
from ..routing.provider_index import DEFAULT_PROVIDER_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class HandlerInvocation:
    """One unit of fan-out work, merged under ``key`` (provider or recipe id)."""
    key: str
    kind: HandlerKind
    call: Callable[[], Awaitable[HandlerResult]]
    timeout: float = DEFAULT_PROVIDER_TIMEOUT


@dataclass
class FanOutResult:
    """Merged outcome of one batch.

    ``data`` holds the payload of each successful invocation under its key;
    ``contributors`` lists those keys in invocation order.
    """
    data: Dict[str, Any] = field(default_factory=dict)
    results: Dict[str, HandlerResult] = field(default_factory=dict)
    kinds: Dict[str, HandlerKind] = field(default_factory=dict)
    contributors: List[str] = field(default_factory=list)
    source: DataSource = "mock"
    elapsed_ms: int = 0

    @property
    def errors(self) -> Dict[str, str]:
        return {
            key: result.error or "Handler failed"
            for key, result in self.results.items()
            if not result.success
        }

    @property
    def all_succeeded(self) -> bool:
        return all(result.success for result in self.results.values())

    @property
    def is_empty(self) -> bool:
        return not self.data


class FanOutExecutor:
    async def _run_one(self, invocation: HandlerInvocation) -> HandlerResult:
        try:
            return await asyncio.wait_for(invocation.call(), timeout=invocation.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[FanOut] {invocation.key} timed out after {invocation.timeout:g}s")
            return HandlerResult(success=False, source="mock", error=f"Timed out after {invocation.timeout:g}s")
        except Exception as e:
            logger.warning(f"[FanOut] {invocation.key} failed: {e}")
            return HandlerResult(success=False, source="mock", error=str(e) or type(e).__name__)

    async def execute(self, invocations: Sequence[HandlerInvocation]) -> FanOutResult:
        """Run all invocations concurrently and merge their results.

        Raises:
            RoutingError: If two invocations share a key
        """
        keys = [inv.key for inv in invocations]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise RoutingError(f"Duplicate fan-out keys: {duplicates}")

        start = time.perf_counter()
        outcomes = await asyncio.gather(*(self._run_one(inv) for inv in invocations))

        merged = FanOutResult()
        for invocation, result in zip(invocations, outcomes):
            merged.results[invocation.key] = result
            merged.kinds[invocation.key] = invocation.kind
            if result.success and result.data:
                merged.data[invocation.key] = result.data
                merged.contributors.append(invocation.key)

        any_live = any(r.success and r.source == "live" for r in merged.results.values())
        merged.source = "live" if any_live else "mock"
        merged.elapsed_ms = int((time.perf_counter() - start) * 1000)

        failed = len(merged.errors)
        logger.info(
            f"[FanOut] {len(invocations)} handlers, {len(invocations) - failed} ok, "
            f"{failed} failed, source={merged.source}, {merged.elapsed_ms}ms"
        )
        return merged
