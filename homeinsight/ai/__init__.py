"""AI text-completion backends."""

from .backend import AIBackend, AIResponse, MockAIBackend, PerplexityBackend, create_ai_backend

__all__ = [
    "AIBackend",
    "AIResponse",
    "MockAIBackend",
    "PerplexityBackend",
    "create_ai_backend",
]
