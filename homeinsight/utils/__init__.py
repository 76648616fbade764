"""Utility functions for homeinsight."""
from .retry import NO_RETRY, RetryPolicy, retry_async, retry_with_policy
from .json_parser import extract_json_from_text, parse_json_object

__all__ = [
    # Retry utilities
    'NO_RETRY',
    'RetryPolicy',
    'retry_async',
    'retry_with_policy',
    # JSON extraction
    'extract_json_from_text',
    'parse_json_object',
]
