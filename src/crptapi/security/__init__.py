"""Security utilities for crptapi."""

from .mask import mask, masked_headers, safe_for_log

__all__ = ["mask", "masked_headers", "safe_for_log"]
