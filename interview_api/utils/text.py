"""Free-text sanitization and clamping helpers."""

from __future__ import annotations

import re
from typing import Any

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_BLOCK = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)


def sanitize_text(value: Any) -> str:
    """Strip markup from a plain-text field before it is stored."""
    if not isinstance(value, str) or not value:
        return ""

    cleaned = _SCRIPT_BLOCK.sub("", value)
    cleaned = _STYLE_BLOCK.sub("", cleaned)
    cleaned = _TAG.sub("", cleaned)
    cleaned = _JS_SCHEME.sub("", cleaned)
    return cleaned.strip()


def clamp_text(value: Any, limit: int) -> str:
    """Coerce a value to text and cut it to ``limit`` characters."""
    if value is None:
        return ""
    return str(value)[:limit]


def make_text_excerpt(text: str, limit: int = 160) -> str:
    """Normalize raw text and clamp it to a preview-friendly length."""
    if not text:
        return ""
    cleaned = " ".join(text.split())
    if len(cleaned) <= limit:
        return cleaned
    return cleaned[:limit].rstrip() + "..."
