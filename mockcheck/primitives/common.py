"""
mockcheck — Common Primitives

Shared base models and small helpers used across the verification package.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


def short_repr(value: Any, limit: int = 80) -> str:
    """repr() clipped to ``limit`` characters for log lines and report text."""
    text = repr(value)
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def qualified_name(target: type) -> str:
    """``module.QualName`` for a class. Used as the report's target label."""
    module = getattr(target, "__module__", "") or ""
    qualname = getattr(target, "__qualname__", None) or getattr(target, "__name__", repr(target))
    if module and module != "builtins":
        return f"{module}.{qualname}"
    return qualname


# ─── Base Models ──────────────────────────────────────────────────


class MockcheckBaseModel(BaseModel):
    """Base model for all mockcheck value objects. Immutable once built."""

    model_config = {"populate_by_name": True, "from_attributes": True, "frozen": True}
