"""
Слой шаблонов: сканер, модель сегментов, двухфазное вычисление и кэш.
"""

from __future__ import annotations

from .cache import CacheStats, LRUCache
from .scanner import TemplateScanner
from .segments import (
    DeferredSegment,
    ImmediateSegment,
    LiteralSegment,
    Segment,
    SegmentType,
)
from .template import Template, TemplateKind

__all__ = [
    "Template",
    "TemplateKind",
    "TemplateScanner",
    "Segment",
    "SegmentType",
    "LiteralSegment",
    "ImmediateSegment",
    "DeferredSegment",
    "LRUCache",
    "CacheStats",
]
