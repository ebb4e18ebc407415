"""
Сегменты шаблона.

Шаблон — упорядоченная последовательность сегментов:
- LiteralSegment: текст, выводится как есть;
- ImmediateSegment: выражение ${...}, вычисляется в ближайшей фазе;
- DeferredSegment: выражение #{...}, вычисляется только в фазе evaluate.
  Может содержать вложенный шаблон из текста и ${...}-сегментов.

Все сегменты неизменяемы и свободно разделяются между потоками.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from .template import Template

# Символы, которые можно экранировать обратным слэшем в текстовом контексте
ESCAPABLE = frozenset("$#\"'\\")


class SegmentType(Enum):
    LITERAL = "literal"
    IMMEDIATE = "immediate"
    DEFERRED = "deferred"


def escape_literal(text: str) -> str:
    """
    Экранирует текст так, чтобы при повторном разборе получился тот же литерал.

    Обратный слэш экранируется только перед экранируемым символом и в конце текста
    (за литералом может сразу начаться маркер); $ и # — только перед '{'.
    """
    out = []
    length = len(text)
    for i, c in enumerate(text):
        nxt = text[i + 1] if i + 1 < length else ""
        if c == "\\" and (nxt in ESCAPABLE or not nxt):
            out.append("\\\\")
        elif c in "$#" and nxt == "{":
            out.append("\\" + c)
        else:
            out.append(c)
    return "".join(out)


@dataclass(frozen=True)
class LiteralSegment:
    """Текстовый фрагмент (уже без escape-последовательностей)."""
    text: str

    @property
    def type(self) -> SegmentType:
        return SegmentType.LITERAL

    def render_source(self) -> str:
        return escape_literal(self.text)


@dataclass(frozen=True)
class ImmediateSegment:
    """
    Немедленное выражение ${source}.

    source — текст между фигурными скобками, без изменений.
    """
    source: str

    @property
    def type(self) -> SegmentType:
        return SegmentType.IMMEDIATE

    def render_source(self) -> str:
        return "${" + self.source + "}"


@dataclass(frozen=True)
class DeferredSegment:
    """
    Отложенное выражение #{source}.

    Attributes:
        source: Текст между фигурными скобками, без изменений
        nested: Вложенный шаблон, если внутри есть ${...}; иначе None
    """
    source: str
    nested: Optional["Template"] = None

    @property
    def type(self) -> SegmentType:
        return SegmentType.DEFERRED

    @property
    def is_nested(self) -> bool:
        return self.nested is not None

    def render_source(self) -> str:
        return "#{" + self.source + "}"


Segment = Union[LiteralSegment, ImmediateSegment, DeferredSegment]


__all__ = [
    "ESCAPABLE",
    "SegmentType",
    "Segment",
    "LiteralSegment",
    "ImmediateSegment",
    "DeferredSegment",
    "escape_literal",
]
