"""
Шаблон и двухфазное вычисление (prepare / evaluate).

prepare() вычисляет все ${...} сейчас и замораживает их как текст,
оставляя #{...} на потом; evaluate() вычисляет всё, что осталось.
Фазы могут получать разные контексты: значения ${...} берутся из контекста
prepare, значения #{...} — из контекста последующего evaluate.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence, Tuple

from ..errors import ExpressionError, MalformedTemplateError, TemplateEvaluationError
from ..expression.evaluator import stringify
from .segments import (
    DeferredSegment,
    ImmediateSegment,
    LiteralSegment,
    Segment,
    SegmentType,
)

if TYPE_CHECKING:
    from ..engine import UnifiedEngine

logger = logging.getLogger(__name__)

Context = Optional[Mapping[str, Any]]


class TemplateKind(Enum):
    """Классификация шаблона, вычисляется один раз при разборе."""
    CONSTANT = "constant"
    IMMEDIATE = "immediate"
    DEFERRED = "deferred"


def classify(segments: Sequence[Segment]) -> TemplateKind:
    """
    Классифицирует последовательность сегментов.

    - CONSTANT: нет сегментов или ровно один текстовый;
    - DEFERRED: есть хотя бы один #{...} (вложенные шаблоны содержат только
      текст и ${...}, поэтому достаточно верхнего уровня);
    - IMMEDIATE: всё остальное.
    """
    if not segments or (len(segments) == 1 and segments[0].type is SegmentType.LITERAL):
        return TemplateKind.CONSTANT
    if any(segment.type is SegmentType.DEFERRED for segment in segments):
        return TemplateKind.DEFERRED
    return TemplateKind.IMMEDIATE


def source_literal(value: Any) -> str:
    """
    Представляет значение как литерал языка выражений для подстановки
    во вложенный исходный текст #{...}.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


def _merge_literals(segments: List[Segment]) -> List[Segment]:
    """Склеивает соседние текстовые сегменты и отбрасывает пустые."""
    merged: List[Segment] = []
    for segment in segments:
        if isinstance(segment, LiteralSegment):
            if not segment.text:
                continue
            if merged and isinstance(merged[-1], LiteralSegment):
                merged[-1] = LiteralSegment(merged[-1].text + segment.text)
                continue
        merged.append(segment)
    return merged


class Template:
    """
    Разобранный шаблон.

    Неизменяем; один экземпляр можно вычислять из нескольких потоков.
    Шаблоны с одинаковым исходным текстом взаимозаменяемы.
    """

    __slots__ = ("_engine", "_source", "_segments", "_kind")

    def __init__(self, engine: "UnifiedEngine", source: str, segments: Sequence[Segment]):
        self._engine = engine
        self._source = source
        self._segments: Tuple[Segment, ...] = tuple(segments)
        self._kind = classify(self._segments)

    @property
    def source(self) -> str:
        """Исходный текст, из которого построен шаблон."""
        return self._source

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._segments

    @property
    def kind(self) -> TemplateKind:
        return self._kind

    def is_constant(self) -> bool:
        return self._kind is TemplateKind.CONSTANT

    def is_immediate(self) -> bool:
        """True для шаблонов без #{...} (включая константные)."""
        return self._kind is not TemplateKind.DEFERRED

    def is_deferred(self) -> bool:
        return self._kind is TemplateKind.DEFERRED

    def render_source(self) -> str:
        """
        Восстанавливает текст шаблона из сегментов.

        Для подготовленного шаблона вычисленные части подставлены как текст,
        маркеры #{...} сохранены.
        """
        return "".join(segment.render_source() for segment in self._segments)

    # ---------------------------- evaluate ---------------------------- #

    def evaluate(self, context: Context = None) -> Any:
        """
        Вычисляет шаблон.

        Шаблон из единственного выражения возвращает его значение без
        преобразования в строку (${1+2} -> 3); во всех остальных случаях
        результат — строка.

        Args:
            context: Переменные (может отсутствовать, если шаблон их не использует)

        Raises:
            TemplateEvaluationError: При ошибке компиляции или вычисления выражения
        """
        if self._kind is TemplateKind.CONSTANT:
            return self._segments[0].text if self._segments else ""

        if len(self._segments) == 1:
            return self._value_of(self._segments[0], context, "evaluate")

        parts: List[str] = []
        for segment in self._segments:
            if isinstance(segment, LiteralSegment):
                parts.append(segment.text)
            else:
                parts.append(stringify(self._value_of(segment, context, "evaluate")))
        return "".join(parts)

    # ---------------------------- prepare ---------------------------- #

    def prepare(self, context: Context = None) -> Template:
        """
        Первая фаза: вычисляет все ${...} (в том числе вложенные в #{...})
        и возвращает новый шаблон, где они заменены текстом.

        Немедленные и константные шаблоны, а также отложенные шаблоны без
        ${...}, возвращаются как есть (тот же экземпляр).

        Raises:
            TemplateEvaluationError: При ошибке компиляции или вычисления выражения
        """
        if not self._has_immediate_parts():
            return self

        prepared: List[Segment] = []
        for segment in self._segments:
            if isinstance(segment, ImmediateSegment):
                value = self._value_of(segment, context, "prepare")
                prepared.append(LiteralSegment(stringify(value)))
            elif isinstance(segment, DeferredSegment) and segment.nested is not None:
                reduced = self._reduce_nested(segment, context, "prepare")
                if reduced is None:
                    prepared.append(LiteralSegment(""))
                else:
                    prepared.append(self._rescan_deferred(reduced))
            else:
                prepared.append(segment)

        segments = _merge_literals(prepared)
        source = "".join(segment.render_source() for segment in segments)
        logger.debug(f"Prepared {self._source!r} -> {source!r}")
        return Template(self._engine, source, segments)

    def _rescan_deferred(self, source: str) -> DeferredSegment:
        """Заново разбирает сведённый текст, чтобы сегмент совпадал с разбором render_source()."""
        try:
            return self._engine.scan_deferred(source)
        except MalformedTemplateError as e:
            raise TemplateEvaluationError("prepare", source, e) from e

    def _has_immediate_parts(self) -> bool:
        if self._kind is not TemplateKind.DEFERRED:
            return False
        return any(
            isinstance(segment, ImmediateSegment)
            or (isinstance(segment, DeferredSegment) and segment.nested is not None)
            for segment in self._segments
        )

    # ---------------------------- вычисление сегментов ---------------------------- #

    def _value_of(self, segment: Segment, context: Context, operation: str) -> Any:
        """Компилирует и вычисляет выражение сегмента."""
        if isinstance(segment, ImmediateSegment):
            return self._run(segment.source, context, operation)

        if isinstance(segment, DeferredSegment):
            source: Optional[str] = segment.source
            if segment.nested is not None:
                source = self._reduce_nested(segment, context, operation)
                if source is None:
                    return None
            return self._run(source, context, operation)

        return segment.text

    def _reduce_nested(self, segment: DeferredSegment, context: Context, operation: str) -> Optional[str]:
        """
        Сводит #{...} со вложенными ${...} к исходному тексту отложенного выражения.

        Каждый вложенный ${...} вычисляется и подставляется на своё место как литерал;
        полученный текст вычисляется движком выражений, и его строковое значение
        становится исходным текстом отложенного выражения.

        Returns:
            Исходный текст или None, если движок в тихом режиме вернул null
        """
        nested = segment.nested
        assert nested is not None

        spliced: List[str] = []
        for part in nested.segments:
            if isinstance(part, ImmediateSegment):
                spliced.append(source_literal(self._run(part.source, context, operation)))
            elif isinstance(part, LiteralSegment):
                spliced.append(part.text)

        value = self._run("".join(spliced), context, operation)
        if value is None:
            return None
        return stringify(value)

    def _run(self, source: str, context: Context, operation: str) -> Any:
        """Единая точка обращения к движку выражений; ошибки оборачиваются."""
        try:
            compiled = self._engine.compile(source)
            return self._engine.expressions.evaluate(compiled, context)
        except ExpressionError as e:
            raise TemplateEvaluationError(operation, source, e) from e

    # ---------------------------- служебное ---------------------------- #

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Template):
            return NotImplemented
        return self._source == other._source

    def __hash__(self) -> int:
        return hash(self._source)

    def __str__(self) -> str:
        return self.render_source()

    def __repr__(self) -> str:
        return f"Template({self._source!r}, kind={self._kind.value})"


__all__ = ["Template", "TemplateKind", "classify", "source_literal"]
