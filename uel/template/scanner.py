"""
Сканер шаблонов.

Разбивает текст шаблона на текстовые фрагменты и маркеры ${...} / #{...}.
Внутри маркера отслеживаются вложенные фигурные скобки, строки в кавычках
и блочные комментарии; внутри #{...} дополнительно распознаются вложенные ${...}.

Сканер либо строит полную последовательность сегментов, либо завершается
MalformedTemplateError — частичного результата не бывает.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Tuple

from ..errors import MalformedTemplateError
from .segments import (
    ESCAPABLE,
    DeferredSegment,
    ImmediateSegment,
    LiteralSegment,
    Segment,
)

logger = logging.getLogger(__name__)

# Фабрика шаблона: (исходный текст, сегменты) -> шаблон
TemplateFactory = Callable[[str, List[Segment]], object]

_SNIPPET_LENGTH = 24


class TemplateScanner:
    """
    Посимвольный сканер шаблонов.

    Состояние разбора хранится в полях экземпляра, поэтому один экземпляр
    нельзя использовать из нескольких потоков одновременно.
    """

    def __init__(self, factory: TemplateFactory):
        """
        Args:
            factory: Строит шаблон из текста и сегментов (используется и для
                     вложенных шаблонов внутри #{...})
        """
        self.factory = factory

        # Позиционная информация
        self.text = ""
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = 0

    def scan(self, text: str):
        """
        Разбирает текст шаблона.

        Args:
            text: Исходный текст

        Returns:
            Шаблон, построенный фабрикой

        Raises:
            MalformedTemplateError: Если маркер не закрыт до конца текста
        """
        self._initialize(text)
        segments = self._scan_text()
        logger.debug(f"Scanned template of length {self.length} into {len(segments)} segments")
        return self.factory(text, segments)

    def scan_deferred(self, source: str) -> DeferredSegment:
        """
        Строит сегмент #{...} из готового исходного текста выражения.

        Разбор идёт так же, как для маркера в тексте шаблона, поэтому вложенные
        ${...} распознаются, а сегмент совпадает с тем, что даст повторный
        разбор render_source().

        Raises:
            MalformedTemplateError: Если текст не образует ровно один маркер #{...}
        """
        self._initialize("#{" + source + "}")
        segment = self._scan_marker(deferred=True)
        if self.position != self.length:
            raise MalformedTemplateError(
                "Deferred expression closes before its end",
                self.position,
                self.line,
                self.column,
                self.text[self.position:self.position + _SNIPPET_LENGTH],
            )
        assert isinstance(segment, DeferredSegment)
        return segment

    def _initialize(self, text: str) -> None:
        self.text = text
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = len(text)

    def _peek(self, offset: int = 1) -> str:
        index = self.position + offset
        return self.text[index] if index < self.length else ""

    def _scan_text(self) -> List[Segment]:
        """Сканирует текстовый контекст верхнего уровня."""
        segments: List[Segment] = []
        literal: List[str] = []

        def flush() -> None:
            if literal:
                segments.append(LiteralSegment("".join(literal)))
                literal.clear()

        while self.position < self.length:
            char = self.text[self.position]

            if char == "\\":
                nxt = self._peek()
                if nxt and nxt in ESCAPABLE:
                    literal.append(nxt)
                    self._advance(2)
                else:
                    # Обратный слэш перед обычным символом остаётся как есть
                    literal.append(char)
                    self._advance(1)

            elif char in "$#" and self._peek() == "{":
                flush()
                segments.append(self._scan_marker(deferred=(char == "#")))

            else:
                literal.append(char)
                self._advance(1)

        flush()
        return segments

    def _scan_marker(self, deferred: bool) -> Segment:
        """Сканирует маркер, начинающийся в текущей позиции ('$' или '#' перед '{')."""
        start = (self.position, self.line, self.column)
        self._advance(2)

        source, parts = self._scan_expression(start, collect_nested=deferred)

        if not deferred:
            return ImmediateSegment(source)

        if any(isinstance(part, ImmediateSegment) for part in parts):
            nested = self.factory(source, parts)
            logger.debug(f"Deferred expression {source!r} contains nested immediate expressions")
            return DeferredSegment(source, nested)
        return DeferredSegment(source)

    def _scan_expression(self, start: Tuple[int, int, int], collect_nested: bool) -> Tuple[str, List[Segment]]:
        """
        Сканирует содержимое маркера до парной закрывающей скобки.

        Args:
            start: (позиция, строка, колонка) начала маркера для диагностики
            collect_nested: Распознавать ли вложенные ${...} (только внутри #{...})

        Returns:
            Исходный текст между скобками и его разбиение на сегменты
            (для немедленных выражений разбиение не используется)
        """
        begin = self.position
        literal_start = begin
        parts: List[Segment] = []
        depth = 1

        while self.position < self.length:
            char = self.text[self.position]

            if char in "'\"":
                self._skip_string(char)

            elif char == "/" and self._peek() == "*":
                self._skip_comment()

            elif char == "{":
                depth += 1
                self._advance(1)

            elif char == "}":
                depth -= 1
                if depth == 0:
                    source = self.text[begin:self.position]
                    if collect_nested and self.position > literal_start:
                        parts.append(LiteralSegment(self.text[literal_start:self.position]))
                    self._advance(1)
                    return source, parts
                self._advance(1)

            elif collect_nested and char == "$" and self._peek() == "{":
                if self.position > literal_start:
                    parts.append(LiteralSegment(self.text[literal_start:self.position]))
                nested_start = (self.position, self.line, self.column)
                self._advance(2)
                inner, _ = self._scan_expression(nested_start, collect_nested=False)
                parts.append(ImmediateSegment(inner))
                literal_start = self.position

            else:
                self._advance(1)

        position, line, column = start
        raise MalformedTemplateError(
            "Unterminated expression",
            position,
            line,
            column,
            self.text[position:position + _SNIPPET_LENGTH],
        )

    def _skip_string(self, quote: str) -> None:
        """Пропускает строковый литерал; обратный слэш экранирует следующий символ."""
        self._advance(1)
        while self.position < self.length:
            char = self.text[self.position]
            if char == "\\":
                self._advance(2)
            elif char == quote:
                self._advance(1)
                return
            else:
                self._advance(1)

    def _skip_comment(self) -> None:
        """Пропускает блочный комментарий /* ... */ (до конца текста, если не закрыт)."""
        self._advance(2)
        while self.position < self.length:
            if self.text[self.position] == "*" and self._peek() == "/":
                self._advance(2)
                return
            self._advance(1)

    def _advance(self, count: int) -> None:
        """
        Перемещает позицию на указанное количество символов.

        Обновляет номера строк и колонок для диагностики.
        """
        for _ in range(count):
            if self.position >= self.length:
                break

            if self.text[self.position] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1

            self.position += 1


__all__ = ["TemplateScanner", "TemplateFactory"]
