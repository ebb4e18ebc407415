"""
Base exception for user-facing errors.

All expected errors that should be displayed to the user
as clean messages (without stack traces) must inherit from UELError.

Programming errors and bugs should NOT inherit from UELError —
they will propagate with full tracebacks.
"""

from __future__ import annotations

from typing import Optional


class UELError(Exception):
    """
    Base class for all user-facing errors of the unified expression engine.

    These errors indicate problems that the user can fix:
    malformed templates, bad expressions, missing variables, invalid configuration.
    """
    pass


class ConfigError(UELError):
    """Некорректные значения конфигурации движка."""
    pass


class MalformedTemplateError(UELError):
    """
    Ошибка разбора шаблона: маркер ${...} или #{...} не закрыт.

    Attributes:
        position: Смещение начала незакрытого маркера в исходном тексте
        line: Номер строки (начиная с 1)
        column: Номер колонки (начиная с 1)
        snippet: Фрагмент текста вокруг места ошибки
    """

    def __init__(self, message: str, position: int, line: int, column: int, snippet: str = ""):
        detail = f"{message} at {line}:{column}"
        if snippet:
            detail += f" near {snippet!r}"
        super().__init__(detail)
        self.position = position
        self.line = line
        self.column = column
        self.snippet = snippet


class ExpressionError(UELError):
    """Базовая ошибка движка выражений."""
    pass


class ExpressionSyntaxError(ExpressionError):
    """Синтаксическая ошибка в исходном тексте выражения."""

    def __init__(self, message: str, source: str, position: int):
        super().__init__(f"{message} at position {position} in {source!r}")
        self.message = message
        self.source = source
        self.position = position


class ExpressionEvaluationError(ExpressionError):
    """Ошибка при вычислении выражения (неизвестная переменная, сбой вызова метода и т.п.)."""
    pass


class TemplateEvaluationError(UELError):
    """
    Ошибка подготовки или вычисления шаблона.

    Оборачивает исходную ошибку движка выражений (доступна через __cause__).

    Attributes:
        source: Текст выражения внутри маркера, на котором произошёл сбой
        operation: "prepare" или "evaluate"
    """

    def __init__(self, operation: str, source: str, cause: Optional[BaseException] = None):
        message = f"failed to {operation} expression {source!r}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
        self.operation = operation
        self.source = source


__all__ = [
    "UELError",
    "ConfigError",
    "MalformedTemplateError",
    "ExpressionError",
    "ExpressionSyntaxError",
    "ExpressionEvaluationError",
    "TemplateEvaluationError",
]
