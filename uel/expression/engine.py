"""
Движок выражений: граница compile/evaluate, которой пользуется слой шаблонов.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from ..config import EngineConfig
from ..errors import ExpressionEvaluationError
from .evaluator import ExpressionEvaluator
from .model import CompiledExpression
from .parser import ExpressionParser

logger = logging.getLogger(__name__)


@runtime_checkable
class ExpressionBackend(Protocol):
    """
    Протокол движка выражений для слоя шаблонов.

    Слой шаблонов не знает ничего о грамматике: он передаёт исходный текст
    в compile() и вычисляет результат через evaluate(). Метод configure(EngineConfig)
    необязателен: если он есть, движок шаблонов передаёт через него флаги strict/silent.
    """

    def compile(self, source: str) -> Any:
        """
        Компилирует текст выражения.

        Raises:
            ExpressionSyntaxError: При синтаксической ошибке
        """
        ...

    def evaluate(self, expression: Any, context: Optional[Mapping[str, Any]]) -> Any:
        """
        Вычисляет скомпилированное выражение в контексте.

        Raises:
            ExpressionEvaluationError: При ошибке вычисления (если движок не в тихом режиме)
        """
        ...


class ExpressionEngine:
    """
    Встроенный движок выражений.

    Флаги strict/silent читаются в момент вызова evaluate(),
    поэтому configure() действует на все последующие вычисления.
    """

    def __init__(self, strict: bool = True, silent: bool = False):
        self.strict = strict
        self.silent = silent

    @classmethod
    def from_config(cls, config: EngineConfig) -> ExpressionEngine:
        return cls(strict=config.strict, silent=config.silent)

    def configure(self, config: EngineConfig) -> None:
        self.strict = config.strict
        self.silent = config.silent

    def compile(self, source: str) -> CompiledExpression:
        return ExpressionParser().parse(source)

    def evaluate(self, expression: CompiledExpression, context: Optional[Mapping[str, Any]]) -> Any:
        evaluator = ExpressionEvaluator(context, strict=self.strict)
        try:
            return evaluator.evaluate(expression.root)
        except RecursionError:
            error = ExpressionEvaluationError("expression is nested too deeply")
        except ExpressionEvaluationError as e:
            error = e

        if self.silent:
            logger.warning(f"Evaluation of {expression.source!r} failed, returning null: {error}")
            return None
        raise error


__all__ = ["ExpressionBackend", "ExpressionEngine"]
