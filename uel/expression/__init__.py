"""
Встроенный язык выражений для содержимого маркеров ${...} и #{...}.
"""

from __future__ import annotations

from .engine import ExpressionBackend, ExpressionEngine
from .evaluator import ExpressionEvaluator, stringify
from .model import CompiledExpression
from .parser import ExpressionParser, parse_expression

__all__ = [
    "ExpressionBackend",
    "ExpressionEngine",
    "ExpressionEvaluator",
    "ExpressionParser",
    "CompiledExpression",
    "parse_expression",
    "stringify",
]
