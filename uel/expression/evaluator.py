"""
Вычислитель выражений.

Проходит по AST и вычисляет значение в контексте переменных.
Строгий режим превращает неизвестные переменные и null-операнды в ошибки,
нестрогий (lenient) — подставляет null и трактует его как 0 или пустую строку.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any, List, Optional, cast

from ..errors import ExpressionEvaluationError
from .introspection import call_method, get_item, get_property, set_item, set_property
from .model import (
    AssignNode,
    BinaryNode,
    IndexNode,
    LiteralNode,
    MethodCallNode,
    Node,
    NodeType,
    PropertyNode,
    SequenceNode,
    UnaryNode,
    VariableNode,
)

logger = logging.getLogger(__name__)


def stringify(value: Any) -> str:
    """
    Текстовое представление значения для подстановки в шаблон.

    null превращается в пустую строку, булевы значения — в true/false.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _ant_names(node: Node) -> Optional[List[str]]:
    """Возвращает имена цепочки a.b.c, если узел — цепочка свойств над переменной."""
    if isinstance(node, VariableNode):
        return [node.name]
    if isinstance(node, PropertyNode):
        names = _ant_names(node.target)
        if names is not None:
            return names + [node.name]
    return None


class ExpressionEvaluator:
    """
    Вычислитель выражений.

    Принимает контекст и флаг строгости; один экземпляр обслуживает одно вычисление.
    """

    def __init__(self, context: Optional[Mapping[str, Any]], strict: bool = True):
        """
        Args:
            context: Переменные (None — контекст отсутствует, любая переменная вызывает ошибку)
            strict: Строгий режим
        """
        self.context = context
        self.strict = strict

    def evaluate(self, node: Node) -> Any:
        """
        Вычисляет значение узла.

        Raises:
            ExpressionEvaluationError: При ошибке вычисления
        """
        node_type = node.get_type()

        if node_type == NodeType.LITERAL:
            return cast(LiteralNode, node).value
        elif node_type == NodeType.VARIABLE:
            return self._lookup(cast(VariableNode, node).name)
        elif node_type == NodeType.PROPERTY:
            return self._evaluate_property(cast(PropertyNode, node))
        elif node_type == NodeType.INDEX:
            return self._evaluate_index(cast(IndexNode, node))
        elif node_type == NodeType.METHOD_CALL:
            return self._evaluate_method_call(cast(MethodCallNode, node))
        elif node_type == NodeType.UNARY:
            return self._evaluate_unary(cast(UnaryNode, node))
        elif node_type == NodeType.BINARY:
            return self._evaluate_binary(cast(BinaryNode, node))
        elif node_type == NodeType.ASSIGN:
            return self._evaluate_assign(cast(AssignNode, node))
        elif node_type == NodeType.SEQUENCE:
            return self._evaluate_sequence(cast(SequenceNode, node))
        else:
            raise ExpressionEvaluationError(f"Unknown node type: {node_type}")

    # ---------------------------- Переменные и свойства ---------------------------- #

    def _require_context(self, name: str) -> Mapping[str, Any]:
        if self.context is None:
            raise ExpressionEvaluationError(f"no context to resolve variable '{name}'")
        return self.context

    def _undefined(self, name: str) -> Any:
        if self.strict:
            raise ExpressionEvaluationError(f"undefined variable '{name}'")
        logger.debug(f"Undefined variable '{name}' resolved to null (lenient)")
        return None

    def _lookup(self, name: str) -> Any:
        context = self._require_context(name)
        if name in context:
            return context[name]
        return self._undefined(name)

    def _evaluate_property(self, node: PropertyNode) -> Any:
        """
        Вычисляет target.name.

        Если цепочка a.b.c начинается с неизвестной переменной, ищется
        самый длинный префикс "a.b..." среди ключей контекста.
        """
        names = _ant_names(node)
        if names is not None:
            context = self._require_context(names[0])
            if names[0] not in context:
                for i in range(len(names), 1, -1):
                    key = ".".join(names[:i])
                    if key in context:
                        value = context[key]
                        for name in names[i:]:
                            value = self._get_property(value, name)
                        return value
                return self._undefined(".".join(names))

        target = self.evaluate(node.target)
        return self._get_property(target, node.name)

    def _get_property(self, target: Any, name: str) -> Any:
        if target is None and not self.strict:
            return None
        return get_property(target, name)

    def _evaluate_index(self, node: IndexNode) -> Any:
        target = self.evaluate(node.target)
        key = self.evaluate(node.key)
        if target is None and not self.strict:
            return None
        return get_item(target, key)

    def _evaluate_method_call(self, node: MethodCallNode) -> Any:
        target = self.evaluate(node.target)
        args = [self.evaluate(arg) for arg in node.args]
        if target is None and not self.strict:
            return None
        return call_method(target, node.name, args)

    # ---------------------------- Присваивание ---------------------------- #

    def _mutable_context(self, name: str) -> MutableMapping:
        context = self._require_context(name)
        if not isinstance(context, MutableMapping):
            raise ExpressionEvaluationError(f"cannot assign '{name}': context is read-only")
        return context

    def _evaluate_assign(self, node: AssignNode) -> Any:
        value = self.evaluate(node.value)
        target = node.target

        if isinstance(target, VariableNode):
            self._mutable_context(target.name)[target.name] = value
        elif isinstance(target, PropertyNode):
            names = _ant_names(target)
            if names is not None and names[0] not in self._require_context(names[0]):
                # Неизвестная переменная: сохраняем значение под точечным именем
                dotted = ".".join(names)
                self._mutable_context(dotted)[dotted] = value
            else:
                set_property(self.evaluate(target.target), target.name, value)
        elif isinstance(target, IndexNode):
            set_item(self.evaluate(target.target), self.evaluate(target.key), value)
        else:
            raise ExpressionEvaluationError(f"invalid assignment target: {target}")

        return value

    def _evaluate_sequence(self, node: SequenceNode) -> Any:
        result = None
        for statement in node.statements:
            result = self.evaluate(statement)
        return result

    # ---------------------------- Операторы ---------------------------- #

    def _operand(self, value: Any, operator: str, default: Any = 0) -> Any:
        """Проверяет операнд на null: ошибка в строгом режиме, default в нестрогом."""
        if value is None:
            if self.strict:
                raise ExpressionEvaluationError(f"null operand for '{operator}'")
            return default
        return value

    def _evaluate_unary(self, node: UnaryNode) -> Any:
        value = self.evaluate(node.operand)

        if node.operator == "!":
            return not value

        value = self._operand(value, "-")
        if not _is_number(value):
            raise ExpressionEvaluationError(f"cannot negate {type(value).__name__}")
        return -value

    def _evaluate_binary(self, node: BinaryNode) -> Any:
        operator = node.operator

        # Логические операторы с коротким вычислением
        if operator == "&&":
            return bool(self.evaluate(node.left)) and bool(self.evaluate(node.right))
        if operator == "||":
            return bool(self.evaluate(node.left)) or bool(self.evaluate(node.right))

        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        if operator == "==":
            return left == right
        if operator == "!=":
            return left != right
        if operator == "+":
            return self._add(left, right)

        left = self._operand(left, operator)
        right = self._operand(right, operator)

        try:
            if operator == "<":
                return left < right
            if operator == "<=":
                return left <= right
            if operator == ">":
                return left > right
            if operator == ">=":
                return left >= right
            if operator == "-":
                return left - right
            if operator == "*":
                return left * right
            if operator == "/":
                return self._divide(left, right)
            if operator == "%":
                if right == 0:
                    raise ExpressionEvaluationError("modulo by zero")
                return left % right
        except TypeError as e:
            raise ExpressionEvaluationError(
                f"unsupported operands for '{operator}': "
                f"{type(left).__name__} and {type(right).__name__}"
            ) from e

        raise ExpressionEvaluationError(f"Unknown operator: {operator}")

    def _add(self, left: Any, right: Any) -> Any:
        """Сложение чисел или конкатенация, если хотя бы один операнд — строка."""
        if isinstance(left, str) or isinstance(right, str):
            left = self._operand(left, "+", default="")
            right = self._operand(right, "+", default="")
            return stringify(left) + stringify(right)

        left = self._operand(left, "+")
        right = self._operand(right, "+")
        try:
            return left + right
        except TypeError as e:
            raise ExpressionEvaluationError(
                f"unsupported operands for '+': {type(left).__name__} and {type(right).__name__}"
            ) from e

    @staticmethod
    def _divide(left: Any, right: Any) -> Any:
        """Деление; для двух целых — целочисленное с усечением к нулю."""
        if right == 0:
            raise ExpressionEvaluationError("division by zero")
        if isinstance(left, int) and isinstance(right, int):
            quotient = abs(left) // abs(right)
            return quotient if (left >= 0) == (right >= 0) else -quotient
        return left / right


__all__ = ["ExpressionEvaluator", "stringify"]
