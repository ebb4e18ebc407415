"""
Модели данных для языка выражений.

Содержит узлы AST, которые строит парсер, и CompiledExpression —
непрозрачный результат компиляции, разделяемый кэшем.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class NodeType(Enum):
    """Типы узлов AST."""
    LITERAL = "literal"
    VARIABLE = "variable"
    PROPERTY = "property"
    INDEX = "index"
    METHOD_CALL = "method_call"
    UNARY = "unary"
    BINARY = "binary"
    ASSIGN = "assign"
    SEQUENCE = "sequence"


@dataclass(frozen=True)
class Node(ABC):
    """Базовый абстрактный класс для всех узлов."""

    @abstractmethod
    def get_type(self) -> NodeType:
        """Возвращает тип узла."""
        pass

    def __str__(self) -> str:
        return self._to_string()

    @abstractmethod
    def _to_string(self) -> str:
        pass


@dataclass(frozen=True)
class LiteralNode(Node):
    """Литерал: число, строка, true/false/null."""
    value: Any

    def get_type(self) -> NodeType:
        return NodeType.LITERAL

    def _to_string(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return repr(self.value)


@dataclass(frozen=True)
class VariableNode(Node):
    """Ссылка на переменную контекста: name"""
    name: str

    def get_type(self) -> NodeType:
        return NodeType.VARIABLE

    def _to_string(self) -> str:
        return self.name


@dataclass(frozen=True)
class PropertyNode(Node):
    """
    Доступ к свойству: target.name

    Цепочка свойств над переменной (a.b.c) может разрешаться
    как одна переменная с точечным именем, если переменной `a` нет в контексте.
    """
    target: Node
    name: str

    def get_type(self) -> NodeType:
        return NodeType.PROPERTY

    def _to_string(self) -> str:
        return f"{self.target}.{self.name}"


@dataclass(frozen=True)
class IndexNode(Node):
    """Доступ по индексу или ключу: target[key]"""
    target: Node
    key: Node

    def get_type(self) -> NodeType:
        return NodeType.INDEX

    def _to_string(self) -> str:
        return f"{self.target}[{self.key}]"


@dataclass(frozen=True)
class MethodCallNode(Node):
    """Вызов метода: target.name(args...)"""
    target: Node
    name: str
    args: Tuple[Node, ...]

    def get_type(self) -> NodeType:
        return NodeType.METHOD_CALL

    def _to_string(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        return f"{self.target}.{self.name}({args})"


@dataclass(frozen=True)
class UnaryNode(Node):
    """Унарная операция: -x, !x"""
    operator: str
    operand: Node

    def get_type(self) -> NodeType:
        return NodeType.UNARY

    def _to_string(self) -> str:
        return f"{self.operator}{self.operand}"


@dataclass(frozen=True)
class BinaryNode(Node):
    """
    Бинарная операция: left op right

    Операторы and/or нормализуются парсером к '&&' и '||'.
    """
    operator: str
    left: Node
    right: Node

    def get_type(self) -> NodeType:
        return NodeType.BINARY

    def _to_string(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class AssignNode(Node):
    """Присваивание: target = value"""
    target: Node
    value: Node

    def get_type(self) -> NodeType:
        return NodeType.ASSIGN

    def _to_string(self) -> str:
        return f"{self.target} = {self.value}"


@dataclass(frozen=True)
class SequenceNode(Node):
    """Последовательность инструкций через ';'. Результат — значение последней."""
    statements: Tuple[Node, ...]

    def get_type(self) -> NodeType:
        return NodeType.SEQUENCE

    def _to_string(self) -> str:
        return "; ".join(str(s) for s in self.statements)


@dataclass(frozen=True)
class CompiledExpression:
    """
    Результат компиляции выражения.

    Неизменяем и может разделяться между потоками и шаблонами.
    """
    source: str
    root: Node

    def __repr__(self) -> str:
        return f"CompiledExpression({self.source!r})"


__all__ = [
    "NodeType",
    "Node",
    "LiteralNode",
    "VariableNode",
    "PropertyNode",
    "IndexNode",
    "MethodCallNode",
    "UnaryNode",
    "BinaryNode",
    "AssignNode",
    "SequenceNode",
    "CompiledExpression",
]
