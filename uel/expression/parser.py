"""
Парсер языка выражений с рекурсивным спуском.

Строит AST из последовательности токенов с учётом приоритетов операторов.

Грамматика:
sequence       → statement (";" statement)* ";"?
statement      → or_expression ("=" statement)?
or_expression  → and_expression (("or" | "||") and_expression)*
and_expression → comparison (("and" | "&&") comparison)*
comparison     → additive (("==" | "!=" | "<" | "<=" | ">" | ">=") additive)?
additive       → multiplicative (("+" | "-") multiplicative)*
multiplicative → unary (("*" | "/" | "%") unary)*
unary          → ("-" | "!" | "not") unary | postfix
postfix        → primary ("." IDENTIFIER call_args? | "[" or_expression "]")*
call_args      → "(" (or_expression ("," or_expression)*)? ")"
primary        → NUMBER | STRING | "true" | "false" | "null" | IDENTIFIER | "(" sequence ")"
"""

from __future__ import annotations

import logging
from typing import List

from ..errors import ExpressionSyntaxError
from .lexer import ExpressionLexer, Token
from .model import (
    AssignNode,
    BinaryNode,
    CompiledExpression,
    IndexNode,
    LiteralNode,
    MethodCallNode,
    Node,
    PropertyNode,
    SequenceNode,
    UnaryNode,
    VariableNode,
)

logger = logging.getLogger(__name__)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f"}

_COMPARISON_OPERATORS = ("==", "!=", "<", "<=", ">", ">=")


def _unescape(literal: str) -> str:
    """Снимает кавычки и раскрывает escape-последовательности строкового литерала."""
    body = literal[1:-1]
    out: List[str] = []
    i = 0
    while i < len(body):
        c = body[i]
        if c == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append(_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


class ExpressionParser:
    """
    Парсер выражений с рекурсивным спуском.

    Преобразует исходный текст в CompiledExpression. Экземпляр не потокобезопасен:
    состояние разбора хранится в полях, поэтому на каждый разбор лучше создавать
    свой парсер (это дёшево).
    """

    def __init__(self):
        self.lexer = ExpressionLexer()
        self._source = ""
        self._tokens: List[Token] = []
        self._position = 0

    def parse(self, source: str) -> CompiledExpression:
        """
        Компилирует исходный текст выражения.

        Args:
            source: Текст выражения

        Returns:
            Скомпилированное выражение

        Raises:
            ExpressionSyntaxError: При синтаксической ошибке
        """
        self._source = source
        self._tokens = self.lexer.tokenize(source)
        self._position = 0

        if self._is_at_end():
            raise ExpressionSyntaxError("Empty expression", source, 0)

        try:
            root = self._parse_sequence()
        except RecursionError:
            raise self._error("Expression is nested too deeply", self._current_token()) from None

        if not self._is_at_end():
            current = self._current_token()
            raise self._error(f"Unexpected token '{current.value}'", current)

        logger.debug(f"Compiled expression {source!r}")
        return CompiledExpression(source=source, root=root)

    def _parse_sequence(self) -> Node:
        """Парсит последовательность инструкций через ';'."""
        statements = [self._parse_statement()]

        while self._match("SYMBOL", ";"):
            if self._is_at_end() or self._check("SYMBOL", ")"):
                break  # Завершающая ';' допустима
            statements.append(self._parse_statement())

        if len(statements) == 1:
            return statements[0]
        return SequenceNode(statements=tuple(statements))

    def _parse_statement(self) -> Node:
        """Парсит инструкцию: выражение или присваивание (правоассоциативное)."""
        start = self._current_token()
        left = self._parse_or_expression()

        if self._match("OPERATOR", "="):
            if not isinstance(left, (VariableNode, PropertyNode, IndexNode)):
                raise self._error("Invalid assignment target", start)
            value = self._parse_statement()
            return AssignNode(target=left, value=value)

        return left

    def _parse_or_expression(self) -> Node:
        """Парсит логическое ИЛИ (низший приоритет)."""
        left = self._parse_and_expression()

        while self._match("OPERATOR", "||") or self._match("KEYWORD", "or"):
            right = self._parse_and_expression()
            left = BinaryNode(operator="||", left=left, right=right)

        return left

    def _parse_and_expression(self) -> Node:
        """Парсит логическое И."""
        left = self._parse_comparison()

        while self._match("OPERATOR", "&&") or self._match("KEYWORD", "and"):
            right = self._parse_comparison()
            left = BinaryNode(operator="&&", left=left, right=right)

        return left

    def _parse_comparison(self) -> Node:
        """Парсит сравнение (неассоциативно)."""
        left = self._parse_additive()

        current = self._current_token()
        if current.type == "OPERATOR" and current.value in _COMPARISON_OPERATORS:
            self._advance()
            right = self._parse_additive()
            return BinaryNode(operator=current.value, left=left, right=right)

        return left

    def _parse_additive(self) -> Node:
        left = self._parse_multiplicative()

        while True:
            current = self._current_token()
            if current.type == "OPERATOR" and current.value in ("+", "-"):
                self._advance()
                right = self._parse_multiplicative()
                left = BinaryNode(operator=current.value, left=left, right=right)
            else:
                return left

    def _parse_multiplicative(self) -> Node:
        left = self._parse_unary()

        while True:
            current = self._current_token()
            if current.type == "OPERATOR" and current.value in ("*", "/", "%"):
                self._advance()
                right = self._parse_unary()
                left = BinaryNode(operator=current.value, left=left, right=right)
            else:
                return left

    def _parse_unary(self) -> Node:
        """Парсит унарные операторы (правоассоциативно)."""
        if self._match("OPERATOR", "-"):
            return UnaryNode(operator="-", operand=self._parse_unary())
        if self._match("OPERATOR", "!") or self._match("KEYWORD", "not"):
            return UnaryNode(operator="!", operand=self._parse_unary())
        return self._parse_postfix()

    def _parse_postfix(self) -> Node:
        """Парсит цепочку доступа к свойствам, индексам и вызовов методов."""
        node = self._parse_primary()

        while True:
            if self._match("SYMBOL", "."):
                name_token = self._current_token()
                if name_token.type not in ("IDENTIFIER", "KEYWORD"):
                    raise self._error("Expected property name after '.'", name_token)
                self._advance()

                if self._match("SYMBOL", "("):
                    args = self._parse_call_args()
                    node = MethodCallNode(target=node, name=name_token.value, args=args)
                else:
                    node = PropertyNode(target=node, name=name_token.value)

            elif self._match("SYMBOL", "["):
                key = self._parse_or_expression()
                self._expect("SYMBOL", "]", "Expected ']' after index")
                node = IndexNode(target=node, key=key)

            else:
                return node

    def _parse_call_args(self) -> tuple:
        """Парсит аргументы вызова (открывающая скобка уже потреблена)."""
        args: List[Node] = []
        if self._match("SYMBOL", ")"):
            return tuple(args)

        args.append(self._parse_or_expression())
        while self._match("SYMBOL", ","):
            args.append(self._parse_or_expression())

        self._expect("SYMBOL", ")", "Expected ')' after arguments")
        return tuple(args)

    def _parse_primary(self) -> Node:
        """Парсит первичное выражение: литералы, переменные и группы в скобках."""
        current = self._current_token()

        if current.type == "NUMBER":
            self._advance()
            try:
                value = float(current.value) if "." in current.value else int(current.value)
            except ValueError:
                raise self._error(f"Invalid number literal '{current.value[:16]}...'", current) from None
            return LiteralNode(value=value)

        if current.type == "STRING":
            self._advance()
            return LiteralNode(value=_unescape(current.value))

        if current.type == "KEYWORD" and current.value in ("true", "false", "null"):
            self._advance()
            return LiteralNode(value={"true": True, "false": False, "null": None}[current.value])

        if current.type == "IDENTIFIER":
            self._advance()
            return VariableNode(name=current.value)

        if self._match("SYMBOL", "("):
            expr = self._parse_sequence()
            self._expect("SYMBOL", ")", "Expected ')' after grouped expression")
            return expr

        if current.type == "EOF":
            raise self._error("Unexpected end of expression", current)
        raise self._error(f"Unexpected token '{current.value}'", current)

    # Вспомогательные методы для работы с токенами

    def _current_token(self) -> Token:
        if self._position >= len(self._tokens):
            return self._tokens[-1]
        return self._tokens[self._position]

    def _is_at_end(self) -> bool:
        return self._current_token().type == "EOF"

    def _advance(self) -> Token:
        token = self._current_token()
        if not self._is_at_end():
            self._position += 1
        return token

    def _check(self, token_type: str, value: str) -> bool:
        current = self._current_token()
        return current.type == token_type and current.value == value

    def _match(self, token_type: str, value: str) -> bool:
        """Проверяет и потребляет токен."""
        if self._check(token_type, value):
            self._advance()
            return True
        return False

    def _expect(self, token_type: str, value: str, error_message: str) -> Token:
        if not self._check(token_type, value):
            raise self._error(error_message, self._current_token())
        return self._advance()

    def _error(self, message: str, token: Token) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(message, self._source, token.position)


def parse_expression(source: str) -> CompiledExpression:
    """Удобная функция для компиляции выражения из строки."""
    return ExpressionParser().parse(source)


__all__ = ["ExpressionParser", "parse_expression"]
