"""
Лексер языка выражений.

Разбивает исходный текст выражения (содержимое одного маркера ${...} или #{...})
на значимые элементы:
- Литералы (числа, строки в одинарных и двойных кавычках)
- Ключевые слова (true, false, null, and, or, not)
- Идентификаторы (имена переменных, свойств и методов)
- Операторы и символы
- Пробелы и блочные комментарии /* ... */ (игнорируются)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from ..errors import ExpressionSyntaxError


@dataclass
class Token:
    """
    Токен выражения.

    Attributes:
        type: Тип токена (NUMBER, STRING, KEYWORD, IDENTIFIER, OPERATOR, SYMBOL, EOF)
        value: Значение токена (для строк — вместе с кавычками и escape-последовательностями)
        position: Позиция в исходной строке
    """
    type: str
    value: str
    position: int

    def __repr__(self):
        return f"Token({self.type}, '{self.value}', pos={self.position})"


class ExpressionLexer:
    """
    Лексер для разбиения выражения на токены.

    Порядок спецификаций важен: комментарии проверяются раньше оператора '/',
    двухсимвольные операторы — раньше односимвольных.
    """

    # Спецификация токенов: (regex_pattern, token_type, ignore_flag)
    TOKEN_SPECS = [
        (r'\s+', 'WHITESPACE', True),
        (r'/\*.*?\*/', 'COMMENT', True),
        (r'/\*', 'UNTERMINATED_COMMENT', False),

        (r'\d+\.\d+|\d+', 'NUMBER', False),
        (r"'(?:[^'\\]|\\.)*'", 'STRING', False),
        (r'"(?:[^"\\]|\\.)*"', 'STRING', False),

        (r'==|!=|<=|>=|&&|\|\||[-+*/%<>=!]', 'OPERATOR', False),
        (r'[().,;\[\]]', 'SYMBOL', False),

        (r'(?:[^\W\d]|\$)[\w$]*', 'IDENTIFIER', False),

        # Неизвестный символ (ошибка)
        (r'.', 'UNKNOWN', False),
    ]

    KEYWORDS = {
        'true', 'false', 'null', 'and', 'or', 'not'
    }

    def __init__(self):
        self._compiled_patterns = [
            (re.compile(pattern, re.DOTALL), token_type, ignore)
            for pattern, token_type, ignore in self.TOKEN_SPECS
        ]

    def tokenize(self, text: str) -> List[Token]:
        """
        Разбивает выражение на токены.

        Args:
            text: Исходный текст выражения

        Returns:
            Список токенов, включая EOF в конце

        Raises:
            ExpressionSyntaxError: При неизвестном символе, незакрытой строке или комментарии
        """
        tokens: List[Token] = []
        position = 0

        while position < len(text):
            for pattern, token_type, ignore in self._compiled_patterns:
                match = pattern.match(text, position)
                if not match:
                    continue

                value = match.group(0)
                if token_type == 'UNTERMINATED_COMMENT':
                    raise ExpressionSyntaxError("Unterminated comment", text, position)
                if token_type == 'UNKNOWN':
                    if value in ("'", '"'):
                        raise ExpressionSyntaxError("Unterminated string literal", text, position)
                    raise ExpressionSyntaxError(f"Unexpected character '{value}'", text, position)

                if not ignore:
                    final_type = token_type
                    if token_type == 'IDENTIFIER' and value in self.KEYWORDS:
                        final_type = 'KEYWORD'
                    tokens.append(Token(type=final_type, value=value, position=position))

                position = match.end()
                break

        tokens.append(Token(type='EOF', value='', position=position))
        return tokens


__all__ = ["Token", "ExpressionLexer"]
