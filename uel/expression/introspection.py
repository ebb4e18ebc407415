"""
Доступ к свойствам и методам произвольных Python-объектов.

Словари отдают значения по ключу, остальные объекты — атрибуты.
Для строк и коллекций поддерживаются привычные Java-подобные методы
(substring, charAt, length, size, isEmpty, ...) с проверкой границ.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping, Sized
from typing import Any, Callable, Dict, Sequence

from ..errors import ExpressionEvaluationError

logger = logging.getLogger(__name__)


def _check_index(s: str, index: int, upper: int) -> None:
    if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index > upper:
        raise ExpressionEvaluationError(f"index {index!r} out of range for string of length {len(s)}")


def _substring(s: str, begin: int, end: Any = None) -> str:
    stop = len(s) if end is None else end
    _check_index(s, begin, len(s))
    _check_index(s, stop, len(s))
    if begin > stop:
        raise ExpressionEvaluationError(f"substring begin {begin} is greater than end {stop}")
    return s[begin:stop]


def _char_at(s: str, index: int) -> str:
    _check_index(s, index, len(s) - 1)
    return s[index]


_STRING_METHODS: Dict[str, Callable[..., Any]] = {
    "substring": _substring,
    "charAt": _char_at,
    "length": lambda s: len(s),
    "toUpperCase": lambda s: s.upper(),
    "toLowerCase": lambda s: s.lower(),
    "trim": lambda s: s.strip(),
    "contains": lambda s, part: str(part) in s,
    "startsWith": lambda s, prefix: s.startswith(str(prefix)),
    "endsWith": lambda s, suffix: s.endswith(str(suffix)),
    "indexOf": lambda s, part: s.find(str(part)),
}

_SIZED_METHODS: Dict[str, Callable[..., Any]] = {
    "size": lambda obj: len(obj),
    "length": lambda obj: len(obj),
    "isEmpty": lambda obj: len(obj) == 0,
}


def get_property(obj: Any, name: str) -> Any:
    """
    Возвращает свойство объекта.

    Для словарей отсутствующий ключ даёт None, для остальных объектов
    отсутствующий атрибут — ошибку. Любое исключение геттера оборачивается
    в ExpressionEvaluationError.
    """
    if obj is None:
        raise ExpressionEvaluationError(f"cannot read property '{name}' of null")
    if not isinstance(obj, Mapping) and name.startswith("_"):
        raise ExpressionEvaluationError(f"access to private property '{name}' is not allowed")
    try:
        if isinstance(obj, Mapping):
            return obj.get(name)
        return getattr(obj, name)
    except ExpressionEvaluationError:
        raise
    except AttributeError:
        raise ExpressionEvaluationError(
            f"unknown property '{name}' on {type(obj).__name__}"
        ) from None
    except Exception as e:
        logger.debug(f"Property {type(obj).__name__}.{name} failed: {e}")
        raise ExpressionEvaluationError(
            f"property '{name}' on {type(obj).__name__} failed: {e}"
        ) from e


def set_property(obj: Any, name: str, value: Any) -> None:
    """Устанавливает свойство объекта (ключ словаря или атрибут)."""
    if obj is None:
        raise ExpressionEvaluationError(f"cannot set property '{name}' of null")
    if not isinstance(obj, MutableMapping) and name.startswith("_"):
        raise ExpressionEvaluationError(f"access to private property '{name}' is not allowed")
    try:
        if isinstance(obj, MutableMapping):
            obj[name] = value
        else:
            setattr(obj, name, value)
    except ExpressionEvaluationError:
        raise
    except Exception as e:
        raise ExpressionEvaluationError(
            f"cannot set property '{name}' on {type(obj).__name__}: {e}"
        ) from e


def get_item(obj: Any, key: Any) -> Any:
    """Доступ по индексу или ключу: obj[key]."""
    if obj is None:
        raise ExpressionEvaluationError(f"cannot index null with {key!r}")
    try:
        if isinstance(obj, Mapping):
            return obj.get(key)
        return obj[key]
    except ExpressionEvaluationError:
        raise
    except Exception as e:
        raise ExpressionEvaluationError(f"cannot index {type(obj).__name__} with {key!r}: {e}") from e


def set_item(obj: Any, key: Any, value: Any) -> None:
    if obj is None:
        raise ExpressionEvaluationError(f"cannot index null with {key!r}")
    try:
        obj[key] = value
    except ExpressionEvaluationError:
        raise
    except Exception as e:
        raise ExpressionEvaluationError(f"cannot assign {type(obj).__name__}[{key!r}]: {e}") from e


def call_method(obj: Any, name: str, args: Sequence[Any]) -> Any:
    """
    Вызывает метод объекта.

    Порядок поиска:
    1. Java-подобные методы строк
    2. size/length/isEmpty для коллекций (если у объекта нет собственного атрибута)
    3. Вызываемый атрибут объекта

    Raises:
        ExpressionEvaluationError: Если метод не найден или вызов завершился ошибкой
    """
    if obj is None:
        raise ExpressionEvaluationError(f"cannot call method '{name}' on null")
    if name.startswith("_"):
        raise ExpressionEvaluationError(f"access to private method '{name}' is not allowed")

    if isinstance(obj, str) and name in _STRING_METHODS:
        func: Callable[..., Any] = _STRING_METHODS[name]
        call_args = (obj, *args)
    elif isinstance(obj, Sized) and name in _SIZED_METHODS and not hasattr(obj, name):
        func = _SIZED_METHODS[name]
        call_args = (obj, *args)
    else:
        func = getattr(obj, name, None)
        if not callable(func):
            raise ExpressionEvaluationError(f"unknown method '{name}' on {type(obj).__name__}")
        call_args = tuple(args)

    try:
        return func(*call_args)
    except ExpressionEvaluationError:
        raise
    except Exception as e:
        logger.debug(f"Method {type(obj).__name__}.{name} failed: {e}")
        raise ExpressionEvaluationError(
            f"method '{name}' on {type(obj).__name__} failed: {e}"
        ) from e


__all__ = ["get_property", "set_property", "get_item", "set_item", "call_method"]
