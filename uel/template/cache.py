"""
Ограниченный LRU-кэш для скомпилированных выражений и разобранных шаблонов.

Потокобезопасен: все изменения словаря выполняются под блокировкой.
Сама компиляция выполняется вне блокировки; если два потока одновременно
компилируют один и тот же текст, в кэш попадает первый результат, и оба
вызова получают именно его.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    size: int
    capacity: int


class LRUCache(Generic[K, V]):
    """
    Кэш с вытеснением наименее давно использованной записи.

    Ёмкость 0 или отрицательная отключает кэширование: get_or_create
    каждый раз вызывает фабрику.
    """

    def __init__(self, capacity: int):
        self._capacity = capacity
        self._data: "OrderedDict[K, V]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def enabled(self) -> bool:
        return self._capacity > 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: K) -> bool:
        """Проверка наличия без обновления порядка использования."""
        with self._lock:
            return key in self._data

    def get(self, key: K) -> Optional[V]:
        """Возвращает значение и отмечает его как недавно использованное."""
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
                self._hits += 1
                return self._data[key]
            self._misses += 1
            return None

    def put(self, key: K, value: V) -> V:
        """
        Сохраняет значение.

        Если ключ уже есть (его добавил другой поток), остаётся прежнее значение
        и возвращается оно.
        """
        if not self.enabled:
            return value
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
                return self._data[key]
            self._data[key] = value
            self._evict_locked()
            return value

    def get_or_create(self, key: K, factory: Callable[[K], V]) -> V:
        """
        Возвращает значение из кэша или создаёт его фабрикой.

        Исключения фабрики не кэшируются и пробрасываются вызывающему.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = factory(key)
        return self.put(key, value)

    def resize(self, capacity: int) -> None:
        """Меняет ёмкость; лишние старые записи вытесняются сразу."""
        with self._lock:
            self._capacity = capacity
            if capacity <= 0:
                self._data.clear()
            else:
                self._evict_locked()

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._data),
                capacity=self._capacity,
            )

    def _evict_locked(self) -> None:
        while len(self._data) > self._capacity:
            key, _ = self._data.popitem(last=False)
            logger.debug(f"Evicted {key!r} from cache (capacity {self._capacity})")


__all__ = ["LRUCache", "CacheStats"]
