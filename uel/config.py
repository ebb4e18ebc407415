"""
Конфигурация движка шаблонов.

Значение EngineConfig неизменяемо: настройки принадлежат конкретному экземпляру
UnifiedEngine, а не глобальному состоянию процесса.

Источники (по возрастанию приоритета):
- значения по умолчанию;
- секция `engine:` YAML-файла;
- переменные окружения UEL_CACHE_SIZE, UEL_STRICT, UEL_SILENT.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from ruamel.yaml import YAML

from .errors import ConfigError

_yaml = YAML(typ="safe")

DEFAULT_CACHE_SIZE = 256

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _norm_bool(name: str, x: Any) -> bool:
    if isinstance(x, bool):
        return x
    if x is None:
        return False
    s = str(x).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ConfigError(f"{name}: expected a boolean, got {x!r}")


def _norm_int(name: str, x: Any) -> int:
    if isinstance(x, bool):
        raise ConfigError(f"{name}: expected an integer, got {x!r}")
    try:
        return int(str(x).strip())
    except ValueError:
        raise ConfigError(f"{name}: expected an integer, got {x!r}") from None


@dataclass(frozen=True)
class EngineConfig:
    """
    Настройки движка.

    Attributes:
        strict: Строгий режим — неизвестные переменные и null в арифметике приводят к ошибке
        silent: Тихий режим — ошибки вычисления логируются, результатом становится None
        cache_size: Ёмкость LRU-кэша скомпилированных выражений (0 или меньше — кэш выключен)
    """
    strict: bool = True
    silent: bool = False
    cache_size: int = DEFAULT_CACHE_SIZE

    @property
    def lenient(self) -> bool:
        return not self.strict

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> EngineConfig:
        """
        Строит конфигурацию из словаря (например, секции YAML).

        Поддерживаемые ключи: strict, lenient, silent, cache_size.
        Ключ lenient — синоним для `strict: false`.
        """
        if not raw:
            return cls()
        if not isinstance(raw, Mapping):
            raise ConfigError(f"engine config must be a mapping, got {type(raw).__name__}")

        unknown = set(raw) - {"strict", "lenient", "silent", "cache_size"}
        if unknown:
            raise ConfigError(f"unknown engine config keys: {', '.join(sorted(unknown))}")

        cfg = cls()
        if "strict" in raw:
            cfg = replace(cfg, strict=_norm_bool("strict", raw["strict"]))
        if "lenient" in raw:
            cfg = replace(cfg, strict=not _norm_bool("lenient", raw["lenient"]))
        if "silent" in raw:
            cfg = replace(cfg, silent=_norm_bool("silent", raw["silent"]))
        if "cache_size" in raw:
            cfg = replace(cfg, cache_size=_norm_int("cache_size", raw["cache_size"]))
        return cfg


def config_from_env(base: Optional[EngineConfig] = None, environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """Применяет переопределения из переменных окружения поверх base."""
    env = os.environ if environ is None else environ
    cfg = base or EngineConfig()

    value = env.get("UEL_CACHE_SIZE")
    if value is not None:
        cfg = replace(cfg, cache_size=_norm_int("UEL_CACHE_SIZE", value))
    value = env.get("UEL_STRICT")
    if value is not None:
        cfg = replace(cfg, strict=_norm_bool("UEL_STRICT", value))
    value = env.get("UEL_SILENT")
    if value is not None:
        cfg = replace(cfg, silent=_norm_bool("UEL_SILENT", value))
    return cfg


def load_config(path: Path, *, use_env: bool = True) -> EngineConfig:
    """
    Загружает конфигурацию движка из YAML-файла.

    Ожидается словарь с секцией `engine:`. Отсутствующий файл не является ошибкой:
    используются значения по умолчанию.

    Args:
        path: Путь к YAML-файлу
        use_env: Применять ли переопределения из окружения

    Returns:
        Итоговая конфигурация

    Raises:
        ConfigError: При неверной структуре или значениях
    """
    raw: Any = {}
    if path.is_file():
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"YAML must be a mapping: {path}")

    cfg = EngineConfig.from_dict(raw.get("engine"))
    return config_from_env(cfg) if use_env else cfg


__all__ = ["EngineConfig", "DEFAULT_CACHE_SIZE", "config_from_env", "load_config"]
