"""
Main template engine facade.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Mapping, Optional

from .config import EngineConfig
from .expression import ExpressionBackend, ExpressionEngine
from .template.cache import CacheStats, LRUCache
from .template.scanner import TemplateScanner
from .template.segments import DeferredSegment, Segment
from .template.template import Template

logger = logging.getLogger(__name__)


class UnifiedEngine:
    """
    Engine coordinating class.

    Owns the components shared by every template it parses:
    - the expression backend that compiles and evaluates marker contents
    - the LRU cache of compiled expressions
    - the LRU cache of parsed templates
    - the engine configuration (strict/silent flags, cache capacity)

    Several engines with different configurations can coexist; nothing is
    stored at module level.
    """

    def __init__(self, config: Optional[EngineConfig] = None, expressions: Optional[ExpressionBackend] = None):
        """
        Initialize engine.

        Args:
            config: Engine configuration (defaults to EngineConfig())
            expressions: Expression backend (defaults to the built-in ExpressionEngine)
        """
        self._config = config or EngineConfig()

        if expressions is None:
            self.expressions: ExpressionBackend = ExpressionEngine.from_config(self._config)
        else:
            self.expressions = expressions
            self._forward_flags(self._config)

        self._expression_cache: LRUCache[str, Any] = LRUCache(self._config.cache_size)
        self._template_cache: LRUCache[str, Template] = LRUCache(self._config.cache_size)

    # ---------------------------- configuration ---------------------------- #

    @property
    def config(self) -> EngineConfig:
        return self._config

    def _forward_flags(self, config: EngineConfig) -> None:
        # configure() is optional for custom backends
        configure = getattr(self.expressions, "configure", None)
        if callable(configure):
            configure(config)

    def _reconfigure(self, config: EngineConfig) -> None:
        self._config = config
        self._forward_flags(config)
        logger.debug(f"Engine reconfigured: {config}")

    def set_cache(self, size: int) -> None:
        """
        Set compiled-expression cache capacity.

        0 (or a negative value) disables caching; shrinking evicts the oldest entries.
        """
        self._reconfigure(replace(self._config, cache_size=int(size)))
        self._expression_cache.resize(self._config.cache_size)
        self._template_cache.resize(self._config.cache_size)

    def set_strict(self, strict: bool) -> None:
        self._reconfigure(replace(self._config, strict=bool(strict)))

    def set_lenient(self, lenient: bool) -> None:
        self._reconfigure(replace(self._config, strict=not lenient))

    def set_silent(self, silent: bool) -> None:
        self._reconfigure(replace(self._config, silent=bool(silent)))

    # ---------------------------- parsing ---------------------------- #

    def _make_template(self, source: str, segments: List[Segment]) -> Template:
        return Template(self, source, segments)

    def _scan(self, text: str) -> Template:
        return TemplateScanner(self._make_template).scan(text)

    def scan_deferred(self, source: str) -> DeferredSegment:
        """Build a #{...} segment from expression source, recognizing nested ${...}."""
        return TemplateScanner(self._make_template).scan_deferred(source)

    def parse(self, text: str) -> Template:
        """
        Parse template text.

        Templates are memoized by exact text; parse failures are not cached.

        Raises:
            MalformedTemplateError: If a marker is never closed
        """
        return self._template_cache.get_or_create(text, self._scan)

    def compile(self, source: str) -> Any:
        """
        Compile expression source through the cache.

        Raises:
            ExpressionSyntaxError: On malformed expression source (never cached)
        """
        return self._expression_cache.get_or_create(source, self.expressions.compile)

    def cache_stats(self) -> CacheStats:
        """Statistics of the compiled-expression cache."""
        return self._expression_cache.stats()

    def clear_cache(self) -> None:
        self._expression_cache.clear()
        self._template_cache.clear()

    # ---------------------------- one-shot helpers ---------------------------- #

    def evaluate(self, text: str, context: Optional[Mapping[str, Any]] = None) -> Any:
        """Parse and evaluate template text in one call."""
        return self.parse(text).evaluate(context)

    def prepare(self, text: str, context: Optional[Mapping[str, Any]] = None) -> Template:
        """Parse and prepare template text in one call."""
        return self.parse(text).prepare(context)


__all__ = ["UnifiedEngine"]
