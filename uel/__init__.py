"""
Unified template/expression engine.

Templates mix literal text with immediate ${...} and deferred #{...}
expressions and support two-phase evaluation (prepare, then evaluate).
"""

from __future__ import annotations

from .config import EngineConfig, config_from_env, load_config
from .engine import UnifiedEngine
from .errors import (
    ConfigError,
    ExpressionError,
    ExpressionEvaluationError,
    ExpressionSyntaxError,
    MalformedTemplateError,
    TemplateEvaluationError,
    UELError,
)
from .template import Template, TemplateKind
from .version import tool_version

__all__ = [
    "UnifiedEngine",
    "Template",
    "TemplateKind",
    "EngineConfig",
    "config_from_env",
    "load_config",
    "UELError",
    "ConfigError",
    "MalformedTemplateError",
    "TemplateEvaluationError",
    "ExpressionError",
    "ExpressionSyntaxError",
    "ExpressionEvaluationError",
    "tool_version",
]
