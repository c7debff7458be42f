"""
Validation core module.

Contains the data model, rule registry, compiler, path resolver and
configuration for the validation engine.
"""

from modules.validation.core.base import (
    MISSING,
    CompiledRule,
    FieldError,
    Rule,
    RuleHandler,
    RuleKind,
    RuleOutcome,
    RuleResult,
    TypeScopedRule,
    ValidationContext,
    ValidationResult,
)
from modules.validation.core.compiler import RuleCompiler, RuleList, RuleSource
from modules.validation.core.config import ValidationConfig
from modules.validation.core.config_loader import ValidationConfigLoader
from modules.validation.core.exceptions import (
    ConflictingDataTypeError,
    RuleExecutionError,
    RuleSyntaxError,
    SchemaShapeError,
    UnknownCustomRuleError,
    UnknownRuleError,
    ValidationEngineError,
)
from modules.validation.core.registry import RuleRegistry, get_default_registry, register_rule
from modules.validation.core.resolver import PathResolver, ResolvedField

__all__ = [
    'MISSING',
    'Rule',
    'RuleKind',
    'RuleHandler',
    'TypeScopedRule',
    'RuleOutcome',
    'RuleResult',
    'CompiledRule',
    'ValidationContext',
    'FieldError',
    'ValidationResult',
    'RuleCompiler',
    'RuleList',
    'RuleSource',
    'ValidationConfig',
    'ValidationConfigLoader',
    'RuleRegistry',
    'register_rule',
    'get_default_registry',
    'PathResolver',
    'ResolvedField',
    'ValidationEngineError',
    'UnknownRuleError',
    'UnknownCustomRuleError',
    'ConflictingDataTypeError',
    'RuleSyntaxError',
    'SchemaShapeError',
    'RuleExecutionError',
]
