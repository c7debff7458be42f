"""
Validation module.

Declarative data validation: a schema maps field paths to rule chains, and
the engine reports which values fail which rules.

Main components:
- Validator / ValidationEngine: compile a schema and run it against data
- RuleRegistry: built-in and custom rules
- MessageFormatter: locale-aware failure messages
- format_errors: laravel, flat, grouped and nested error shapes

Usage:
    from modules.validation import Validator

    validator = Validator({"email": "required|string|email", "age": "required|number|min:18"})
    result = validator.validate({"email": "a@b.com", "age": 20})

    if not result.is_valid:
        for field, messages in result.errors.items():
            print(f"{field}: {messages[0]}")
"""

from modules.validation.engine import ValidationEngine, Validator, extend, validate, validate_async
from modules.validation.core.base import FieldError, RuleHandler, TypeScopedRule, ValidationResult
from modules.validation.core.config import ValidationConfig
from modules.validation.core.registry import RuleRegistry, get_default_registry, register_rule
from modules.validation.messages.formatter import MessageFormatter
from modules.validation.response.formatters import format_errors

__all__ = [
    'Validator',
    'ValidationEngine',
    'validate',
    'validate_async',
    'extend',
    'ValidationResult',
    'FieldError',
    'ValidationConfig',
    'RuleHandler',
    'TypeScopedRule',
    'RuleRegistry',
    'register_rule',
    'get_default_registry',
    'MessageFormatter',
    'format_errors',
]
