"""
Validation response module.

Turns the ordered failure list into the caller-selected error shape.
"""

from modules.validation.response.formatters import FORMATTER_REGISTRY, format_errors, register_formatter

__all__ = ['format_errors', 'register_formatter', 'FORMATTER_REGISTRY']
