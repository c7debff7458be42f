"""
Built-in rules module.

Contains all built-in rules organized by base data type:
- core: required family, conditionals, comparisons, union
- string_rules, number_rules, boolean_rules, date_rules
- array_rules, object_rules, file_rules

All rules are automatically declared via the @register_rule decorator.
Import order decides which type wins the untyped lookup of a shared name
such as `min` (string first).
"""

# Import all rules to trigger registration
from modules.validation.rules import core
from modules.validation.rules import string_rules
from modules.validation.rules import number_rules
from modules.validation.rules import boolean_rules
from modules.validation.rules import date_rules
from modules.validation.rules import array_rules
from modules.validation.rules import object_rules
from modules.validation.rules import file_rules

__all__ = [
    'core',
    'string_rules',
    'number_rules',
    'boolean_rules',
    'date_rules',
    'array_rules',
    'object_rules',
    'file_rules',
]
