"""
Validation messages module.

Locale catalogs and the formatter that turns rule outcomes into text.
"""

from modules.validation.messages.catalog import available_locales, get_catalog, register_catalog
from modules.validation.messages.formatter import MessageFormatter, format_value

__all__ = [
    'MessageFormatter',
    'format_value',
    'get_catalog',
    'register_catalog',
    'available_locales',
]
