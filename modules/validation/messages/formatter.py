"""
Message formatter.

Renders the failure message for a rule. Template resolution order:
1. field-specific override ("<field>.<rule>" in the configured messages)
2. rule template, type-scoped first ("min.string" or {"min": {"string": ...}}),
   from the configured messages then the locale catalog
3. the rule's hardcoded fallback text
"""

import re
from typing import Any, Dict, Optional

from modules.validation.messages.catalog import DEFAULT_LOCALE, get_catalog

_PLACEHOLDER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


def format_value(value: Any) -> str:
    """String form of a placeholder value"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (list, tuple, set)):
        return ", ".join(format_value(v) for v in value)
    return str(value)


def _lookup(source: Dict[str, Any], rule: str, scope: Optional[str]) -> Optional[str]:
    if scope:
        flat = source.get(f"{rule}.{scope}")
        if isinstance(flat, str):
            return flat

    value = source.get(rule)
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and scope:
        scoped = value.get(scope)
        if isinstance(scoped, str):
            return scoped
    return None


class MessageFormatter:
    """
    Resolves and fills message templates.

    Example:
        formatter = MessageFormatter(locale="en")
        formatter.format("min", "Too short", {"min": 3}, scope="string", field="name")
        # "The name field must be at least 3 characters."
    """

    def __init__(
        self,
        locale: str = DEFAULT_LOCALE,
        overrides: Optional[Dict[str, Any]] = None,
        attributes: Optional[Dict[str, str]] = None
    ):
        self.locale = locale
        self.catalog = get_catalog(locale)
        self.overrides = overrides or {}
        self.attributes = attributes or {}

    def resolve_template(
        self,
        rule: str,
        scope: Optional[str] = None,
        field: str = "",
        pattern: str = ""
    ) -> Optional[str]:
        """
        Find the template for a rule, or None when only the fallback applies.
        """
        for key in (field, pattern):
            if not key:
                continue
            template = _lookup(self.overrides, f"{key}.{rule}", scope)
            if template:
                return template
            nested = self.overrides.get("custom", {}).get(key)
            if isinstance(nested, dict):
                template = _lookup(nested, rule, scope)
                if template:
                    return template

        for source in (self.overrides, self.catalog):
            template = _lookup(source, rule, scope)
            if template:
                return template
        return None

    def attribute_name(self, field: str, pattern: str = "") -> str:
        """Display name substituted for :attribute"""
        return self.attributes.get(field) or self.attributes.get(pattern) or field

    def format(
        self,
        rule: str,
        fallback: str,
        replacements: Optional[Dict[str, Any]] = None,
        scope: Optional[str] = None,
        field: str = "",
        pattern: str = ""
    ) -> str:
        """
        Render a message.

        Args:
            rule: Rule name used as the catalog key (e.g. "min", "required_if")
            fallback: Text used when no template is found
            replacements: Placeholder values (without the leading colon)
            scope: Type scope for type-scoped templates (string, numeric, ...)
            field: Concrete field path
            pattern: Schema key the field was resolved from

        Returns:
            Message with placeholders substituted
        """
        template = self.resolve_template(rule, scope, field, pattern) or fallback
        values = {"attribute": self.attribute_name(field, pattern)}
        values.update(replacements or {})
        return self.replace_placeholders(template, values)

    @staticmethod
    def replace_placeholders(template: str, values: Dict[str, Any]) -> str:
        """
        Substitute :name placeholders; unknown placeholders are left intact.

        `:Name` and `:NAME` produce capitalized / upper-cased values.
        """
        def substitute(match: "re.Match[str]") -> str:
            name = match.group(1)
            key = name.lower()
            if name in values:
                return format_value(values[name])
            if key in values:
                text = format_value(values[key])
                if name.isupper() and len(name) > 1:
                    return text.upper()
                if name[0].isupper():
                    return text[:1].upper() + text[1:]
                return text
            return match.group(0)

        return _PLACEHOLDER.sub(substitute, template)
