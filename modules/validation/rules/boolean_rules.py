"""
Boolean rules.

A boolean is a bool or one of the strings "true" / "false" (any case).
"""

from typing import Any, Optional

from modules.validation.core.base import RuleHandler, TypeScopedRule
from modules.validation.core.registry import register_rule

ACCEPTED_VALUES = {"yes", "on", "1", "true"}


def to_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


@register_rule("boolean")
class BooleanRule(RuleHandler):
    def validate(self, value, params, context):
        return to_bool(value) is not None

    def message(self, params, context):
        return context.message("boolean", "The :attribute field must be true or false.")

    def describe(self, params):
        return "true or false"


@register_rule("accepted", parent="boolean")
class AcceptedRule(TypeScopedRule):
    """yes / on / 1 / true; fails when the field is absent"""

    implicit = True

    def validate(self, value, params, context):
        if value is True or (isinstance(value, int) and not isinstance(value, bool) and value == 1):
            return True
        return isinstance(value, str) and value.strip().lower() in ACCEPTED_VALUES

    def message(self, params, context):
        return self.render(context, "The :attribute field must be accepted.")

    def describe(self, params):
        return "accepted"


@register_rule("true", parent="boolean")
class TrueRule(TypeScopedRule):
    def validate(self, value, params, context):
        return to_bool(value) is True

    def message(self, params, context):
        return self.render(context, "The :attribute field must be true.")

    def describe(self, params):
        return "true"


@register_rule("false", parent="boolean")
class FalseRule(TypeScopedRule):
    def validate(self, value, params, context):
        return to_bool(value) is False

    def message(self, params, context):
        return self.render(context, "The :attribute field must be false.")

    def describe(self, params):
        return "false"
