"""
Core rules: presence, conditional presence, field comparison and union.

These rules are not tied to a base data type.
"""

import json
from typing import Any, List, Sequence, Tuple

from modules.validation.core.base import MISSING, RuleHandler, ValidationContext
from modules.validation.core.exceptions import RuleSyntaxError
from modules.validation.core.registry import register_rule
from modules.validation.core.resolver import PathResolver

_resolver = PathResolver()


def reference_value(context: ValidationContext, reference: str) -> Any:
    """
    Value of another field, addressed by a dotted path from the data root.

    A `*` in the reference is bound to the indices of the current field
    instance, so `items.*.type` read from `items.2.price` means `items.2.type`.
    """
    path = _resolver.bind_wildcards(reference, context.schema_key, context.field)
    value = _resolver.get(context.data, path)
    if context.engine is not None:
        value = context.engine.coerce(value)
    return value


def as_text(value: Any) -> str:
    """String form used when comparing a field against literal parameters"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None or value is MISSING:
        return "null"
    return str(value)


def has_value(value: Any) -> bool:
    """Presence test used by the required family"""
    if value is MISSING or value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) > 0
    return True


@register_rule("required")
class RequiredRule(RuleHandler):
    implicit = True

    def validate(self, value, params, context):
        return has_value(value)

    def message(self, params, context):
        return context.message("required", "The :attribute field is required.")

    def describe(self, params):
        return "required"


@register_rule("nullable")
class NullableRule(RuleHandler):
    """Marker: the field may be null. Empty values already skip non-implicit rules."""

    def validate(self, value, params, context):
        return True

    def message(self, params, context):
        return ""


class _ConditionalRequired(RuleHandler):
    """Base for rules that make a field required depending on other fields"""

    implicit = True

    def applies(self, params: List[str], context: ValidationContext) -> bool:
        raise NotImplementedError

    def validate(self, value, params, context):
        if not params:
            raise RuleSyntaxError(f"Rule '{self.name}' requires at least one field parameter")
        if not self.applies(params, context):
            return True
        return has_value(value)

    def message(self, params, context):
        return context.message(
            self.name,
            "The :attribute field is required.",
            {"values": ", ".join(params), "other": params[0] if params else ""}
        )


@register_rule("required_if")
class RequiredIfRule(_ConditionalRequired):
    """required_if:other,value1,value2,... - required when `other` equals any value"""

    def applies(self, params, context):
        other = as_text(reference_value(context, params[0]))
        return other in params[1:]

    def message(self, params, context):
        return context.message(
            "required_if",
            "The :attribute field is required when :other is :value.",
            {"other": params[0], "value": ", ".join(params[1:])}
        )


@register_rule("required_unless")
class RequiredUnlessRule(_ConditionalRequired):
    """required_unless:other,value1,... - required unless `other` equals any value"""

    def applies(self, params, context):
        other = as_text(reference_value(context, params[0]))
        return other not in params[1:]

    def message(self, params, context):
        return context.message(
            "required_unless",
            "The :attribute field is required unless :other is :value.",
            {"other": params[0], "value": ", ".join(params[1:])}
        )


@register_rule("required_with")
class RequiredWithRule(_ConditionalRequired):
    def applies(self, params, context):
        return any(has_value(reference_value(context, name)) for name in params)


@register_rule("required_with_all")
class RequiredWithAllRule(_ConditionalRequired):
    def applies(self, params, context):
        return all(has_value(reference_value(context, name)) for name in params)


@register_rule("required_without")
class RequiredWithoutRule(_ConditionalRequired):
    def applies(self, params, context):
        return any(not has_value(reference_value(context, name)) for name in params)


@register_rule("same")
class SameRule(RuleHandler):
    def validate(self, value, params, context):
        return value == reference_value(context, params[0])

    def message(self, params, context):
        return context.message("same", "The :attribute field must match :other.", {"other": params[0]})


@register_rule("different")
class DifferentRule(RuleHandler):
    def validate(self, value, params, context):
        return value != reference_value(context, params[0])

    def message(self, params, context):
        return context.message(
            "different",
            "The :attribute field and :other must be different.",
            {"other": params[0]}
        )


@register_rule("confirmed")
class ConfirmedRule(RuleHandler):
    """Value must equal `<field>_confirmation` (or the field named in params)"""

    def validate(self, value, params, context):
        reference = params[0] if params else f"{context.field}_confirmation"
        return value == reference_value(context, reference)

    def message(self, params, context):
        return context.message("confirmed", "The :attribute field confirmation does not match.")


def parse_union_parameters(params: Sequence[str]) -> Tuple[List[Any], bool]:
    """
    Read union parameters: a JSON list of rule sets and an optional
    stop-on-first-pass flag (default true).

    Raises:
        RuleSyntaxError: Rule sets are not a JSON list
    """
    if not params:
        return [], True
    try:
        rule_sets = json.loads(params[0])
    except json.JSONDecodeError as e:
        raise RuleSyntaxError(f"Union rule sets must be a JSON list: {e}") from e
    if not isinstance(rule_sets, list):
        raise RuleSyntaxError("Union rule sets must be a JSON list")

    stop_on_first_pass = True
    if len(params) > 1:
        stop_on_first_pass = params[1].strip().lower() not in ("false", "0")
    return rule_sets, stop_on_first_pass


@register_rule("union")
class UnionRule(RuleHandler):
    """
    Passes when the value satisfies at least one rule set.

    Each set runs as an independent sub-run. Runs after the other rules of
    the chain so type checks on the same field report first.
    """

    implicit = True
    priority = 1

    def validate(self, value, params, context):
        return self._validate(value, params, context)

    async def _validate(self, value: Any, params: List[str], context: ValidationContext) -> bool:
        rule_sets, stop_on_first_pass = parse_union_parameters(params)
        formats: List[str] = []
        context.notes["union"] = formats

        passed = False
        for rule_set in rule_sets:
            if not rule_set:
                continue

            failures = await context.engine.run_rules(rule_set, value, context, bail=True)
            if not failures:
                passed = True
                if stop_on_first_pass:
                    break
                continue

            compiled, _ = failures[0]
            formats.append(compiled.handler.describe(compiled.parameters))

        return passed

    def message(self, params, context):
        formats = context.notes.get("union") or []
        return context.message(
            "union",
            "The :attribute field must match one of these formats: :formats",
            {"formats": " OR ".join(formats) or "none"}
        )

    def describe(self, params):
        return "one of several formats"
