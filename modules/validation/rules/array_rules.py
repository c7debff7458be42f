"""
Array rules.

Arrays are lists or tuples.

Configuration examples:
    "tags": "array|min:1|max:5|distinct"
    "tags": "array|each:(string|max:20)"
    "scores": 'array|each:["number", "between:0,100"]'
"""

import json
from typing import Any, List

from modules.validation.core.base import RuleHandler, TypeScopedRule, ValidationContext
from modules.validation.core.registry import register_rule
from modules.validation.rules.core import as_text


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


@register_rule("array")
class ArrayRule(RuleHandler):
    def validate(self, value, params, context):
        return is_array(value)

    def message(self, params, context):
        return context.message("array", "The :attribute field must be an array.")

    def describe(self, params):
        return "an array"


@register_rule("min", parent="array")
class ArrayMinRule(TypeScopedRule):
    def bind(self, params):
        self.min = int(params[0])

    def validate(self, value, params, context):
        return is_array(value) and len(value) >= self.min

    def message(self, params, context):
        return self.render(context, "The :attribute field must have at least :min items.", {"min": self.min})

    def describe(self, params):
        return f"at least {self.min} items"


@register_rule("max", parent="array")
class ArrayMaxRule(TypeScopedRule):
    def bind(self, params):
        self.max = int(params[0])

    def validate(self, value, params, context):
        return is_array(value) and len(value) <= self.max

    def message(self, params, context):
        return self.render(context, "The :attribute field must not have more than :max items.", {"max": self.max})

    def describe(self, params):
        return f"at most {self.max} items"


@register_rule("size", parent="array")
class ArraySizeRule(TypeScopedRule):
    def bind(self, params):
        self.size = int(params[0])

    def validate(self, value, params, context):
        return is_array(value) and len(value) == self.size

    def message(self, params, context):
        return self.render(context, "The :attribute field must contain :size items.", {"size": self.size})

    def describe(self, params):
        return f"exactly {self.size} items"


@register_rule("distinct", parent="array")
class DistinctRule(TypeScopedRule):
    def validate(self, value, params, context):
        if not is_array(value):
            return False
        seen: List[Any] = []
        for item in value:
            if item in seen:
                return False
            seen.append(item)
        return True

    def message(self, params, context):
        return self.render(context, "The :attribute field has a duplicate value.")


@register_rule("contains", parent="array")
class ArrayContainsRule(TypeScopedRule):
    """Every parameter must be one of the array's items (compared as text)"""

    def validate(self, value, params, context):
        if not is_array(value):
            return False
        items = {as_text(item) for item in value if not isinstance(item, (dict, list))}
        return all(param in items for param in self.params)

    def message(self, params, context):
        return self.render(context, "The :attribute field must contain :values.", {"values": self.params})


@register_rule("each", parent="array")
class EachRule(TypeScopedRule):
    """
    Every item must pass a rule chain.

    The chain is a pipe string, optionally in parentheses, or a JSON list of
    rule tokens. Each item is validated as `<field>.<index>`.
    """

    def bind(self, params):
        definition = params[0].strip()
        if definition.startswith("(") and definition.endswith(")"):
            definition = definition[1:-1]
        if definition.startswith("["):
            definition = json.loads(definition)
        if not definition:
            raise ValueError("each requires a rule chain")
        self.definition = definition

    def validate(self, value, params, context):
        if not is_array(value):
            return False
        return self._validate_items(value, context)

    async def _validate_items(self, items: List[Any], context: ValidationContext) -> bool:
        failed: List[str] = []
        for index, item in enumerate(items):
            failures = await context.engine.run_rules(
                self.definition,
                context.engine.coerce(item),
                context,
                bail=True,
                field=f"{context.field}.{index}",
            )
            if failures:
                _, message = failures[0]
                failed.append(message)
                if context.config.bail:
                    break

        context.notes["each"] = failed
        return not failed

    def message(self, params, context):
        failed = context.notes.get("each") or []
        return self.render(
            context,
            "Every item of the :attribute field must be valid.",
            {"errors": "; ".join(failed), "error": failed[0] if failed else ""}
        )
