"""
Object rules.

Objects are mappings (dicts).

Configuration examples:
    "profile": 'object|shape:{"name": "required|string", "age": "number"}'
    "profile": "object|strict"   # keys limited to the schema's profile.* entries
    "meta": "object|has:id,type"
"""

import json
from collections.abc import Mapping
from typing import Any, Dict, List

from modules.validation.core.base import RuleHandler, TypeScopedRule, ValidationContext
from modules.validation.core.exceptions import SchemaShapeError
from modules.validation.core.registry import register_rule
from modules.validation.core.resolver import PathResolver

SHAPE_RULES = ("shape", "object.shape")

_resolver = PathResolver()


def is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def parse_shape(text: str) -> Dict[str, Any]:
    shape = json.loads(text)
    if not isinstance(shape, dict):
        raise ValueError("shape expects a JSON object mapping keys to rules")
    return shape


@register_rule("object")
class ObjectRule(RuleHandler):
    def validate(self, value, params, context):
        return is_object(value)

    def message(self, params, context):
        return context.message("object", "The :attribute field must be an object.")

    def describe(self, params):
        return "an object"


@register_rule("shape", parent="object")
class ShapeRule(TypeScopedRule):
    """
    Validates the object against a nested schema with a sub-engine.

    Passes iff the nested validation is valid. The nested run's coerced
    copy replaces the field's value in the result data. Exceptions raised
    by the nested run surface as SchemaShapeError.
    """

    def bind(self, params):
        self.shape = parse_shape(params[0])

    def validate(self, value, params, context):
        if not is_object(value):
            return False
        return self._validate_shape(value, context)

    async def _validate_shape(self, value: Mapping, context: ValidationContext) -> bool:
        try:
            result = await context.engine.spawn(self.shape).run(value)
        except Exception as e:
            raise SchemaShapeError(context.field, str(e)) from e

        context.notes["shape"] = [failure.message for failure in result.failures]
        context.notes["coerced"] = result.data
        return result.is_valid

    def message(self, params, context):
        nested = context.notes.get("shape") or []
        return self.render(
            context,
            "The :attribute field has an invalid structure.",
            {"errors": "; ".join(nested)}
        )


def allowed_keys(params: List[str], context: ValidationContext) -> List[str]:
    """
    Keys an object may contain, in order of precedence: explicit parameters,
    a shape rule in the same chain, schema entries nested under the field,
    then the schema's top-level keys.
    """
    if params:
        return list(params)

    for rule in context.chain:
        if rule.name in SHAPE_RULES and rule.parameters:
            return list(parse_shape(rule.parameters[0]).keys())

    schema_keys = list(context.schema or {})
    children = _resolver.child_keys(schema_keys, context.field, context.schema_key)
    if children:
        return children

    return [key for key in schema_keys if "." not in key and "[" not in key]


@register_rule("strict", parent="object")
class StrictRule(TypeScopedRule):
    """strict or strict:key1,key2 - fails on keys the schema does not declare"""

    def validate(self, value, params, context):
        if not is_object(value):
            return False
        allowed = allowed_keys(self.params, context)
        unexpected = [str(key) for key in value if str(key) not in allowed]
        context.notes["strict"] = unexpected
        return not unexpected

    def message(self, params, context):
        return self.render(
            context,
            "The :attribute field contains unexpected fields: :fields.",
            {"fields": context.notes.get("strict") or []}
        )


@register_rule("has", parent="object")
class HasRule(TypeScopedRule):
    def validate(self, value, params, context):
        return is_object(value) and all(key in value for key in self.params)

    def message(self, params, context):
        return self.render(context, "The :attribute field must contain the keys: :keys.", {"keys": self.params})

    def describe(self, params):
        return f"an object with {', '.join(self.params)}"


@register_rule("not_empty", parent="object")
class NotEmptyRule(TypeScopedRule):
    def validate(self, value, params, context):
        return is_object(value) and len(value) > 0

    def message(self, params, context):
        return self.render(context, "The :attribute field must not be empty.")
