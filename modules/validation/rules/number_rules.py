"""
Number rules.

Numbers may be int, float, Decimal or numeric strings ("42", "3.5").
Booleans are never numbers.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from modules.validation.core.base import RuleHandler, TypeScopedRule
from modules.validation.core.registry import register_rule

Number = Union[int, float, Decimal]


def to_number(value: Any) -> Optional[Number]:
    """
    Numeric value of `value`, or None when it is not a number.

    Example:
        to_number("18") -> 18
        to_number(True) -> None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, Decimal)):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return None if math.isnan(number) or math.isinf(number) else number
    return None


def parse_number(param: str) -> Number:
    """Parse a numeric rule parameter"""
    number = to_number(param)
    if number is None:
        raise ValueError(f"'{param}' is not a number")
    return number


def _decimal(number: Number) -> Decimal:
    return number if isinstance(number, Decimal) else Decimal(str(number))


@register_rule("number")
class NumberRule(RuleHandler):
    def validate(self, value, params, context):
        return to_number(value) is not None

    def message(self, params, context):
        return context.message("number", "The :attribute field must be a number.")

    def describe(self, params):
        return "a number"


@register_rule("min", parent="number")
class NumberMinRule(TypeScopedRule):
    def bind(self, params):
        self.min = parse_number(params[0])

    def validate(self, value, params, context):
        number = to_number(value)
        return number is not None and number >= self.min

    def message(self, params, context):
        return self.render(context, "The :attribute field must be at least :min.", {"min": self.min})

    def describe(self, params):
        return f"at least {self.min}"


@register_rule("max", parent="number")
class NumberMaxRule(TypeScopedRule):
    def bind(self, params):
        self.max = parse_number(params[0])

    def validate(self, value, params, context):
        number = to_number(value)
        return number is not None and number <= self.max

    def message(self, params, context):
        return self.render(context, "The :attribute field must not be greater than :max.", {"max": self.max})

    def describe(self, params):
        return f"at most {self.max}"


@register_rule("between", parent="number")
class NumberBetweenRule(TypeScopedRule):
    def bind(self, params):
        self.min, self.max = parse_number(params[0]), parse_number(params[1])

    def validate(self, value, params, context):
        number = to_number(value)
        return number is not None and self.min <= number <= self.max

    def message(self, params, context):
        return self.render(
            context, "The :attribute field must be between :min and :max.", {"min": self.min, "max": self.max}
        )

    def describe(self, params):
        return f"between {self.min} and {self.max}"


@register_rule("integer", parent="number")
class IntegerRule(TypeScopedRule):
    def validate(self, value, params, context):
        number = to_number(value)
        if number is None:
            return False
        if isinstance(number, float):
            return number.is_integer()
        return _decimal(number) == _decimal(number).to_integral_value()

    def message(self, params, context):
        return self.render(context, "The :attribute field must be an integer.")

    def describe(self, params):
        return "a whole number"


@register_rule("positive", parent="number")
class PositiveRule(TypeScopedRule):
    def validate(self, value, params, context):
        number = to_number(value)
        return number is not None and number > 0

    def message(self, params, context):
        return self.render(context, "The :attribute field must be greater than 0.")

    def describe(self, params):
        return "a positive number"


@register_rule("negative", parent="number")
class NegativeRule(TypeScopedRule):
    def validate(self, value, params, context):
        number = to_number(value)
        return number is not None and number < 0

    def message(self, params, context):
        return self.render(context, "The :attribute field must be less than 0.")

    def describe(self, params):
        return "a negative number"


def _digit_count(value: Any) -> Optional[int]:
    text = str(value).strip() if not isinstance(value, bool) else ""
    return len(text) if text.isdigit() else None


@register_rule("digits", parent="number")
class DigitsRule(TypeScopedRule):
    """Value is an unsigned integer with exactly N digits"""

    def bind(self, params):
        self.digits = int(params[0])

    def validate(self, value, params, context):
        return _digit_count(value) == self.digits

    def message(self, params, context):
        return self.render(context, "The :attribute field must be :digits digits.", {"digits": self.digits})


@register_rule("digits_between", parent="number")
class DigitsBetweenRule(TypeScopedRule):
    def bind(self, params):
        self.min, self.max = int(params[0]), int(params[1])

    def validate(self, value, params, context):
        count = _digit_count(value)
        return count is not None and self.min <= count <= self.max

    def message(self, params, context):
        return self.render(
            context,
            "The :attribute field must be between :min and :max digits.",
            {"min": self.min, "max": self.max}
        )


@register_rule("multiple_of", parent="number")
class MultipleOfRule(TypeScopedRule):
    def bind(self, params):
        self.step = _decimal(parse_number(params[0]))
        if self.step == 0:
            raise ValueError("multiple_of requires a non-zero parameter")

    def validate(self, value, params, context):
        number = to_number(value)
        if number is None:
            return False
        try:
            return _decimal(number) % self.step == 0
        except InvalidOperation:
            return False

    def message(self, params, context):
        return self.render(context, "The :attribute field must be a multiple of :value.", {"value": self.params[0]})

    def describe(self, params):
        return f"a multiple of {self.params[0]}"


@register_rule("in", parent="number")
class NumberInRule(TypeScopedRule):
    def bind(self, params):
        self.options = [parse_number(param) for param in params]

    def validate(self, value, params, context):
        number = to_number(value)
        return number is not None and number in self.options

    def message(self, params, context):
        return self.render(context, "The selected :attribute is invalid.", {"values": self.params})

    def describe(self, params):
        return f"one of {', '.join(self.params)}"


@register_rule("not_in", parent="number")
class NumberNotInRule(NumberInRule):
    def validate(self, value, params, context):
        number = to_number(value)
        return number is not None and number not in self.options

    def describe(self, params):
        return f"not one of {', '.join(self.params)}"
