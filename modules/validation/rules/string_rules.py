"""
String rules.

Configuration examples:
    "name": "required|string|min:2|max:50"
    "slug": "string|alpha_dash"
    "code": "string|regex:^[A-Z]{3}-\\d{4}$"
"""

import ipaddress
import json
import re
import uuid
from urllib.parse import urlparse

from modules.validation.core.base import RuleHandler, TypeScopedRule
from modules.validation.core.registry import register_rule

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ALPHA_DASH_PATTERN = re.compile(r"^[\w-]+$", re.UNICODE)
URL_SCHEMES = ("http", "https", "ftp", "ftps")

_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


def _text(value) -> str:
    return value if isinstance(value, str) else str(value)


def compile_pattern(expression: str) -> "re.Pattern[str]":
    """
    Compile a regex parameter. Accepts a bare pattern or `/pattern/flags`.

    Example:
        compile_pattern("/^abc$/i")
    """
    if len(expression) > 1 and expression.startswith("/") and expression.rfind("/") > 0:
        end = expression.rfind("/")
        flags = 0
        for letter in expression[end + 1:]:
            if letter not in _REGEX_FLAGS:
                raise ValueError(f"Unsupported regex flag '{letter}'")
            flags |= _REGEX_FLAGS[letter]
        return re.compile(expression[1:end], flags)
    return re.compile(expression)


@register_rule("string")
class StringRule(RuleHandler):
    def validate(self, value, params, context):
        return isinstance(value, str)

    def message(self, params, context):
        return context.message("string", "The :attribute field must be a string.")

    def describe(self, params):
        return "a string"


@register_rule("min", parent="string")
class StringMinRule(TypeScopedRule):
    def bind(self, params):
        self.min = int(params[0])

    def validate(self, value, params, context):
        return len(_text(value)) >= self.min

    def message(self, params, context):
        return self.render(context, "The :attribute field must be at least :min characters.", {"min": self.min})

    def describe(self, params):
        return f"at least {self.min} characters"


@register_rule("max", parent="string")
class StringMaxRule(TypeScopedRule):
    def bind(self, params):
        self.max = int(params[0])

    def validate(self, value, params, context):
        return len(_text(value)) <= self.max

    def message(self, params, context):
        return self.render(
            context, "The :attribute field must not be greater than :max characters.", {"max": self.max}
        )

    def describe(self, params):
        return f"at most {self.max} characters"


@register_rule("length", parent="string")
class StringLengthRule(TypeScopedRule):
    def bind(self, params):
        self.length = int(params[0])

    def validate(self, value, params, context):
        return len(_text(value)) == self.length

    def message(self, params, context):
        return self.render(
            context, "The :attribute field must be exactly :length characters.", {"length": self.length}
        )

    def describe(self, params):
        return f"exactly {self.length} characters"


@register_rule("between", parent="string")
class StringBetweenRule(TypeScopedRule):
    def bind(self, params):
        self.min, self.max = int(params[0]), int(params[1])

    def validate(self, value, params, context):
        return self.min <= len(_text(value)) <= self.max

    def message(self, params, context):
        return self.render(
            context,
            "The :attribute field must be between :min and :max characters.",
            {"min": self.min, "max": self.max}
        )

    def describe(self, params):
        return f"between {self.min} and {self.max} characters"


@register_rule("email", parent="string")
class EmailRule(TypeScopedRule):
    def validate(self, value, params, context):
        return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None

    def message(self, params, context):
        return self.render(context, "The :attribute field must be a valid email address.")

    def describe(self, params):
        return "a valid email address"


@register_rule("url", parent="string")
class UrlRule(TypeScopedRule):
    def validate(self, value, params, context):
        if not isinstance(value, str):
            return False
        parsed = urlparse(value)
        return parsed.scheme in URL_SCHEMES and bool(parsed.netloc)

    def message(self, params, context):
        return self.render(context, "The :attribute field must be a valid URL.")

    def describe(self, params):
        return "a valid URL"


@register_rule("uuid", parent="string")
class UuidRule(TypeScopedRule):
    def validate(self, value, params, context):
        try:
            uuid.UUID(_text(value))
        except ValueError:
            return False
        return True

    def message(self, params, context):
        return self.render(context, "The :attribute field must be a valid UUID.")

    def describe(self, params):
        return "a valid UUID"


@register_rule("alpha", parent="string")
class AlphaRule(TypeScopedRule):
    def validate(self, value, params, context):
        return isinstance(value, str) and value.isalpha()

    def message(self, params, context):
        return self.render(context, "The :attribute field must only contain letters.")

    def describe(self, params):
        return "only alphabetic characters"


@register_rule("alpha_num", parent="string")
class AlphaNumRule(TypeScopedRule):
    def validate(self, value, params, context):
        return isinstance(value, str) and value.isalnum()

    def message(self, params, context):
        return self.render(context, "The :attribute field must only contain letters and numbers.")

    def describe(self, params):
        return "only alphanumeric characters"


@register_rule("alpha_dash", parent="string")
class AlphaDashRule(TypeScopedRule):
    def validate(self, value, params, context):
        return isinstance(value, str) and ALPHA_DASH_PATTERN.match(value) is not None

    def message(self, params, context):
        return self.render(
            context, "The :attribute field must only contain letters, numbers, dashes, and underscores."
        )


@register_rule("regex", parent="string")
class RegexRule(TypeScopedRule):
    def bind(self, params):
        self.pattern = compile_pattern(params[0])

    def validate(self, value, params, context):
        return self.pattern.search(_text(value)) is not None

    def message(self, params, context):
        return self.render(context, "The :attribute field format is invalid.")

    def describe(self, params):
        return f"matching {self.pattern.pattern}"


@register_rule("not_regex", parent="string")
class NotRegexRule(RegexRule):
    def validate(self, value, params, context):
        return self.pattern.search(_text(value)) is None

    def describe(self, params):
        return f"not matching {self.pattern.pattern}"


@register_rule("starts_with", parent="string")
class StartsWithRule(TypeScopedRule):
    def validate(self, value, params, context):
        return _text(value).startswith(tuple(self.params))

    def message(self, params, context):
        return self.render(
            context, "The :attribute field must start with one of the following: :values.", {"values": self.params}
        )

    def describe(self, params):
        return f"starting with {' or '.join(self.params)}"


@register_rule("ends_with", parent="string")
class EndsWithRule(TypeScopedRule):
    def validate(self, value, params, context):
        return _text(value).endswith(tuple(self.params))

    def message(self, params, context):
        return self.render(
            context, "The :attribute field must end with one of the following: :values.", {"values": self.params}
        )

    def describe(self, params):
        return f"ending with {' or '.join(self.params)}"


@register_rule("contains", parent="string")
class StringContainsRule(TypeScopedRule):
    """Every parameter must appear in the value"""

    def validate(self, value, params, context):
        text = _text(value)
        return all(part in text for part in self.params)

    def message(self, params, context):
        return self.render(context, "The :attribute field must contain :values.", {"values": self.params})


@register_rule("in", parent="string")
class StringInRule(TypeScopedRule):
    def validate(self, value, params, context):
        return _text(value) in self.params

    def message(self, params, context):
        return self.render(context, "The selected :attribute is invalid.", {"values": self.params})

    def describe(self, params):
        return f"one of {', '.join(self.params)}"


@register_rule("not_in", parent="string")
class StringNotInRule(TypeScopedRule):
    def validate(self, value, params, context):
        return _text(value) not in self.params

    def message(self, params, context):
        return self.render(context, "The selected :attribute is invalid.", {"values": self.params})


@register_rule("json", parent="string")
class JsonRule(TypeScopedRule):
    def validate(self, value, params, context):
        if not isinstance(value, str):
            return False
        try:
            json.loads(value)
        except json.JSONDecodeError:
            return False
        return True

    def message(self, params, context):
        return self.render(context, "The :attribute field must be a valid JSON string.")

    def describe(self, params):
        return "a valid JSON string"


@register_rule("ip", parent="string")
class IpRule(TypeScopedRule):
    """ip, ip:v4 or ip:v6"""

    def bind(self, params):
        self.version = {"v4": 4, "v6": 6}.get(params[0]) if params else None
        if params and self.version is None:
            raise ValueError(f"Unsupported IP version '{params[0]}'")

    def validate(self, value, params, context):
        try:
            address = ipaddress.ip_address(_text(value))
        except ValueError:
            return False
        return self.version is None or address.version == self.version

    def message(self, params, context):
        return self.render(context, "The :attribute field must be a valid IP address.")

    def describe(self, params):
        return "a valid IP address"
