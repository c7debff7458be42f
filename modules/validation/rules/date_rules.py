"""
Date rules.

Dates may be datetime/date objects or strings python-dateutil can parse.
Comparison operands are ISO dates, the keywords today / tomorrow /
yesterday / now, or the path of another field holding a date.

Configuration examples:
    "starts_at": "required|date|after:today"
    "ends_at": "date|after_or_equal:starts_at"
    "birthday": "date|format:YYYY-MM-DD"
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

from modules.validation.core.base import MISSING, RuleHandler, TypeScopedRule, ValidationContext
from modules.validation.core.registry import register_rule
from modules.validation.rules.core import reference_value

# Token formats ("YYYY-MM-DD") translated to strptime directives
_FORMAT_TOKENS = (
    ("YYYY", "%Y"),
    ("YY", "%y"),
    ("MM", "%m"),
    ("DD", "%d"),
    ("HH", "%H"),
    ("mm", "%M"),
    ("ss", "%S"),
)

# Defaults differing in year, month and day; time parts default to midnight
_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a value into a naive datetime (aware values are converted to UTC).

    Strings must name a year, month and day; "10" or "March" are rejected
    instead of being completed from the current date.

    Returns:
        datetime, or None when the value is not a date
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    elif isinstance(value, str) and value.strip():
        parsed = _parse_complete(value.strip())
        if parsed is None:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_complete(text: str) -> Optional[datetime]:
    # Parsing against two defaults exposes a missing year, month or day
    try:
        first = date_parser.parse(text, default=_DEFAULTS[0])
        second = date_parser.parse(text, default=_DEFAULTS[1])
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return first


def to_strptime_format(fmt: str) -> str:
    """Translate a token format to strptime directives; `%` formats pass through"""
    if "%" in fmt:
        return fmt
    for token, directive in _FORMAT_TOKENS:
        fmt = fmt.replace(token, directive)
    return fmt


def resolve_operand(param: str, context: ValidationContext) -> Optional[datetime]:
    """Date a comparison rule compares against"""
    keyword = param.strip().lower()
    today = datetime.combine(date.today(), time())
    if keyword == "today":
        return today
    if keyword == "tomorrow":
        return today + timedelta(days=1)
    if keyword == "yesterday":
        return today - timedelta(days=1)
    if keyword == "now":
        return datetime.now()

    other = reference_value(context, param)
    if other is not MISSING:
        return parse_date(other)
    return parse_date(param)


@register_rule("date")
class DateRule(RuleHandler):
    def validate(self, value, params, context):
        return parse_date(value) is not None

    def message(self, params, context):
        return context.message("date", "The :attribute field must be a valid date.")

    def describe(self, params):
        return "a valid date"


class _DateComparison(TypeScopedRule):
    fallback = ""

    def bind(self, params):
        self.operand = params[0]

    def compare(self, value: datetime, other: datetime) -> bool:
        raise NotImplementedError

    def validate(self, value, params, context):
        parsed = parse_date(value)
        other = resolve_operand(self.operand, context)
        if parsed is None or other is None:
            return False
        return self.compare(parsed, other)

    def message(self, params, context):
        return self.render(context, self.fallback, {"date": self.operand})


@register_rule("after", parent="date")
class AfterRule(_DateComparison):
    fallback = "The :attribute field must be a date after :date."

    def compare(self, value, other):
        return value > other

    def describe(self, params):
        return f"after {self.operand}"


@register_rule("before", parent="date")
class BeforeRule(_DateComparison):
    fallback = "The :attribute field must be a date before :date."

    def compare(self, value, other):
        return value < other

    def describe(self, params):
        return f"before {self.operand}"


@register_rule("after_or_equal", parent="date")
class AfterOrEqualRule(_DateComparison):
    fallback = "The :attribute field must be a date after or equal to :date."

    def compare(self, value, other):
        return value >= other


@register_rule("before_or_equal", parent="date")
class BeforeOrEqualRule(_DateComparison):
    fallback = "The :attribute field must be a date before or equal to :date."

    def compare(self, value, other):
        return value <= other


@register_rule("date_equals", parent="date")
class DateEqualsRule(_DateComparison):
    fallback = "The :attribute field must be a date equal to :date."

    def compare(self, value, other):
        return value.date() == other.date()


@register_rule("format", parent="date")
class DateFormatRule(TypeScopedRule):
    """format:YYYY-MM-DD or format:%d/%m/%Y"""

    def bind(self, params):
        self.format = params[0]
        self.directives = to_strptime_format(params[0])

    def validate(self, value, params, context):
        if not isinstance(value, str):
            return False
        try:
            datetime.strptime(value, self.directives)
        except ValueError:
            return False
        return True

    def message(self, params, context):
        return self.render(context, "The :attribute field must match the format :format.", {"format": self.format})

    def describe(self, params):
        return f"in {self.format} format"


@register_rule("weekday", parent="date")
class WeekdayRule(TypeScopedRule):
    def validate(self, value, params, context):
        parsed = parse_date(value)
        return parsed is not None and parsed.weekday() < 5

    def message(self, params, context):
        return self.render(context, "The :attribute field must be a weekday.")


@register_rule("weekend", parent="date")
class WeekendRule(TypeScopedRule):
    def validate(self, value, params, context):
        parsed = parse_date(value)
        return parsed is not None and parsed.weekday() >= 5

    def message(self, params, context):
        return self.render(context, "The :attribute field must be a weekend day.")
