"""
Base classes and data models for the validation engine.

This module provides the foundation for all rules:
- Rule / CompiledRule: parsed and resolved rule invocations
- RuleHandler: Abstract base class for every rule implementation
- ValidationContext: ambient state handed to each rule invocation
- RuleOutcome: immediate or deferred (awaitable) rule result
- FieldError / ValidationResult: the report returned to callers
"""

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from modules.validation.core.config import ValidationConfig


# Base-type rules; a field chain may contain at most one of these
DATA_TYPES = ("string", "number", "boolean", "array", "date", "object", "file")

# Message catalog scope used for type-scoped templates such as min.string / min.numeric
TYPE_MESSAGE_SCOPES = {
    "string": "string",
    "number": "numeric",
    "array": "array",
    "file": "file",
    "date": "date",
    "boolean": "boolean",
    "object": "object",
}


class _Missing:
    """Sentinel for a path that does not exist in the data."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING = _Missing()


def is_empty(value: Any) -> bool:
    """Absent, None and "" count as empty; only implicit rules run on them."""
    return value is MISSING or value is None or (isinstance(value, str) and value == "")


class RuleKind(str, Enum):
    """How a rule name was resolved against the registry"""
    BASE = "base"
    ADDITIONAL = "additional"
    CUSTOM = "custom"


@dataclass
class Rule:
    """
    A single parsed rule invocation.

    `parameters` are always strings, exactly as written in the definition.
    """
    name: str
    parameters: List[str] = dataclass_field(default_factory=list)
    is_custom: bool = False

    @property
    def token(self) -> str:
        """Render back to `name:p1,p2` form"""
        if not self.parameters:
            return self.name
        return f"{self.name}:{','.join(self.parameters)}"


class RuleOutcome:
    """
    Result of invoking a rule's validate(): either known now or awaitable.

    Built once at the handler boundary so the engine can await every
    outcome uniformly without inspecting what the rule returned.
    """

    __slots__ = ("_passed", "_pending")

    def __init__(self, passed: bool = False, pending: Optional[Awaitable[Any]] = None):
        self._passed = passed
        self._pending = pending

    @classmethod
    def immediate(cls, passed: bool) -> "RuleOutcome":
        return cls(passed=bool(passed))

    @classmethod
    def deferred(cls, pending: Awaitable[Any]) -> "RuleOutcome":
        return cls(pending=pending)

    @property
    def is_deferred(self) -> bool:
        return self._pending is not None

    async def resolve(self) -> bool:
        if not self.is_deferred:
            return self._passed
        return bool(await self._pending)


@dataclass
class ValidationContext:
    """
    Ambient state visible to every rule invocation.

    Created per field instance and discarded after the call returns.
    """
    data: Any
    field: str
    value: Any
    config: "ValidationConfig"
    format_message: Callable[..., str]
    schema: Optional[Dict[str, Any]] = None
    schema_key: str = ""
    base_type: Optional[str] = None
    chain: List[Rule] = dataclass_field(default_factory=list)
    engine: Any = None  # ValidationEngine running this field, used for sub-runs
    notes: Dict[str, Any] = dataclass_field(default_factory=dict)

    def message(
        self,
        rule: str,
        fallback: str,
        replacements: Optional[Dict[str, Any]] = None,
        scope: Optional[str] = None
    ) -> str:
        """Shortcut for format_message(rule, fallback, replacements, scope)"""
        return self.format_message(rule, fallback, replacements or {}, scope)


class RuleHandler(ABC):
    """
    Abstract base class for all rules.

    Subclasses implement validate() returning a bool or an awaitable bool,
    and message() rendering the failure text.

    Example:
        @register_rule("uppercase")
        class UppercaseRule(RuleHandler):
            def validate(self, value, params, context):
                return isinstance(value, str) and value.isupper()

            def message(self, params, context):
                return context.message("uppercase", "The :attribute must be uppercase")
    """

    name: str = ""

    # Implicit rules also run when the value is empty (absent, None or "")
    implicit: bool = False

    # Ordering weight inside a chain; higher runs later
    priority: int = 0

    # Type-scoped sub-rules: name -> factory(params) -> RuleHandler
    additional_rules: Optional[Dict[str, Callable[[Sequence[str]], "RuleHandler"]]] = None

    @abstractmethod
    def validate(
        self,
        value: Any,
        params: List[str],
        context: ValidationContext
    ) -> Union[bool, Awaitable[bool]]:
        pass

    @abstractmethod
    def message(self, params: List[str], context: ValidationContext) -> str:
        pass

    def check(self, value: Any, params: List[str], context: ValidationContext) -> RuleOutcome:
        """Invoke validate() and wrap whatever it returned"""
        result = self.validate(value, params, context)
        if inspect.isawaitable(result):
            return RuleOutcome.deferred(result)
        return RuleOutcome.immediate(result)

    def describe(self, params: List[str]) -> str:
        """Short human description, used when listing union formats"""
        label = (self.name or self.__class__.__name__).replace(".", " ")
        if params:
            return f"{label} {', '.join(params)}"
        return label


class TypeScopedRule(RuleHandler):
    """
    Base class for additional rules that refine a base type (e.g. string.min).

    The class itself is the factory: parameters are bound explicitly in
    bind() when the compiler instantiates it for one invocation.
    """

    parent_type: str = ""

    def __init__(self, params: Sequence[str] = ()):
        self.params = list(params)
        self.bind(self.params)

    def bind(self, params: List[str]) -> None:
        """Convert raw string parameters into typed attributes"""
        pass

    @property
    def scope(self) -> Optional[str]:
        return TYPE_MESSAGE_SCOPES.get(self.parent_type)

    @property
    def key(self) -> str:
        """Catalog key without the type prefix ("string.min" -> "min")"""
        return self.name.split(".", 1)[-1]

    def render(
        self,
        context: ValidationContext,
        fallback: str,
        replacements: Optional[Dict[str, Any]] = None
    ) -> str:
        """Format this rule's message using its type scope"""
        return context.message(self.key, fallback, replacements, scope=self.scope)


@dataclass
class CompiledRule:
    """A Rule bound to its resolved handler and ordering priority"""
    rule: Rule
    handler: RuleHandler
    kind: RuleKind
    priority: int = 0
    parent_type: Optional[str] = None

    @property
    def name(self) -> str:
        return self.rule.name

    @property
    def parameters(self) -> List[str]:
        return self.rule.parameters

    @property
    def message_key(self) -> str:
        """Rule name as reported in grouped/nested error shapes"""
        if self.rule.name == "custom" and self.rule.parameters:
            return self.rule.parameters[0]
        return self.rule.name


@dataclass
class RuleResult:
    """Outcome of one rule invocation"""
    passed: bool
    message: Optional[str] = None


@dataclass
class FieldError:
    """One failed rule on one concrete field path"""
    field: str
    rule: str
    message: str
    value: Any = None
    parameters: List[str] = dataclass_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "rule": self.rule,
            "message": self.message,
            "parameters": list(self.parameters),
        }


@dataclass
class ValidationResult:
    """
    Complete result of one validation call.

    `errors` holds the report in the configured response shape; `failures`
    keeps the ordered intermediate representation every shape is built from.
    """
    is_valid: bool
    data: Any
    errors: Any
    failures: List[FieldError] = dataclass_field(default_factory=list)
    response_type: str = "laravel"

    def __bool__(self) -> bool:
        return self.is_valid

    def format(self, response_type: Optional[str] = None) -> Any:
        """Re-project the failures into another response shape"""
        from modules.validation.response.formatters import format_errors
        return format_errors(self.failures, response_type or self.response_type)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "is_valid": self.is_valid,
            "data": self.data,
            "errors": self.errors,
        }
