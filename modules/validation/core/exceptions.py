"""
Custom exceptions for the validation engine.

These are configuration/programmer errors. A rule that simply fails is
never an exception: it is recorded as a message in the ValidationResult.
"""

from typing import List, Optional


class ValidationEngineError(Exception):
    """Base exception for the validation engine."""
    pass


class UnknownRuleError(ValidationEngineError):
    """Raised when a schema references a rule that is not registered."""

    def __init__(self, name: str, base_type: Optional[str] = None):
        self.name = name
        self.base_type = base_type
        scope = f" for data type '{base_type}'" if base_type else ""
        super().__init__(f"Invalid validation rule [{name}]{scope}")


class UnknownCustomRuleError(ValidationEngineError):
    """Raised when `custom:<name>` references an unregistered custom rule."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Custom rule '{name}' is not registered")


class ConflictingDataTypeError(ValidationEngineError):
    """Raised at compile time when a field declares more than one base type."""

    def __init__(self, field: str, types: List[str]):
        self.field = field
        self.types = list(types)
        super().__init__(
            f"Field \"{field}\" cannot have more than one data type rule "
            f"(found: {', '.join(types)})"
        )


class RuleSyntaxError(ValidationEngineError):
    """Raised when a rule definition cannot be parsed."""
    pass


class SchemaShapeError(ValidationEngineError):
    """Raised when a nested `object.shape` sub-validation itself fails to run."""

    def __init__(self, field: str, reason: str = ""):
        self.field = field
        message = f"Nested schema validation failed for field '{field}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class RuleExecutionError(ValidationEngineError):
    """Raised when a rule's own validate/message code throws."""

    def __init__(self, rule: str, field: str, reason: str = ""):
        self.rule = rule
        self.field = field
        message = f"Rule '{rule}' raised while validating '{field}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
