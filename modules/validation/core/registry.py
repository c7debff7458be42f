"""
Rule registry system.

Built-in rules self-register through the @register_rule decorator; a
RuleRegistry value is then constructed from those declarations and passed
explicitly to the compiler and engine.

Usage contract: populate a registry (built-ins plus any extend() calls)
before validations start, and do not mutate it while validations are in
flight. Reads are not locked.
"""

import inspect
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, Union

from modules.validation.core.base import (
    DATA_TYPES,
    RuleHandler,
    RuleKind,
    TypeScopedRule,
    ValidationContext,
)
from modules.validation.core.exceptions import UnknownCustomRuleError, UnknownRuleError
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

# Declarations collected by @register_rule at import time
BUILTIN_RULES: Dict[str, RuleHandler] = {}
BUILTIN_ADDITIONAL_RULES: Dict[str, Dict[str, Type[TypeScopedRule]]] = {}


def register_rule(name: str, parent: Optional[str] = None):
    """
    Decorator to declare a built-in rule.

    Usage:
        @register_rule("required")
        class RequiredRule(RuleHandler):
            ...

        @register_rule("min", parent="string")
        class StringMinRule(TypeScopedRule):
            ...

    Args:
        name: Rule name used in schemas
        parent: Base data type for type-scoped additional rules

    Returns:
        Decorator function
    """
    def decorator(cls):
        if parent:
            cls.name = f"{parent}.{name}"
            cls.parent_type = parent
            table = BUILTIN_ADDITIONAL_RULES.setdefault(parent, {})
            if name in table:
                logger.warning(f"Rule '{parent}.{name}' is already declared. Overwriting with {cls.__name__}")
            table[name] = cls
        else:
            cls.name = name
            if name in BUILTIN_RULES:
                logger.warning(f"Rule '{name}' is already declared. Overwriting with {cls.__name__}")
            BUILTIN_RULES[name] = cls()
        logger.debug(f"Declared rule: {cls.name} -> {cls.__name__}")
        return cls

    return decorator


class CustomRule(RuleHandler):
    """
    Wraps a simple predicate registered through extend().

    The predicate may return True (pass), False (fail) or a string (fail with
    that string as the message). It may also be a coroutine function.
    """

    def __init__(
        self,
        name: str,
        predicate: Callable[..., Any],
        message: Optional[str] = None
    ):
        self.name = name
        self.predicate = predicate
        self.default_message = message
        self._takes_context = _accepts_context(predicate)

    def validate(self, value, params, context):
        if self._takes_context:
            result = self.predicate(value, params, context)
        else:
            result = self.predicate(value)

        if inspect.isawaitable(result):
            return self._settle_async(result, context)
        return self._settle(result, context)

    async def _settle_async(self, pending, context: ValidationContext) -> bool:
        return self._settle(await pending, context)

    def _settle(self, result: Any, context: ValidationContext) -> bool:
        if isinstance(result, str):
            context.notes[self.name] = result
            return False
        return result is True

    def message(self, params, context):
        override = context.notes.get(self.name)
        if override:
            return context.message(self.name, override, {"params": ", ".join(params)})
        fallback = self.default_message or f"Validation failed for rule: {self.name}"
        return context.message(self.name, fallback, {"params": ", ".join(params)})

    def describe(self, params):
        return self.name


def _accepts_context(predicate: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(predicate)
    except (TypeError, ValueError):
        return False
    positional = [
        p for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    has_varargs = any(p.kind == p.VAR_POSITIONAL for p in signature.parameters.values())
    return has_varargs or len(positional) >= 3


class _CustomInvocation(RuleHandler):
    """Adapter for `custom:<name>,extra...`: the handler only sees the extras"""

    def __init__(self, handler: RuleHandler):
        self.handler = handler
        self.name = handler.name
        self.implicit = handler.implicit

    def validate(self, value, params, context):
        return self.handler.validate(value, params[1:], context)

    def message(self, params, context):
        return self.handler.message(params[1:], context)

    def describe(self, params):
        return self.handler.describe(params[1:])


@dataclass
class RuleBinding:
    """
    Where a rule name resolved to, before parameters are bound.

    kind BASE: `target` is a ready handler instance.
    kind ADDITIONAL: `target` is a factory taking the rule parameters.
    kind CUSTOM: `target` is the custom handler; `via_keyword` is True when
    invoked as `custom:<name>` (first parameter is the rule name).
    """
    kind: RuleKind
    name: str
    target: Any
    parent_type: Optional[str] = None
    via_keyword: bool = False

    def bind(self, params: Sequence[str]) -> RuleHandler:
        if self.kind == RuleKind.ADDITIONAL:
            return self.target(list(params))
        if self.kind == RuleKind.CUSTOM and self.via_keyword:
            return _CustomInvocation(self.target)
        return self.target


class RuleRegistry:
    """
    Mapping from rule name to handler.

    Holds three tables: base rules, type-scoped additional rules keyed by
    base type, and custom rules added with extend().
    """

    def __init__(self):
        self._rules: Dict[str, RuleHandler] = {}
        self._additional: Dict[str, Dict[str, Callable[[Sequence[str]], RuleHandler]]] = {}
        self._custom: Dict[str, RuleHandler] = {}

    @classmethod
    def with_builtins(cls) -> "RuleRegistry":
        """Create a registry populated with every built-in rule"""
        # Import rule modules to trigger registration
        from modules.validation import rules  # noqa: F401

        registry = cls()
        for name, handler in BUILTIN_RULES.items():
            registry._rules[name] = handler
        for parent, table in BUILTIN_ADDITIONAL_RULES.items():
            registry._additional[parent] = dict(table)

        logger.debug(
            f"RuleRegistry created with {len(registry._rules)} base rules and "
            f"{sum(len(t) for t in registry._additional.values())} additional rules"
        )
        return registry

    def register(self, name: str, handler: RuleHandler) -> None:
        """
        Insert or overwrite a base rule handler.

        Any `additional_rules` the handler exposes are registered under `name`.
        """
        if name in self._rules:
            logger.warning(f"Rule '{name}' is already registered. Overwriting with {type(handler).__name__}")
        if not handler.name:
            handler.name = name
        self._rules[name] = handler

        for sub_name, factory in (handler.additional_rules or {}).items():
            self.register_additional(name, sub_name, factory)

        logger.debug(f"Registered rule: {name}")

    def register_additional(
        self,
        parent_type: str,
        name: str,
        factory: Callable[[Sequence[str]], RuleHandler]
    ) -> None:
        """Register a type-scoped rule factory (e.g. parent 'string', name 'min')"""
        table = self._additional.setdefault(parent_type, {})
        if name in table:
            logger.warning(f"Rule '{parent_type}.{name}' is already registered, overwriting")
        table[name] = factory
        logger.debug(f"Registered additional rule: {parent_type}.{name}")

    def extend(
        self,
        name: str,
        rule: Union[RuleHandler, Callable[..., Any]],
        message: Optional[str] = None
    ) -> RuleHandler:
        """
        Register a custom rule.

        Args:
            name: Name usable as `name` or `custom:name` in schemas
            rule: A RuleHandler, or a predicate returning bool / message string
            message: Default failure message for predicate rules

        Returns:
            The registered handler
        """
        if isinstance(rule, RuleHandler):
            handler = rule
            if not handler.name:
                handler.name = name
        else:
            handler = CustomRule(name, rule, message)

        if name in self._custom:
            logger.warning(f"Custom rule '{name}' is already registered, overwriting")
        self._custom[name] = handler
        logger.debug(f"Registered custom rule: {name}")
        return handler

    def lookup(self, name: str, base_type: Optional[str] = None, params: Sequence[str] = ()) -> RuleBinding:
        """
        Resolve a rule name without binding parameters.

        Precedence:
        1. `custom` keyword dispatches on the first parameter
        2. exact base rule
        3. explicit `type.rule` names, then additional rules of `base_type`
        4. a custom rule registered under `name`
        5. any additional-rule table defining `name`

        Raises:
            UnknownCustomRuleError: `custom:<name>` not registered
            UnknownRuleError: nothing matched
        """
        if name == "custom":
            custom_name = params[0] if params else ""
            handler = self._custom.get(custom_name)
            if handler is None:
                raise UnknownCustomRuleError(custom_name)
            return RuleBinding(RuleKind.CUSTOM, custom_name, handler, via_keyword=True)

        if name in self._rules:
            return RuleBinding(RuleKind.BASE, name, self._rules[name])

        if "." in name:
            parent, _, sub_name = name.partition(".")
            factory = self._additional.get(parent, {}).get(sub_name)
            if factory is not None:
                return RuleBinding(RuleKind.ADDITIONAL, sub_name, factory, parent_type=parent)

        if base_type:
            factory = self._additional.get(base_type, {}).get(name)
            if factory is not None:
                return RuleBinding(RuleKind.ADDITIONAL, name, factory, parent_type=base_type)

        if name in self._custom:
            return RuleBinding(RuleKind.CUSTOM, name, self._custom[name])

        for parent, table in self._additional.items():
            if name in table:
                return RuleBinding(RuleKind.ADDITIONAL, name, table[name], parent_type=parent)

        raise UnknownRuleError(name, base_type)

    def get_handler(self, name: str, base_type: Optional[str] = None, params: Sequence[str] = ()) -> RuleHandler:
        """Resolve a rule name and bind its parameters"""
        return self.lookup(name, base_type, params).bind(params)

    def is_custom(self, name: str) -> bool:
        return name in self._custom

    def is_base_type(self, name: str) -> bool:
        """True for the reserved base-type tokens"""
        return name in DATA_TYPES

    def list_rules(self) -> Dict[str, List[str]]:
        """
        List all registered rule names.

        Returns:
            Dictionary with base, additional (as `type.rule`) and custom names
        """
        return {
            "base": list(self._rules.keys()),
            "additional": [
                f"{parent}.{name}"
                for parent, table in self._additional.items()
                for name in table
            ],
            "custom": list(self._custom.keys()),
        }

    def snapshot(self) -> "RuleRegistry":
        """Independent copy; mutating either registry never affects the other"""
        copy = RuleRegistry()
        copy._rules = dict(self._rules)
        copy._additional = {parent: dict(table) for parent, table in self._additional.items()}
        copy._custom = dict(self._custom)
        return copy


@lru_cache()
def get_default_registry() -> RuleRegistry:
    """Process-wide registry used when callers do not pass one"""
    return RuleRegistry.with_builtins()
