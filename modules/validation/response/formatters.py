"""
Error response formatters.

Every shape is a projection of the same ordered FieldError list:
- laravel: {field: [message, ...]}
- flat:    [{"field", "rule", "message"}, ...]
- grouped: {field: {rule: message}}
- nested:  messages placed under the dotted path, e.g. {"user": {"email": [...]}}
"""

from typing import Any, Callable, Dict, List, Sequence

from modules.validation.core.base import FieldError
from modules.validation.core.resolver import split_path
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

# Key holding a node's own messages when the same path also has children
NESTED_ERRORS_KEY = "_errors"

FORMATTER_REGISTRY: Dict[str, Callable[[Sequence[FieldError]], Any]] = {}


def register_formatter(name: str):
    """
    Decorator to register an error formatter.

    Usage:
        @register_formatter("laravel")
        def format_laravel(failures):
            ...
    """
    def decorator(func):
        if name in FORMATTER_REGISTRY:
            logger.warning(f"Formatter '{name}' is already registered. Overwriting.")
        FORMATTER_REGISTRY[name] = func
        return func

    return decorator


@register_formatter("laravel")
def format_laravel(failures: Sequence[FieldError]) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for failure in failures:
        errors.setdefault(failure.field, []).append(failure.message)
    return errors


@register_formatter("flat")
def format_flat(failures: Sequence[FieldError]) -> List[Dict[str, str]]:
    return [
        {"field": failure.field, "rule": failure.rule, "message": failure.message}
        for failure in failures
    ]


@register_formatter("grouped")
def format_grouped(failures: Sequence[FieldError]) -> Dict[str, Dict[str, str]]:
    # A rule failing again on the same field is keyed "<rule>#<n>" (n from 2)
    errors: Dict[str, Dict[str, str]] = {}
    for failure in failures:
        group = errors.setdefault(failure.field, {})
        key = failure.rule
        repeat = 1
        while key in group:
            repeat += 1
            key = f"{failure.rule}#{repeat}"
        group[key] = failure.message
    return errors


@register_formatter("nested")
def format_nested(failures: Sequence[FieldError]) -> Dict[str, Any]:
    """
    Mirror the data's nesting using the dotted field paths.

    When a path holds messages and also has failing children (e.g. "user"
    and "user.email"), the node's own messages go under "_errors".
    """
    tree: Dict[str, Any] = {}
    for failure in failures:
        segments = split_path(failure.field) or [failure.field]
        node = tree
        for segment in segments[:-1]:
            child = node.get(segment)
            if isinstance(child, list):
                child = {NESTED_ERRORS_KEY: child}
                node[segment] = child
            elif child is None:
                child = {}
                node[segment] = child
            node = child

        leaf = segments[-1]
        existing = node.get(leaf)
        if isinstance(existing, dict):
            existing.setdefault(NESTED_ERRORS_KEY, []).append(failure.message)
        else:
            node.setdefault(leaf, []).append(failure.message)
    return tree


def format_errors(failures: Sequence[FieldError], response_type: str = "laravel") -> Any:
    """
    Build the error report in the requested shape.

    Raises:
        ValueError: Unknown response type
    """
    formatter = FORMATTER_REGISTRY.get(response_type)
    if formatter is None:
        raise ValueError(
            f"Unknown response type '{response_type}'. "
            f"Available: {', '.join(FORMATTER_REGISTRY)}"
        )
    return formatter(failures)
