"""
Rule compiler.

Turns a field's rule definition into an ordered list of CompiledRule.
Accepted definitions:
- pipe-delimited string: "required|string|min:3"
- list of tokens: ["required", "string", "min:3"]
- any RuleSource (an object exposing an ordered rule list), e.g. RuleList
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from modules.validation.core.base import DATA_TYPES, CompiledRule, Rule, RuleKind
from modules.validation.core.exceptions import ConflictingDataTypeError, RuleSyntaxError
from modules.validation.core.registry import RuleRegistry, get_default_registry
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

# Rules whose whole parameter text is a single parameter (may contain commas)
WHOLE_PARAMETER_RULES = {
    "regex", "not_regex", "format", "each",
    "string.regex", "string.not_regex", "date.format", "array.each",
}

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_json_decoder = json.JSONDecoder()


@runtime_checkable
class RuleSource(Protocol):
    """Anything that exposes an ordered rule list"""

    def rule_list(self) -> List[Rule]:
        ...


class RuleList:
    """
    Raw compiled form of a rule chain.

    Example:
        RuleList([Rule("required"), Rule("string"), Rule("min", ["3"])])
    """

    def __init__(self, rules: Optional[Iterable[Rule]] = None):
        self.rules: List[Rule] = list(rules or [])

    def rule_list(self) -> List[Rule]:
        return [Rule(r.name, list(r.parameters), r.is_custom) for r in self.rules]

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __repr__(self) -> str:
        return f"RuleList({'|'.join(r.token for r in self.rules)!r})"


def split_chain(text: str) -> List[str]:
    """
    Split a rule string on top-level pipes.

    Pipes inside brackets, parentheses, braces or quotes do not split.

    Raises:
        RuleSyntaxError: Unbalanced brackets or quotes
    """
    tokens: List[str] = []
    current: List[str] = []
    stack: List[str] = []
    quote: Optional[str] = None
    escaped = False

    for char in text:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in ("'", '"') and stack:
            quote = char
        elif char in _OPENERS:
            stack.append(_OPENERS[char])
        elif stack and char == stack[-1]:
            stack.pop()
        elif char == "|" and not stack:
            tokens.append("".join(current))
            current = []
            continue
        current.append(char)

    if stack or quote:
        raise RuleSyntaxError(f"Unbalanced brackets or quotes in rule definition: {text!r}")

    tokens.append("".join(current))
    return [token.strip() for token in tokens if token.strip()]


def split_parameters(text: str) -> List[str]:
    """
    Split `p1,p2,...` into strings.

    A parameter starting with `[` or `{` is read as one JSON value and kept
    as its raw JSON text.
    """
    params: List[str] = []
    index = 0
    length = len(text)

    if not text.strip():
        return params

    while index <= length:
        while index < length and text[index] == " ":
            index += 1

        if index < length and text[index] in "[{":
            try:
                _, end = _json_decoder.raw_decode(text, index)
            except json.JSONDecodeError as e:
                raise RuleSyntaxError(f"Invalid JSON parameter in {text!r}: {e}") from e
            params.append(text[index:end])
            index = end
            while index < length and text[index] == " ":
                index += 1
            if index < length and text[index] != ",":
                raise RuleSyntaxError(f"Expected ',' after JSON parameter in {text!r}")
            index += 1
            continue

        comma = text.find(",", index)
        if comma == -1:
            params.append(text[index:].strip())
            break
        params.append(text[index:comma].strip())
        index = comma + 1

    return params


def _split_union_sets(body: str) -> List[str]:
    """Split the compact `(a|b;c|d)` union body on top-level semicolons"""
    sets: List[str] = []
    depth = 0
    current: List[str] = []
    for char in body:
        if char in _OPENERS:
            depth += 1
        elif char in _OPENERS.values():
            depth -= 1
        elif char == ";" and depth == 0:
            sets.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    sets.append("".join(current).strip())
    return [s for s in sets if s]


def _parse_union_parameters(text: str) -> List[str]:
    text = text.strip()
    if text.startswith("("):
        depth = 0
        for index, char in enumerate(text):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    break
        else:
            raise RuleSyntaxError(f"Unclosed union group: {text!r}")
        sets = _split_union_sets(text[1:index])
        params = [json.dumps(sets)]
        rest = text[index + 1:].strip()
        if rest.startswith(","):
            params.extend(split_parameters(rest[1:]))
        elif rest:
            raise RuleSyntaxError(f"Unexpected text after union group: {rest!r}")
        return params

    if text.startswith("["):
        return split_parameters(text)

    raise RuleSyntaxError(f"Union rule expects a JSON list or (set;set) group, got {text!r}")


def parse_token(token: str) -> Rule:
    """
    Parse one `name` or `name:p1,p2` token.

    Example:
        parse_token("between:1,10") -> Rule("between", ["1", "10"])
    """
    name, separator, rest = token.strip().partition(":")
    name = name.strip()
    if not name:
        raise RuleSyntaxError(f"Empty rule name in token {token!r}")
    if not separator:
        return Rule(name=name)
    if name in WHOLE_PARAMETER_RULES:
        return Rule(name=name, parameters=[rest])
    if name == "union":
        return Rule(name=name, parameters=_parse_union_parameters(rest))
    return Rule(name=name, parameters=split_parameters(rest), is_custom=(name == "custom"))


class RuleCompiler:
    """
    Compiles rule definitions against a RuleRegistry.

    Usage:
        compiler = RuleCompiler(registry)
        chain = compiler.compile("email", "required|string|email")
    """

    def __init__(self, registry: Optional[RuleRegistry] = None):
        self.registry = registry or get_default_registry()

    def parse(self, definition: Any) -> List[Rule]:
        """
        Parse any supported definition into an ordered Rule list.

        Raises:
            RuleSyntaxError: Unsupported definition type or malformed rule text
        """
        if isinstance(definition, RuleSource):
            return definition.rule_list()
        if isinstance(definition, Rule):
            return [definition]
        if isinstance(definition, str):
            return [parse_token(token) for token in split_chain(definition)]
        if isinstance(definition, (list, tuple)):
            rules: List[Rule] = []
            for item in definition:
                rules.extend(self.parse(item))
            return rules
        raise RuleSyntaxError(f"Unsupported rule definition: {definition!r}")

    def compile(self, field: str, definition: Any) -> List[CompiledRule]:
        """
        Compile one field's rule chain.

        Args:
            field: Schema key (used in error messages)
            definition: Rule definition in any supported form

        Returns:
            CompiledRule list ordered by priority, source order preserved otherwise

        Raises:
            ConflictingDataTypeError: More than one base-type rule
            UnknownRuleError / UnknownCustomRuleError: Unresolvable rule name
        """
        rules = self.parse(definition)
        return self.compile_rules(field, rules)

    def compile_rules(self, field: str, rules: Sequence[Rule]) -> List[CompiledRule]:
        types = [
            rule.name for rule in rules
            if not rule.is_custom and self.registry.is_base_type(rule.name)
        ]
        if len(types) > 1:
            raise ConflictingDataTypeError(field, types)
        base_type = types[0] if types else None

        compiled: List[CompiledRule] = []
        for rule in rules:
            binding = self.registry.lookup(rule.name, base_type, rule.parameters)
            try:
                handler = binding.bind(rule.parameters)
            except (ValueError, TypeError, IndexError) as e:
                raise RuleSyntaxError(
                    f"Invalid parameters for rule '{rule.token}' on field '{field}': {e}"
                ) from e

            if binding.kind == RuleKind.CUSTOM:
                rule = Rule(rule.name, list(rule.parameters), is_custom=True)

            compiled.append(CompiledRule(
                rule=rule,
                handler=handler,
                kind=binding.kind,
                priority=handler.priority,
                parent_type=binding.parent_type,
            ))

        # sorted() is stable: equal priorities keep their source order
        return sorted(compiled, key=lambda c: c.priority)

    def compile_schema(self, schema: Dict[str, Any]) -> Dict[str, List[CompiledRule]]:
        """Compile every field of a schema, preserving declaration order"""
        chains = {field: self.compile(field, definition) for field, definition in schema.items()}
        logger.debug(f"Compiled schema with {len(chains)} fields")
        return chains


def base_type_of(chain: Sequence[CompiledRule]) -> Optional[str]:
    """Base data type declared by a compiled chain, if any"""
    for compiled in chain:
        if compiled.kind == RuleKind.BASE and compiled.name in DATA_TYPES:
            return compiled.name
    return None
