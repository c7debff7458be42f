"""
ValidationEngine - Main orchestrator for data validation.

This is the primary entry point for validating data against a schema.
It compiles the schema once, resolves field paths per call, executes each
field's rule chain and assembles the error report.
"""

import asyncio
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from modules.validation.core.base import (
    CompiledRule,
    FieldError,
    RuleHandler,
    RuleResult,
    ValidationContext,
    ValidationResult,
    is_empty,
)
from modules.validation.core.compiler import RuleCompiler, base_type_of
from modules.validation.core.config import ValidationConfig, resolve_config
from modules.validation.core.config_loader import ValidationConfigLoader
from modules.validation.core.exceptions import RuleExecutionError, ValidationEngineError
from modules.validation.core.registry import RuleRegistry, get_default_registry
from modules.validation.core.resolver import PathResolver, ResolvedField, clone_data
from modules.validation.messages.formatter import MessageFormatter
from modules.validation.response.formatters import format_errors
from shared.utils.logger import log_error, setup_logger

logger = setup_logger(__name__)

# A failed rule in a chain: the compiled rule and its rendered message
ChainFailure = Tuple[CompiledRule, str]


class ValidationEngine:
    """
    Executes a compiled schema against data.

    The schema is compiled at construction; field paths are resolved on every
    run because wildcard expansion depends on the data.

    Usage:
        engine = ValidationEngine({"email": "required|string|email"})
        result = await engine.run({"email": "a@b.com"})
    """

    def __init__(
        self,
        schema: Dict[str, Any],
        config: Union[ValidationConfig, Dict[str, Any], None] = None,
        registry: Optional[RuleRegistry] = None
    ):
        self.schema = dict(schema)
        self.config = resolve_config(config)
        self.registry = registry or get_default_registry()
        self.compiler = RuleCompiler(self.registry)
        self.resolver = PathResolver()
        self.formatter = MessageFormatter(
            locale=self.config.locale,
            overrides=self.config.messages,
            attributes=self.config.attributes,
        )
        self.chains: Dict[str, List[CompiledRule]] = self.compiler.compile_schema(self.schema)
        self._sub_chains: Dict[str, List[CompiledRule]] = {}

        logger.debug(
            f"ValidationEngine initialized with {len(self.chains)} fields "
            f"(bail={self.config.bail}, locale={self.config.locale})"
        )

    def coerce(self, value: Any) -> Any:
        """Apply the configured pre-check coercions to one value"""
        if isinstance(value, str):
            if self.config.auto_trim:
                value = value.strip()
            if self.config.convert_empty_string_to_null and value == "":
                return None
        return value

    async def run(self, data: Any) -> ValidationResult:
        """
        Validate data against the compiled schema.

        Args:
            data: Data to validate (never modified)

        Returns:
            ValidationResult; `data` is a copy carrying the coerced values
        """
        instances: List[Tuple[str, ResolvedField]] = [
            (pattern, resolved)
            for pattern in self.chains
            for resolved in self.resolver.resolve(data, pattern)
        ]

        if self.config.parallel:
            outcomes = await asyncio.gather(*[
                self._validate_instance(data, pattern, resolved)
                for pattern, resolved in instances
            ])
        else:
            outcomes = []
            for pattern, resolved in instances:
                outcomes.append(await self._validate_instance(data, pattern, resolved))

        working = clone_data(data)
        failures: List[FieldError] = []
        for (pattern, resolved), (value, field_failures) in zip(instances, outcomes):
            if resolved.exists and value is not resolved.value:
                self.resolver.set(working, resolved.path, value)
            failures.extend(field_failures)

        is_valid = not failures
        logger.debug(
            f"Validated {len(instances)} field instances: "
            f"{'passed' if is_valid else f'{len(failures)} failures'}"
        )
        return ValidationResult(
            is_valid=is_valid,
            data=working,
            errors=format_errors(failures, self.config.response_type),
            failures=failures,
            response_type=self.config.response_type,
        )

    async def _validate_instance(
        self,
        data: Any,
        pattern: str,
        resolved: ResolvedField
    ) -> Tuple[Any, List[FieldError]]:
        chain = self.chains[pattern]
        value = self.coerce(resolved.value)
        context = self.create_context(data, resolved.path, value, pattern, chain)

        failed = await self.execute_chain(chain, value, context, self.config.bail)
        # Rules validating a nested copy (object.shape) hand back its coerced form
        value = context.notes.get("coerced", value)
        return value, [
            FieldError(
                field=resolved.path,
                rule=compiled.message_key,
                message=message,
                value=value,
                parameters=list(compiled.parameters),
            )
            for compiled, message in failed
        ]

    def create_context(
        self,
        data: Any,
        field: str,
        value: Any,
        pattern: str,
        chain: List[CompiledRule]
    ) -> ValidationContext:
        return ValidationContext(
            data=data,
            field=field,
            value=value,
            config=self.config,
            format_message=partial(self._format_message, field=field, pattern=pattern),
            schema=self.schema,
            schema_key=pattern,
            base_type=base_type_of(chain),
            chain=[compiled.rule for compiled in chain],
            engine=self,
        )

    def _format_message(
        self,
        rule: str,
        fallback: str,
        replacements: Dict[str, Any],
        scope: Optional[str] = None,
        field: str = "",
        pattern: str = ""
    ) -> str:
        return self.formatter.format(rule, fallback, replacements, scope, field=field, pattern=pattern)

    async def execute_chain(
        self,
        chain: List[CompiledRule],
        value: Any,
        context: ValidationContext,
        bail: bool
    ) -> List[ChainFailure]:
        """
        Run a compiled chain strictly in order.

        Only implicit rules run on an empty value (absent, None or "").

        Returns:
            Failed rules with their messages, in chain order
        """
        failures: List[ChainFailure] = []
        empty = is_empty(value)

        for compiled in chain:
            handler = compiled.handler
            if empty and not handler.implicit:
                continue

            result = await self.apply_rule(compiled, value, context)
            if result.passed:
                continue

            failures.append((compiled, result.message))
            if bail:
                break

        return failures

    async def apply_rule(
        self,
        compiled: CompiledRule,
        value: Any,
        context: ValidationContext
    ) -> RuleResult:
        """Run one rule; the message is rendered only when it fails"""
        if await self._invoke(compiled, value, context):
            return RuleResult(passed=True)
        return RuleResult(passed=False, message=self._invoke_message(compiled, context))

    async def _invoke(
        self,
        compiled: CompiledRule,
        value: Any,
        context: ValidationContext
    ) -> bool:
        try:
            outcome = compiled.handler.check(value, compiled.parameters, context)
            return await outcome.resolve()
        except ValidationEngineError:
            raise
        except Exception as e:
            raise RuleExecutionError(compiled.name, context.field, str(e)) from e

    def _invoke_message(self, compiled: CompiledRule, context: ValidationContext) -> str:
        try:
            return compiled.handler.message(compiled.parameters, context)
        except ValidationEngineError:
            raise
        except Exception as e:
            raise RuleExecutionError(compiled.name, context.field, str(e)) from e

    def compile_rules(self, definition: Any) -> List[CompiledRule]:
        """Compile (and cache) a rule definition used by a sub-run"""
        key = definition if isinstance(definition, str) else repr(definition)
        chain = self._sub_chains.get(key)
        if chain is None:
            chain = self.compiler.compile(key, definition)
            self._sub_chains[key] = chain
        return chain

    async def run_rules(
        self,
        definition: Any,
        value: Any,
        context: ValidationContext,
        bail: bool = True,
        field: Optional[str] = None
    ) -> List[ChainFailure]:
        """
        Validate a value against an ad-hoc rule definition (a sub-run).

        Used by rules that compose other rules, e.g. union sets and array.each.
        The sub-run sees the same data and schema as the calling field.

        Args:
            definition: Rule definition in any supported form
            value: Value under test
            context: Context of the calling rule
            bail: Stop at the first failing rule
            field: Field path reported by the sub-run (defaults to the caller's)

        Returns:
            Failed rules with their messages; empty when the value passed
        """
        chain = self.compile_rules(definition)
        field = field or context.field
        sub_context = ValidationContext(
            data=context.data,
            field=field,
            value=value,
            config=self.config,
            format_message=partial(self._format_message, field=field, pattern=context.schema_key),
            schema=context.schema,
            schema_key=context.schema_key,
            base_type=base_type_of(chain),
            chain=[compiled.rule for compiled in chain],
            engine=self,
        )
        return await self.execute_chain(chain, value, sub_context, bail)

    def spawn(self, schema: Dict[str, Any]) -> "ValidationEngine":
        """Engine for a nested schema sharing this engine's config and registry"""
        return ValidationEngine(schema, self.config, self.registry)


class Validator:
    """
    Public validator bound to one schema.

    Usage:
        validator = Validator(
            {"email": "required|string|email", "age": "required|number|min:18"},
            {"bail": False}
        )
        result = validator.validate({"email": "a@b.com", "age": 20})

        if not result.is_valid:
            print(result.errors)
    """

    def __init__(
        self,
        schema: Dict[str, Any],
        config: Union[ValidationConfig, Dict[str, Any], None] = None,
        registry: Optional[RuleRegistry] = None
    ):
        try:
            self.engine = ValidationEngine(schema, config, registry)
        except ValidationEngineError as e:
            log_error(logger, e, "Schema compilation failed")
            raise

    @classmethod
    def from_config(
        cls,
        schema_name: str,
        config_path: Optional[str] = None,
        registry: Optional[RuleRegistry] = None,
        **overrides: Any
    ) -> "Validator":
        """
        Build a validator for a named schema in a YAML config file.

        Example:
            validator = Validator.from_config("signup", "config/validation/schemas.yaml")
        """
        loader = ValidationConfigLoader(config_path)
        return cls(loader.get_schema(schema_name), loader.get_config(**overrides), registry)

    @property
    def config(self) -> ValidationConfig:
        return self.engine.config

    async def validate_async(self, data: Any) -> ValidationResult:
        """Validate data; awaits asynchronous rules"""
        try:
            return await self.engine.run(data)
        except ValidationEngineError as e:
            log_error(logger, e, "Validation aborted")
            raise

    def validate(self, data: Any) -> ValidationResult:
        """
        Validate data from synchronous code.

        Raises:
            RuntimeError: Called from inside a running event loop
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.validate_async(data))
        raise RuntimeError(
            "Validator.validate() cannot run inside an active event loop; "
            "use 'await validator.validate_async(data)' instead"
        )


def validate(
    data: Any,
    schema: Dict[str, Any],
    config: Union[ValidationConfig, Dict[str, Any], None] = None,
    registry: Optional[RuleRegistry] = None
) -> ValidationResult:
    """
    Validate data against a schema.

    Example:
        result = validate({"email": "a@b.com"}, {"email": "required|string|email"})
    """
    return Validator(schema, config, registry).validate(data)


async def validate_async(
    data: Any,
    schema: Dict[str, Any],
    config: Union[ValidationConfig, Dict[str, Any], None] = None,
    registry: Optional[RuleRegistry] = None
) -> ValidationResult:
    """Async counterpart of validate()"""
    return await Validator(schema, config, registry).validate_async(data)


def extend(
    name: str,
    rule: Union[RuleHandler, Callable[..., Any]],
    message: Optional[str] = None,
    registry: Optional[RuleRegistry] = None
) -> RuleHandler:
    """
    Register a custom rule (on the default registry unless one is given).

    Example:
        extend("even", lambda value: int(value) % 2 == 0, "The :attribute must be even.")
        validate({"n": 3}, {"n": "required|even"})
    """
    return (registry or get_default_registry()).extend(name, rule, message)
