"""
Tests for the validation engine and its public entry points.
"""

import asyncio
import copy

import pytest

from modules.validation import ValidationEngine, Validator, validate, validate_async
from modules.validation.core.base import RuleOutcome, RuleResult
from modules.validation.core.exceptions import RuleExecutionError, UnknownRuleError
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

SIGNUP_SCHEMA = {
    "email": "required|string|email",
    "age": "required|number|min:18",
}


def test_valid_data_has_no_errors():
    result = validate({"email": "a@b.com", "age": 20}, SIGNUP_SCHEMA)

    assert result.is_valid is True
    assert result.errors == {}
    assert bool(result) is True


def test_invalid_data_reports_each_field():
    result = validate({"email": "not-an-email", "age": 10}, SIGNUP_SCHEMA)

    assert result.is_valid is False
    assert result.errors["email"] == ["The email field must be a valid email address."]
    assert result.errors["age"] == ["The age field must be at least 18."]
    logger.info(f"Errors: {result.errors}")


def test_missing_required_field_reports_only_required():
    result = validate({}, SIGNUP_SCHEMA, {"bail": False})

    assert result.errors == {
        "email": ["The email field is required."],
        "age": ["The age field is required."],
    }


def test_optional_empty_field_passes():
    schema = {"nickname": "string|min:3", "bio": "nullable|string|max:5"}
    result = validate({"bio": None}, schema)

    assert result.is_valid
    assert "nickname" not in result.data


def test_bail_stops_the_chain(registry, calls):
    registry.extend("always_fails", lambda value: False)
    registry.extend("counted", lambda value: calls.append(value) or True)
    schema = {"name": "always_fails|counted"}

    result = validate({"name": "x"}, schema, {"bail": True}, registry)
    assert calls == []
    assert len(result.errors["name"]) == 1

    result = validate({"name": "x"}, schema, {"bail": False}, registry)
    assert calls == ["x"]
    assert len(result.errors["name"]) == 1


def test_bail_only_affects_the_failing_field(registry, calls):
    registry.extend("counted", lambda value: calls.append(value) or True)
    schema = {"a": "required|number", "b": "required|counted"}

    result = validate({"a": "abc", "b": "y"}, schema, {"bail": True}, registry)
    assert list(result.errors) == ["a"]
    assert calls == ["y"]


def test_without_bail_all_failures_are_reported():
    result = validate({"code": "ab"}, {"code": "string|min:3|regex:^[0-9]+$"}, {"bail": False})
    assert len(result.errors["code"]) == 2
    assert [f.rule for f in result.failures] == ["min", "regex"]


def test_validation_is_deterministic():
    data = {"email": "nope", "age": "x", "extra": [1, 2]}
    snapshot = copy.deepcopy(data)
    validator = Validator(SIGNUP_SCHEMA)

    first = validator.validate(data)
    second = validator.validate(data)

    assert first.errors == second.errors
    assert first.data == second.data
    assert [f.to_dict() for f in first.failures] == [f.to_dict() for f in second.failures]
    assert data == snapshot


def test_wildcard_fields_are_validated_independently():
    schema = {"items.*.name": "required|string|min:2"}
    data = {"items": [{"name": "ok"}, {}, {"name": "x"}, {"name": "fine"}]}

    result = validate(data, schema)

    assert list(result.errors) == ["items.1.name", "items.2.name"]
    assert result.errors["items.1.name"] == ["The items.1.name field is required."]


def test_wildcard_over_empty_array_is_valid():
    result = validate({"items": []}, {"items": "array", "items.*.name": "required|string"})
    assert result.is_valid


def test_coercion_is_applied_to_returned_data_only():
    data = {"name": "  Bob  ", "note": "", "tags": [" a "]}
    schema = {"name": "required|string|min:3", "note": "nullable|string", "tags.*": "string"}

    result = validate(data, schema)

    assert result.is_valid
    assert result.data == {"name": "Bob", "note": None, "tags": ["a"]}
    assert data == {"name": "  Bob  ", "note": "", "tags": [" a "]}


def test_coercion_can_be_disabled():
    result = validate(
        {"name": "  Bob  ", "note": ""},
        {"name": "string|max:3", "note": "nullable"},
        {"autoTrim": False, "convertEmptyStringToNull": False},
    )

    assert result.errors["name"] == ["The name field must not be greater than 3 characters."]
    assert result.data["note"] == ""


def test_whitespace_only_string_fails_required():
    result = validate({"name": "   "}, {"name": "required|string"})
    assert result.errors["name"] == ["The name field is required."]


def test_response_type_selects_error_shape():
    data = {"user": {"email": "bad"}}
    schema = {"user.email": "required|string|email"}

    flat = validate(data, schema, {"responseType": "flat"})
    assert flat.errors == [{
        "field": "user.email",
        "rule": "email",
        "message": "The user.email field must be a valid email address.",
    }]

    nested = validate(data, schema, {"response_type": "nested"})
    assert nested.errors == {"user": {"email": ["The user.email field must be a valid email address."]}}
    assert nested.format("grouped") == {"user.email": {"email": "The user.email field must be a valid email address."}}


def test_attributes_rename_fields_in_messages():
    result = validate({}, {"dob": "required"}, {"attributes": {"dob": "date of birth"}})
    assert result.errors["dob"] == ["The date of birth field is required."]


def test_unknown_rule_aborts_validator_construction():
    with pytest.raises(UnknownRuleError):
        Validator({"name": "required|shiny"})


def test_exception_inside_rule_is_wrapped(registry):
    def explode(value):
        raise ValueError("kaboom")

    registry.extend("explode", explode)

    with pytest.raises(RuleExecutionError) as exc_info:
        validate({"name": "x"}, {"name": "explode"}, registry=registry)

    assert exc_info.value.field == "name"
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_custom_rule_string_result_is_the_message(registry):
    registry.extend("even", lambda value: True if value % 2 == 0 else "Pick an even number")

    result = validate({"n": 3, "m": 4}, {"n": "even", "m": "custom:even"}, registry=registry)

    assert result.errors == {"n": ["Pick an even number"]}


def test_custom_rule_with_context(registry):
    def matches(value, params, context):
        return value == context.data.get(params[0])

    registry.extend("matches", matches, "The :attribute must match :params.")
    schema = {"pin": "required", "pin_check": "custom:matches,pin"}

    assert validate({"pin": "1234", "pin_check": "1234"}, schema, registry=registry).is_valid

    result = validate({"pin": "1234", "pin_check": "9999"}, schema, registry=registry)
    assert result.errors["pin_check"] == ["The pin_check must match pin."]
    assert result.format("grouped") == {"pin_check": {"matches": "The pin_check must match pin."}}


@pytest.mark.asyncio
async def test_async_custom_rule(registry):
    async def username_available(value):
        await asyncio.sleep(0)
        return value not in {"admin", "root"}

    registry.extend("available", username_available, "The :attribute is taken.")
    schema = {"username": "required|string|available"}

    result = await validate_async({"username": "admin"}, schema, registry=registry)
    assert result.errors == {"username": ["The username is taken."]}

    result = await validate_async({"username": "ada"}, schema, registry=registry)
    assert result.is_valid


@pytest.mark.asyncio
async def test_parallel_validation_keeps_schema_order(registry, calls):
    async def slow(value):
        await asyncio.sleep(0.05)
        calls.append("slow")
        return False

    async def fast(value):
        calls.append("fast")
        return False

    registry.extend("slow_fail", slow)
    registry.extend("fast_fail", fast)
    validator = Validator({"a": "slow_fail", "b": "fast_fail"}, {"parallel": True}, registry)

    result = await validator.validate_async({"a": "x", "b": "y"})

    assert calls == ["fast", "slow"]
    assert list(result.errors) == ["a", "b"]


@pytest.mark.asyncio
async def test_sync_entry_point_refuses_running_loop():
    validator = Validator(SIGNUP_SCHEMA)
    with pytest.raises(RuntimeError, match="validate_async"):
        validator.validate({"email": "a@b.com", "age": 20})


def test_custom_rule_with_parameters_reports_its_name(registry):
    registry.extend("divisible", lambda value, params, context: value % int(params[0]) == 0, "Not divisible.")

    result = validate({"n": 4}, {"n": "required|divisible:3"}, {"responseType": "grouped"}, registry=registry)

    assert result.errors == {"n": {"divisible": "Not divisible."}}
    assert result.failures[0].rule == "divisible"
    assert result.failures[0].parameters == ["3"]
    assert result.format("flat")[0]["rule"] == "divisible"


def test_shape_coercion_reaches_returned_data():
    data = {"profile": {"name": "  ada  ", "bio": ""}}
    schema = {"profile": 'object|shape:{"name": "required|string", "bio": "nullable|string"}'}

    result = validate(data, schema)

    assert result.is_valid
    assert result.data == {"profile": {"name": "ada", "bio": None}}
    assert data == {"profile": {"name": "  ada  ", "bio": ""}}


@pytest.mark.asyncio
async def test_rule_outcomes_and_results():
    immediate = RuleOutcome.immediate(True)
    assert not immediate.is_deferred
    assert await immediate.resolve() is True

    async def later():
        return 0

    deferred = RuleOutcome.deferred(later())
    assert deferred.is_deferred
    assert await deferred.resolve() is False

    engine = ValidationEngine({"age": "required|number|min:18"})
    chain = engine.chains["age"]
    context = engine.create_context({"age": 10}, "age", 10, "age", chain)

    assert await engine.apply_rule(chain[1], 10, context) == RuleResult(passed=True)
    assert await engine.apply_rule(chain[-1], 10, context) == RuleResult(
        passed=False, message="The age field must be at least 18."
    )
