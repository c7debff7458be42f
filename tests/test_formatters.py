"""
Tests for the error response shapes.
"""

import pytest

from modules.validation import validate
from modules.validation.core.base import FieldError, ValidationResult
from modules.validation.response.formatters import FORMATTER_REGISTRY, format_errors

FAILURES = [
    FieldError(field="email", rule="required", message="The email field is required."),
    FieldError(field="user.name", rule="min", message="Too short.", parameters=["3"]),
    FieldError(field="user.name", rule="alpha", message="Letters only."),
    FieldError(field="items.0.price", rule="min", message="Price too low."),
]


def test_laravel_shape():
    assert format_errors(FAILURES, "laravel") == {
        "email": ["The email field is required."],
        "user.name": ["Too short.", "Letters only."],
        "items.0.price": ["Price too low."],
    }


def test_flat_shape():
    assert format_errors(FAILURES, "flat") == [
        {"field": "email", "rule": "required", "message": "The email field is required."},
        {"field": "user.name", "rule": "min", "message": "Too short."},
        {"field": "user.name", "rule": "alpha", "message": "Letters only."},
        {"field": "items.0.price", "rule": "min", "message": "Price too low."},
    ]


def test_grouped_shape():
    assert format_errors(FAILURES, "grouped") == {
        "email": {"required": "The email field is required."},
        "user.name": {"min": "Too short.", "alpha": "Letters only."},
        "items.0.price": {"min": "Price too low."},
    }


def test_nested_shape():
    assert format_errors(FAILURES, "nested") == {
        "email": ["The email field is required."],
        "user": {"name": ["Too short.", "Letters only."]},
        "items": {"0": {"price": ["Price too low."]}},
    }


@pytest.mark.parametrize("failures", [
    [
        FieldError(field="user", rule="object", message="Not an object."),
        FieldError(field="user.email", rule="email", message="Bad email."),
    ],
    [
        FieldError(field="user.email", rule="email", message="Bad email."),
        FieldError(field="user", rule="object", message="Not an object."),
    ],
])
def test_nested_shape_keeps_parent_and_child_messages(failures):
    assert format_errors(failures, "nested") == {
        "user": {"_errors": ["Not an object."], "email": ["Bad email."]}
    }


def test_every_shape_carries_every_message():
    messages = sorted(f.message for f in FAILURES)

    flat = [entry["message"] for entry in format_errors(FAILURES, "flat")]
    laravel = [m for field in format_errors(FAILURES, "laravel").values() for m in field]
    grouped = [m for field in format_errors(FAILURES, "grouped").values() for m in field.values()]

    assert sorted(flat) == messages
    assert sorted(laravel) == messages
    assert sorted(grouped) == messages


def test_empty_failures():
    assert format_errors([], "laravel") == {}
    assert format_errors([], "flat") == []
    assert format_errors([], "nested") == {}


def test_unknown_response_type():
    with pytest.raises(ValueError, match="Unknown response type"):
        format_errors(FAILURES, "xml")


def test_registry_lists_all_shapes():
    assert set(FORMATTER_REGISTRY) == {"laravel", "flat", "grouped", "nested"}


def test_result_reprojection():
    result = ValidationResult(
        is_valid=False,
        data={},
        errors=format_errors(FAILURES, "laravel"),
        failures=FAILURES,
    )

    assert result.format() == result.errors
    assert result.format("flat")[0]["field"] == "email"
    assert result.to_dict()["is_valid"] is False


def test_grouped_shape_keeps_repeated_rule_messages():
    result = validate({"x": "ab"}, {"x": "string|min:3|min:5"}, {"bail": False})

    assert result.errors == {"x": [
        "The x field must be at least 3 characters.",
        "The x field must be at least 5 characters.",
    ]}
    assert result.format("grouped") == {"x": {
        "min": "The x field must be at least 3 characters.",
        "min#2": "The x field must be at least 5 characters.",
    }}
    assert len(result.format("flat")) == 2
