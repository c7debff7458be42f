"""
Tests for the built-in rule families.
"""

from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from modules.validation import validate
from modules.validation.core.exceptions import SchemaShapeError
from modules.validation.rules.file_rules import parse_size

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


def passes(value, rules, **config) -> bool:
    return validate({"value": value}, {"value": rules}, config or None).is_valid


def failed_rules(value, rules) -> list:
    result = validate({"value": value}, {"value": rules}, {"bail": False})
    return [failure.rule for failure in result.failures]


# String rules

@pytest.mark.parametrize("value, rules", [
    ("hello", "string|min:3|max:10"),
    ("abc", "string|length:3"),
    ("abcd", "string|between:2,5"),
    ("https://example.com/path", "string|url"),
    ("123e4567-e89b-12d3-a456-426614174000", "string|uuid"),
    ("Hello", "string|alpha"),
    ("abc123", "string|alpha_num"),
    ("my-slug_1", "string|alpha_dash"),
    ("INV-0042", "string|regex:^INV-\\d{4}$"),
    ("HELLO", "string|regex:/^hello$/i"),
    ("draft", "string|not_regex:^final"),
    ("prefix-body", "string|starts_with:pre,post"),
    ("report.pdf", "string|ends_with:.pdf,.doc"),
    ("the quick fox", "string|contains:quick,fox"),
    ("red", "string|in:red,green"),
    ("blue", "string|not_in:red,green"),
    ('{"a": 1}', "string|json"),
    ("192.168.0.1", "string|ip:v4"),
    ("::1", "string|ip:v6"),
])
def test_string_rules_pass(value, rules):
    assert passes(value, rules)


@pytest.mark.parametrize("value, rules, rule", [
    ("hi", "string|min:3", "min"),
    ("toolongvalue", "string|max:5", "max"),
    ("ftp:/broken", "string|url", "url"),
    ("not-a-uuid", "string|uuid", "uuid"),
    ("abc1", "string|alpha", "alpha"),
    ("a b", "string|alpha_dash", "alpha_dash"),
    ("{broken", "string|json", "json"),
    ("::1", "string|ip:v4", "ip"),
    ("yellow", "string|in:red,green", "in"),
    (42, "string", "string"),
])
def test_string_rules_fail(value, rules, rule):
    assert failed_rules(value, rules) == [rule]


def test_string_min_message():
    result = validate({"name": "Al"}, {"name": "string|min:3"})
    assert result.errors["name"] == ["The name field must be at least 3 characters."]


# Number rules

@pytest.mark.parametrize("value, rules", [
    (5, "number|between:1,10"),
    ("5", "number|min:1"),
    (2.5, "number|max:3"),
    (10, "number|integer"),
    ("7", "number|integer"),
    (3, "number|positive"),
    (-3, "number|negative"),
    ("1234", "number|digits:4"),
    (12345, "number|digits_between:4,6"),
    (0.3, "number|multiple_of:0.1"),
    (15, "number|multiple_of:5"),
    (2, "number|in:1,2,3"),
    (4, "number|not_in:1,2,3"),
])
def test_number_rules_pass(value, rules):
    assert passes(value, rules)


@pytest.mark.parametrize("value, rules, rule", [
    (True, "number", "number"),
    ("abc", "number", "number"),
    (3.5, "number|integer", "integer"),
    (0, "number|positive", "positive"),
    (12, "number|digits:3", "digits"),
    (7, "number|multiple_of:5", "multiple_of"),
    (11, "number|between:1,10", "between"),
])
def test_number_rules_fail(value, rules, rule):
    assert failed_rules(value, rules) == [rule]


def test_number_max_message():
    result = validate({"qty": 12}, {"qty": "number|max:10"})
    assert result.errors["qty"] == ["The qty field must not be greater than 10."]


# Boolean rules

@pytest.mark.parametrize("value", [True, False, "true", "FALSE"])
def test_boolean_accepts_bools_and_text(value):
    assert passes(value, "boolean")


@pytest.mark.parametrize("value", ["yes", 1, "0", None])
def test_boolean_rejects_other_values(value):
    assert not passes(value, "required|boolean")


def test_accepted_is_required():
    assert passes("yes", "accepted")
    assert passes(True, "boolean|accepted")
    assert not passes(None, "accepted")
    assert not passes("no", "accepted")


def test_true_and_false_rules():
    assert passes("true", "boolean|true")
    assert failed_rules(True, "boolean|false") == ["false"]


# Date rules

def test_date_comparisons():
    assert passes("2021-05-05", "date|after:2020-01-01")
    assert failed_rules("2019-05-05", "date|after:2020-01-01") == ["after"]
    assert passes("2020-01-01", "date|after_or_equal:2020-01-01")
    assert passes(date(2020, 1, 1), "date|before:2020-06-01")
    assert passes("2020-01-01T10:00:00", "date|date_equals:2020-01-01")


def test_date_relative_keywords():
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    yesterday = (date.today() - timedelta(days=1)).isoformat()

    assert passes(tomorrow, "date|after:today")
    assert not passes(yesterday, "date|after:today")
    assert passes(yesterday, "date|before:today")


def test_date_compared_to_another_field():
    schema = {"start": "required|date", "end": "required|date|after:start"}

    assert validate({"start": "2024-01-01", "end": "2024-02-01"}, schema).is_valid

    result = validate({"start": "2024-01-01", "end": "2023-12-31"}, schema)
    assert result.errors["end"] == ["The end field must be a date after start."]


def test_date_format():
    assert passes("2024-01-31", "date|format:YYYY-MM-DD")
    assert passes("31/01/2024", "date|format:%d/%m/%Y")
    assert "format" in failed_rules("2024/01/31", "date|format:YYYY-MM-DD")


def test_weekday_and_weekend():
    assert passes("2024-01-08", "date|weekday")
    assert passes("2024-01-06", "date|weekend")
    assert not passes("2024-01-06", "date|weekday")


def test_invalid_date():
    assert failed_rules("not a date", "date") == ["date"]


@pytest.mark.parametrize("value", ["10", "March", "2024-05", "10:30"])
def test_partial_dates_are_rejected(value):
    assert failed_rules(value, "date") == ["date"]


def test_partial_operand_never_matches():
    assert failed_rules("2024-05-10", "date|after:10") == ["after"]


# Array rules

def test_array_size_rules():
    assert passes([1, 2], "array|min:2|max:3")
    assert passes((1, 2, 3), "array|size:3")
    assert failed_rules([1], "array|min:2") == ["min"]
    assert failed_rules("abc", "array") == ["array"]


def test_array_min_message():
    result = validate({"tags": []}, {"tags": "array|min:1"})
    assert result.errors["tags"] == ["The tags field must have at least 1 items."]


def test_array_distinct_and_contains():
    assert passes(["a", "b"], "array|distinct")
    assert failed_rules(["a", "a"], "array|distinct") == ["distinct"]
    assert passes(["admin", "editor"], "array|contains:admin")
    assert not passes(["editor"], "array|contains:admin")


def test_array_each():
    assert passes(["ab", "cd"], "array|each:(string|min:2)")
    assert passes([1, 50], 'array|each:["number", "between:0,100"]')

    result = validate({"tags": ["ab", "c"]}, {"tags": "array|each:(string|min:2)"})
    assert result.errors["tags"] == ["Every item of the tags field must be valid."]


# Object rules

def test_object_shape():
    rules = 'object|shape:{"name": "required|string", "age": "number|min:0"}'

    assert passes({"name": "Ada", "age": 36}, rules)

    result = validate({"profile": {"age": -1}}, {"profile": rules})
    assert result.errors["profile"] == ["The profile field has an invalid structure."]


def test_object_shape_nested_run_errors_become_schema_shape_errors():
    with pytest.raises(SchemaShapeError):
        validate({"profile": {"a": 1}}, {"profile": 'object|shape:{"a": "required|sparkly"}'})


def test_object_strict_with_shape_keys():
    rules = 'object|strict|shape:{"name": "string", "age": "number"}'

    assert passes({"name": "x", "age": 1}, rules)

    result = validate({"value": {"name": "x", "age": 1, "extra": True}}, {"value": rules})
    assert result.errors["value"] == ["The value field contains unexpected fields: extra."]


def test_object_strict_with_schema_children():
    schema = {"user": "required|object|strict", "user.name": "string", "user.age": "number"}

    assert validate({"user": {"name": "x", "age": 1}}, schema).is_valid

    result = validate({"user": {"name": "x", "age": 1, "extra": True, "role": "x"}}, schema)
    assert result.errors["user"] == ["The user field contains unexpected fields: extra, role."]


def test_object_strict_with_explicit_keys():
    assert passes({"id": 1}, "object|strict:id,type")
    assert not passes({"id": 1, "debug": True}, "object|strict:id,type")


def test_object_has_and_not_empty():
    assert passes({"id": 1, "type": "a"}, "object|has:id,type")
    assert failed_rules({"id": 1}, "object|has:id,type") == ["has"]
    assert failed_rules({}, "object|not_empty") == ["not_empty"]


# File rules

def upload(filename="photo.png", size=1024, content_type="image/png", content=PNG_HEADER):
    return SimpleNamespace(filename=filename, size=size, content_type=content_type, content=content)


def test_parse_size():
    assert parse_size("2048") == 2048
    assert parse_size("500KB") == 500 * 1024
    assert parse_size("2MB") == 2 * 1024 ** 2
    assert parse_size("1gb") == 1024 ** 3
    with pytest.raises(ValueError):
        parse_size("lots")


def test_file_size_and_type_rules():
    assert passes(upload(), "file|max:2KB|min:1KB|mimes:png,jpg|extensions:png")
    assert failed_rules(upload(size=4096), "file|max:2KB") == ["max"]
    assert failed_rules(upload(filename="doc.pdf", content_type="application/pdf"), "file|mimes:png,jpg") == ["mimes"]
    assert failed_rules({"filename": "a.txt"}, "file") == ["file"]


def test_file_mimes_accepts_jpg_alias():
    assert passes(upload(filename="photo.jpg", content_type="image/jpeg"), "file|mimes:jpg")


def test_file_image_reads_header():
    assert passes(upload(), "file|image")
    assert not passes(upload(content=b"plain text file"), "file|image")


def test_file_image_from_path(tmp_path):
    image = tmp_path / "pixel.png"
    image.write_bytes(PNG_HEADER)
    text = tmp_path / "notes.txt"
    text.write_bytes(b"hello")

    assert passes(image, "file|image|max:1KB")
    assert not passes(text, "file|image")
    assert not passes(tmp_path / "missing.png", "required|file")
