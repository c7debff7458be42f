"""
Tests for message catalogs and MessageFormatter.
"""

from modules.validation import validate
from modules.validation.messages.catalog import available_locales, get_catalog, register_catalog
from modules.validation.messages.formatter import MessageFormatter, format_value


def test_type_scoped_templates():
    formatter = MessageFormatter()

    assert formatter.format("min", "fallback", {"min": 3}, scope="string", field="name") == \
        "The name field must be at least 3 characters."
    assert formatter.format("min", "fallback", {"min": 3}, scope="numeric", field="age") == \
        "The age field must be at least 3."
    assert formatter.format("min", "fallback", {"min": 3}, scope="array", field="tags") == \
        "The tags field must have at least 3 items."


def test_fallback_when_no_template_exists():
    formatter = MessageFormatter()
    assert formatter.format("sparkly", "The :attribute must sparkle.", field="gem") == "The gem must sparkle."


def test_unknown_placeholders_are_left_intact():
    assert MessageFormatter.replace_placeholders("Hello :who, meet :name", {"name": "Ada"}) == \
        "Hello :who, meet Ada"


def test_placeholders_do_not_match_times_or_urls():
    text = MessageFormatter.replace_placeholders("At 10:30 see https://x.io", {"30": "no"})
    assert text == "At 10:30 see https://x.io"


def test_capitalized_placeholders():
    text = MessageFormatter.replace_placeholders(":Attribute / :ATTRIBUTE", {"attribute": "email"})
    assert text == "Email / EMAIL"


def test_format_value():
    assert format_value(["a", "b"]) == "a, b"
    assert format_value(True) == "true"
    assert format_value(None) == "null"


def test_field_override_takes_precedence():
    formatter = MessageFormatter(overrides={
        "email.required": "We need your email.",
        "required": "Missing :attribute.",
    })

    assert formatter.format("required", "fallback", field="email") == "We need your email."
    assert formatter.format("required", "fallback", field="name") == "Missing name."


def test_override_by_schema_pattern():
    formatter = MessageFormatter(overrides={"items.*.sku.required": "Every item needs a SKU."})
    message = formatter.format("required", "fallback", field="items.3.sku", pattern="items.*.sku")
    assert message == "Every item needs a SKU."


def test_nested_custom_overrides():
    formatter = MessageFormatter(overrides={"custom": {"age": {"min": "Too young (:min+)."}}})
    assert formatter.format("min", "fallback", {"min": 18}, scope="numeric", field="age") == "Too young (18+)."


def test_flat_scoped_override():
    formatter = MessageFormatter(overrides={"min.string": "Short :attribute."})
    assert formatter.format("min", "fallback", {"min": 3}, scope="string", field="bio") == "Short bio."
    assert formatter.format("min", "fallback", {"min": 3}, scope="numeric", field="age") == \
        "The age field must be at least 3."


def test_attribute_names():
    formatter = MessageFormatter(attributes={"dob": "date of birth", "items.*.sku": "SKU"})

    assert formatter.format("required", "fb", field="dob") == "The date of birth field is required."
    assert formatter.format("required", "fb", field="items.0.sku", pattern="items.*.sku") == \
        "The SKU field is required."


def test_french_catalog():
    result = validate({}, {"nom": "required"}, {"locale": "fr"})
    assert result.errors["nom"] == ["Le champ nom est obligatoire."]


def test_partial_catalog_falls_back_to_english_keys():
    fr = get_catalog("fr")
    en = get_catalog("en")
    assert fr["required"] != en["required"]
    for key in en:
        assert key in fr


def test_unknown_locale_uses_english():
    assert get_catalog("xx") == get_catalog("en")
    result = validate({}, {"name": "required"}, {"locale": "xx"})
    assert result.errors["name"] == ["The name field is required."]


def test_shipped_locales():
    assert {"en", "fr", "es"} <= set(available_locales())


def test_registered_catalog():
    register_catalog("pirate", {"required": "Arr, :attribute be missin'!"})

    assert "pirate" in available_locales()
    result = validate({}, {"treasure": "required"}, {"locale": "pirate"})
    assert result.errors["treasure"] == ["Arr, treasure be missin'!"]
