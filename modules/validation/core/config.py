"""
Per-call validation configuration.

Defaults come from the process Settings; every field can be overridden per
Validator. Both snake_case and the camelCase option names are accepted.
"""

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from shared.utils.config import settings


ResponseType = Literal["laravel", "flat", "grouped", "nested"]

_CAMEL_ALIASES = {
    "autoTrim": "auto_trim",
    "convertEmptyStringToNull": "convert_empty_string_to_null",
    "responseType": "response_type",
}


class ValidationConfig(BaseModel):
    """
    Options recognized by the engine.

    Example:
        config = ValidationConfig(bail=False, responseType="flat")
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bail: bool = Field(default_factory=lambda: settings.VALIDATION_BAIL)
    auto_trim: bool = Field(
        default_factory=lambda: settings.VALIDATION_AUTO_TRIM,
        alias="autoTrim"
    )
    convert_empty_string_to_null: bool = Field(
        default_factory=lambda: settings.VALIDATION_EMPTY_STRING_TO_NULL,
        alias="convertEmptyStringToNull"
    )
    locale: str = Field(default_factory=lambda: settings.VALIDATION_LOCALE)

    # Catalog overrides: flat ("min.string", "email.required") or nested maps
    messages: Dict[str, Any] = Field(default_factory=dict)

    # Display names substituted for :attribute, keyed by field path or schema key
    attributes: Dict[str, str] = Field(default_factory=dict)

    response_type: ResponseType = Field(
        default_factory=lambda: settings.VALIDATION_RESPONSE_TYPE,
        alias="responseType"
    )

    # Validate field instances concurrently (report order is unchanged)
    parallel: bool = False

    @classmethod
    def build(
        cls,
        options: Union["ValidationConfig", Dict[str, Any], None] = None,
        **overrides: Any
    ) -> "ValidationConfig":
        """
        Create a config from an existing config, a dict of options, or nothing.

        Args:
            options: Base options
            **overrides: Individual options taking precedence over `options`

        Returns:
            New ValidationConfig (the input is never modified)
        """
        if isinstance(options, ValidationConfig):
            values = options.model_dump()
        else:
            values = _normalize_keys(options or {})
        values.update(_normalize_keys(overrides))
        return cls.model_validate(values)

    def merged(self, **overrides: Any) -> "ValidationConfig":
        """Copy of this config with some options replaced"""
        return ValidationConfig.build(self, **overrides)


def _normalize_keys(options: Dict[str, Any]) -> Dict[str, Any]:
    return {_CAMEL_ALIASES.get(key, key): value for key, value in options.items()}


def get_default_config() -> ValidationConfig:
    """Config built purely from Settings"""
    return ValidationConfig()


def resolve_config(config: Optional[Union[ValidationConfig, Dict[str, Any]]]) -> ValidationConfig:
    if config is None:
        return get_default_config()
    return ValidationConfig.build(config)
