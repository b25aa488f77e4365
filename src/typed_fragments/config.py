"""Generator configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from typed_fragments.errors import ConfigurationError
from typed_fragments.naming import NestedModelBehavior

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "graphql_generated"


class GeneratorConfig(BaseModel):
    """Options controlling resolution, naming and placement.

    Options may be given by their snake_case names or by the camelCase
    names used in JSON configuration files. Invalid values raise
    ConfigurationError.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    namespace: StrictStr = Field(default=DEFAULT_NAMESPACE, min_length=1)
    emit_immutable_value_types: StrictBool = True
    generate_doc_comments: StrictBool = True
    use_schema_for_type_inference: StrictBool = True
    schema_file_paths: list[StrictStr] = Field(default_factory=list)
    custom_scalar_mappings: dict[StrictStr, StrictStr] = Field(default_factory=dict)
    validate_non_nullable_fields: StrictBool = True
    include_field_descriptions: StrictBool = True
    nested_model_behavior: NestedModelBehavior = NestedModelBehavior.NESTED
    max_nested_depth: StrictInt = Field(default=0, ge=0)  # 0 means unlimited
    custom_model_name_mappings: dict[StrictStr, StrictStr] = Field(default_factory=dict)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(_describe(e)) from e

    @field_validator("nested_model_behavior", mode="before")
    @classmethod
    def _behavior_by_name(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        try:
            return NestedModelBehavior(value.lower())
        except ValueError:
            choices = ", ".join(b.value for b in NestedModelBehavior)
            raise ValueError(
                f"Invalid nested_model_behavior '{value}' (expected one of: {choices})"
            ) from None

    @field_validator("schema_file_paths", mode="before")
    @classmethod
    def _single_path(cls, value: Any) -> Any:
        return [value] if isinstance(value, str) else value

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GeneratorConfig:
        """Build a config from a mapping with snake_case or camelCase keys.

        Raises:
            ConfigurationError: On unknown keys or values of the wrong type.
        """
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def load_config(path: Path | str) -> GeneratorConfig:
    """Load a GeneratorConfig from a JSON file.

    Relative schema file paths are resolved against the config file's
    directory.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top-level value must be an object")

    config = GeneratorConfig.from_dict(data)
    schema_file_paths = [
        str(p if Path(p).is_absolute() else path.parent / p)
        for p in config.schema_file_paths
    ]
    logger.debug("Loaded configuration from %s", path)
    return config.model_copy(update={"schema_file_paths": schema_file_paths})


def _describe(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        if item["type"] == "extra_forbidden":
            messages.append(f"Unknown configuration option '{location}'")
        else:
            messages.append(f"{location}: {item['msg']}")
    return "; ".join(messages)
