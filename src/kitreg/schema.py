"""Kit schema loading using Pydantic.

This module loads schemas/kit.schema.json, the JSON Schema document that
defines the fields of a kit metadata file. Only the keywords the registry
checks are modelled; everything else in the document is kept but ignored.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kitreg.errors import format_validation_errors


class SchemaLoadError(Exception):
    """Raised when the kit schema cannot be read or parsed."""


class PropertySchema(BaseModel):
    """Constraints declared for a single property."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str | None = Field(default=None, description="Expected JSON type")
    enum: list[Any] | None = Field(default=None, description="Allowed values")
    format: str | None = Field(default=None, description="String format hint (date, uri)")
    max_length: int | None = Field(default=None, alias="maxLength")
    min_items: int | None = Field(default=None, alias="minItems")
    properties: dict[str, "PropertySchema"] | None = Field(
        default=None,
        description="Nested property definitions for objects",
    )


class KitSchema(BaseModel):
    """Root of the kit metadata JSON Schema."""

    model_config = ConfigDict(extra="allow")

    properties: dict[str, PropertySchema]
    required: list[str] = Field(default_factory=list)

    def is_known_property(self, name: str) -> bool:
        """Check whether a top-level property is declared by the schema."""
        return name in self.properties


def load_schema(schema_path: Path) -> KitSchema:
    """Load and parse the kit schema document.

    Args:
        schema_path: Path to kit.schema.json.

    Returns:
        Parsed KitSchema instance.

    Raises:
        SchemaLoadError: If the file is missing, is not valid JSON, or does
            not look like a schema with a properties object.
    """
    try:
        content = schema_path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Failed to load schema from {schema_path}: {e.strerror or e}"
        raise SchemaLoadError(msg) from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        msg = f"Failed to load schema from {schema_path}: {e}"
        raise SchemaLoadError(msg) from e

    try:
        return KitSchema.model_validate(data)
    except ValidationError as e:
        clean_errors = format_validation_errors(e)
        msg = f"Invalid schema '{schema_path}': {clean_errors}"
        raise SchemaLoadError(msg) from e
