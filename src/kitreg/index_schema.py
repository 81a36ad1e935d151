"""Registry index schema definitions using Pydantic.

This module defines the schema for the generated index.json, the aggregate
summary of every kit in the registry.
"""

from pydantic import BaseModel, Field


class KitSummary(BaseModel):
    """Public projection of a kit in the registry index."""

    name: str = Field(description="Display name")
    slug: str = Field(description="Unique kebab-case identifier")
    type: str = Field(description="Kit category, mirrored by its directory")
    repo: str = Field(description="Repository URL")
    description: str = Field(default="", description="Short description")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")
    difficulty: str = Field(description="beginner, intermediate or advanced")
    status: str = Field(description="Maintenance status")
    maintainers: list[str] = Field(description="Maintainer handles")
    last_updated: str = Field(description="Last update in YYYY-MM-DD format")


class StackHistogram(BaseModel):
    """Occurrence counts of each technology across all kits."""

    languages: dict[str, int] = Field(default_factory=dict)
    frontends: dict[str, int] = Field(default_factory=dict)
    backends: dict[str, int] = Field(default_factory=dict)
    databases: dict[str, int] = Field(default_factory=dict)
    infrastructures: dict[str, int] = Field(default_factory=dict)


class RegistryIndexSchema(BaseModel):
    """Root schema for index.json."""

    generated_at: str = Field(description="Generation date in YYYY-MM-DD format")
    total_kits: int = Field(description="Number of kits in the index")
    categories: dict[str, int] = Field(default_factory=dict, description="Kits per type")
    difficulty: dict[str, int] = Field(default_factory=dict, description="Kits per difficulty")
    status: dict[str, int] = Field(default_factory=dict, description="Kits per status")
    tags: list[str] = Field(default_factory=list, description="Lowercase tag vocabulary")
    stacks: StackHistogram = Field(default_factory=StackHistogram)
    kits: list[KitSummary] = Field(default_factory=list, description="Kits sorted by type and name")
