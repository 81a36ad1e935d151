"""Registry root resolution and settings.

The registry root is the checkout that holds kits/, schemas/ and the
generated index.json. An optional kitreg.yaml at the root overrides the
default layout and the registry-specific validation settings.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kitreg.errors import format_validation_errors

# Environment variable for a custom registry root
KITREG_ROOT_ENV_VAR = "KITREG_ROOT"

CONFIG_FILE = "kitreg.yaml"


class RegistryConfig(BaseModel):
    """Settings loaded from kitreg.yaml."""

    model_config = ConfigDict(extra="forbid")

    kits_dir: str = Field(default="kits", description="Directory holding kit metadata files")
    schema_file: str = Field(
        default="schemas/kit.schema.json",
        description="Path to the kit JSON Schema",
    )
    index_file: str = Field(default="index.json", description="Generated index location")
    repo_hosts: list[str] = Field(
        default_factory=lambda: ["github.com"],
        description="Hosting domains accepted in the repo field",
    )
    allowed_requirements: list[str] = Field(
        default_factory=lambda: ["node", "python", "docker"],
        description="Keys permitted in the requirements object",
    )


class Registry:
    """Resolved locations of a registry checkout."""

    def __init__(self, root: Path, config: RegistryConfig) -> None:
        self.root = root
        self.config = config

    @property
    def kits_dir(self) -> Path:
        return self.root / self.config.kits_dir

    @property
    def schema_path(self) -> Path:
        return self.root / self.config.schema_file

    @property
    def index_path(self) -> Path:
        return self.root / self.config.index_file


def get_registry_root() -> Path:
    """Get the registry root directory.

    Resolution order:
    1. KITREG_ROOT environment variable (if set)
    2. Default: the current working directory

    Returns:
        Path to the registry root.
    """
    env_value = os.environ.get(KITREG_ROOT_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    return Path.cwd()


def load_config(root: Path) -> RegistryConfig:
    """Load and validate kitreg.yaml from the registry root.

    A missing file is not an error; the defaults describe the standard
    registry layout.

    Args:
        root: Path to the registry root.

    Returns:
        Validated RegistryConfig instance.

    Raises:
        ValueError: If YAML is invalid or schema validation fails.
    """
    config_path = root / CONFIG_FILE
    if not config_path.exists():
        return RegistryConfig()

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in '{config_path}': {e}"
        raise ValueError(msg) from e

    if data is None:
        return RegistryConfig()

    try:
        return RegistryConfig.model_validate(data)
    except ValidationError as e:
        clean_errors = format_validation_errors(e)
        msg = f"Invalid config '{config_path}': {clean_errors}"
        raise ValueError(msg) from e


def open_registry(root: Path | None = None) -> Registry:
    """Resolve the registry root and load its settings."""
    resolved = root if root is not None else get_registry_root()
    return Registry(resolved, load_config(resolved))
