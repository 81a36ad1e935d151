"""Shared test fixtures for kitreg tests."""

import json
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from kitreg.schema import KitSchema, load_schema

REPO_ROOT = Path(__file__).resolve().parent.parent
SCHEMA_SOURCE = REPO_ROOT / "schemas" / "kit.schema.json"


def make_kit(**overrides: Any) -> dict[str, Any]:
    """Build a valid kit document, with overrides applied on top.

    Helper function for tests that need slightly different kits. Remove a
    field from the result with `del kit["field"]` after calling.
    """
    kit: dict[str, Any] = {
        "name": "Alpha Kit",
        "slug": "alpha-kit",
        "repo": "https://github.com/example/alpha-kit",
        "type": "saas",
        "description": "A starter kit for tests",
        "stack": {
            "language": ["TypeScript"],
            "frontend": ["React"],
            "database": ["PostgreSQL"],
        },
        "features": ["Authentication"],
        "difficulty": "beginner",
        "status": "active",
        "license": "MIT",
        "maintainers": ["octocat"],
        "created_at": "2025-01-15",
        "last_updated": "2026-03-01",
        "tags": ["auth"],
    }
    kit.update(overrides)
    return kit


def write_kit(
    kits_dir: Path,
    kit: Any,
    *,
    directory: str | None = None,
    filename: str | None = None,
) -> Path:
    """Write a kit document as JSON under kits_dir.

    Args:
        kits_dir: The kits directory of the registry.
        kit: Document to serialize (usually from make_kit).
        directory: Sub-directory name. Defaults to the kit's type.
        filename: File name. Defaults to "<slug>.json".

    Returns:
        Path of the written file.
    """
    target_dir = kits_dir / (directory or kit["type"])
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / (filename or f"{kit['slug']}.json")
    path.write_text(json.dumps(kit, indent=2))
    return path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def kit_schema() -> KitSchema:
    """Load the kit schema shipped with the repository."""
    return load_schema(SCHEMA_SOURCE)


@pytest.fixture
def registry_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an empty registry with the kit schema and a kits/ directory.

    Sets KITREG_ROOT to the new registry and returns its path.
    """
    root = tmp_path / "registry"
    (root / "schemas").mkdir(parents=True)
    (root / "kits").mkdir()
    shutil.copy(SCHEMA_SOURCE, root / "schemas" / "kit.schema.json")
    monkeypatch.setenv("KITREG_ROOT", str(root))
    return root


@pytest.fixture
def kits_dir(registry_root: Path) -> Path:
    """Return the kits/ directory of the test registry."""
    return registry_root / "kits"


# Type alias for the kit factory function
KitFactory = Callable[..., Path]


@pytest.fixture
def add_kit(kits_dir: Path) -> KitFactory:
    """Factory fixture that writes a valid kit with overrides into the registry.

        path = add_kit(slug="beta-kit", type="api")
    """

    def _add(*, directory: str | None = None, filename: str | None = None, **overrides: Any) -> Path:
        return write_kit(kits_dir, make_kit(**overrides), directory=directory, filename=filename)

    return _add
