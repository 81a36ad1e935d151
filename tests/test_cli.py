"""Tests for the kitreg CLI commands."""

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from kitreg import exit_codes
from kitreg.cli import app
from tests.conftest import KitFactory


class TestValidateCommand:
    """Tests for `kitreg validate`."""

    def test_valid_registry_passes(self, cli_runner: CliRunner, add_kit: KitFactory) -> None:
        """All-valid kits exit 0 with a summary."""
        # Given
        add_kit()
        add_kit(slug="beta-kit", type="api")

        # When
        result = cli_runner.invoke(app, ["validate"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "All validations passed!" in result.stdout
        assert "2 kit file(s) validated successfully" in result.stdout
        assert "2 unique slug(s) verified" in result.stdout

    def test_errors_fail_with_full_list(
        self, cli_runner: CliRunner, add_kit: KitFactory
    ) -> None:
        """Every error is printed with its file before exiting 1."""
        # Given
        add_kit(difficulty="expert")
        add_kit(slug="beta-kit", status="archived")

        # When
        result = cli_runner.invoke(app, ["validate"])

        # Then
        assert result.exit_code == exit_codes.GENERAL_ERROR
        assert "Errors (2):" in result.stdout
        assert "alpha-kit.json: Field 'difficulty' has invalid value 'expert'" in result.stdout
        assert "beta-kit.json: Field 'status' has invalid value 'archived'" in result.stdout
        assert "Validation failed with 2 error(s)" in result.stdout

    def test_warnings_do_not_fail(self, cli_runner: CliRunner, add_kit: KitFactory) -> None:
        """Warnings are shown but the run still succeeds."""
        add_kit(requirements={"ruby": ">=3"})

        result = cli_runner.invoke(app, ["validate"])

        assert result.exit_code == exit_codes.SUCCESS
        assert "Warnings (1):" in result.stdout
        assert "Unknown requirement 'ruby'" in result.stdout

    def test_single_file_target(
        self,
        cli_runner: CliRunner,
        add_kit: KitFactory,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A file path relative to the registry root validates just that file."""
        # Given
        add_kit()
        add_kit(slug="broken-kit", difficulty="expert")
        monkeypatch.chdir(tmp_path)

        # When
        result = cli_runner.invoke(app, ["validate", "kits/saas/alpha-kit.json"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "Validating kit file:" in result.stdout
        assert "1 kit file(s) validated successfully" in result.stdout

    def test_directory_target(self, cli_runner: CliRunner, add_kit: KitFactory, kits_dir: Path) -> None:
        """A category directory validates only the kits beneath it."""
        add_kit(type="api")
        add_kit(slug="broken-kit", difficulty="expert")

        result = cli_runner.invoke(app, ["validate", str(kits_dir / "api")])

        assert result.exit_code == exit_codes.SUCCESS
        assert "Validating kits in:" in result.stdout

    def test_missing_target(self, cli_runner: CliRunner, registry_root: Path) -> None:
        """A nonexistent target fails before any file is checked."""
        result = cli_runner.invoke(app, ["validate", "kits/nowhere"])

        assert result.exit_code == exit_codes.TARGET_NOT_FOUND
        assert "Path not found: kits/nowhere" in result.stdout
        assert "Errors" not in result.stdout

    def test_empty_directory(self, cli_runner: CliRunner, kits_dir: Path) -> None:
        """An empty kits directory has nothing to validate."""
        result = cli_runner.invoke(app, ["validate"])

        assert result.exit_code == exit_codes.GENERAL_ERROR
        assert "No JSON files found" in result.stdout

    def test_non_json_target(self, cli_runner: CliRunner, kits_dir: Path) -> None:
        """A file that is not JSON is an invalid target."""
        notes = kits_dir / "notes.md"
        notes.write_text("notes")

        result = cli_runner.invoke(app, ["validate", str(notes)])

        assert result.exit_code == exit_codes.INVALID_ARGS
        assert "Invalid target" in result.stdout

    def test_missing_schema(
        self, cli_runner: CliRunner, registry_root: Path, add_kit: KitFactory
    ) -> None:
        """Validation cannot run without the kit schema."""
        add_kit()
        (registry_root / "schemas" / "kit.schema.json").unlink()

        result = cli_runner.invoke(app, ["validate"])

        assert result.exit_code == exit_codes.SCHEMA_INVALID
        assert "Failed to load schema" in result.stdout

    def test_invalid_config(
        self, cli_runner: CliRunner, registry_root: Path, add_kit: KitFactory
    ) -> None:
        """A broken kitreg.yaml is reported as a configuration error."""
        add_kit()
        (registry_root / "kitreg.yaml").write_text(yaml.dump({"kits_folder": "kits"}))

        result = cli_runner.invoke(app, ["validate"])

        assert result.exit_code == exit_codes.CONFIG_INVALID
        assert "kits_folder" in result.stdout

    def test_config_repo_hosts(
        self, cli_runner: CliRunner, registry_root: Path, add_kit: KitFactory
    ) -> None:
        """Hosting domains from kitreg.yaml are used for repository checks."""
        add_kit(repo="https://gitlab.com/example/alpha-kit")
        (registry_root / "kitreg.yaml").write_text(yaml.dump({"repo_hosts": ["gitlab.com"]}))

        result = cli_runner.invoke(app, ["validate"])

        assert result.exit_code == exit_codes.SUCCESS

    def test_root_option_overrides_env(
        self,
        cli_runner: CliRunner,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        registry_root: Path,
        add_kit: KitFactory,
    ) -> None:
        """--root takes precedence over KITREG_ROOT."""
        add_kit()
        monkeypatch.setenv("KITREG_ROOT", str(tmp_path / "elsewhere"))

        result = cli_runner.invoke(app, ["--root", str(registry_root), "validate"])

        assert result.exit_code == exit_codes.SUCCESS


class TestIndexCommand:
    """Tests for `kitreg index`."""

    def test_writes_index(
        self, cli_runner: CliRunner, registry_root: Path, add_kit: KitFactory
    ) -> None:
        """The index is written to the registry root with a summary."""
        # Given
        add_kit()
        add_kit(slug="beta-kit", type="api")

        # When
        result = cli_runner.invoke(app, ["index"])

        # Then
        assert result.exit_code == exit_codes.SUCCESS
        assert "index.json generated successfully" in result.stdout
        assert "Total kits: 2" in result.stdout
        data = json.loads((registry_root / "index.json").read_text())
        assert data["total_kits"] == 2
        assert data["categories"] == {"api": 1, "saas": 1}

    def test_skipped_kits_reported(
        self, cli_runner: CliRunner, registry_root: Path, add_kit: KitFactory, kits_dir: Path
    ) -> None:
        """Unindexable files are skipped, counted and do not fail the run."""
        add_kit()
        (kits_dir / "saas" / "broken.json").write_text("{")

        result = cli_runner.invoke(app, ["index"])

        assert result.exit_code == exit_codes.SUCCESS
        assert "Skipped 1 invalid kit file(s)" in result.stdout

    def test_no_valid_kits(
        self, cli_runner: CliRunner, registry_root: Path, kits_dir: Path
    ) -> None:
        """Nothing is written when no kit can be indexed."""
        (kits_dir / "saas").mkdir()
        (kits_dir / "saas" / "broken.json").write_text("{")

        result = cli_runner.invoke(app, ["index"])

        assert result.exit_code == exit_codes.GENERAL_ERROR
        assert "No valid kits found to index" in result.stdout
        assert not (registry_root / "index.json").exists()

    def test_unwritable_index_fails_cleanly(
        self, cli_runner: CliRunner, registry_root: Path, add_kit: KitFactory
    ) -> None:
        """Metadata that cannot be written as UTF-8 fails without stray files."""
        # Given
        add_kit(name="Alpha \ud800")

        # When
        result = cli_runner.invoke(app, ["index"])

        # Then
        assert result.exit_code == exit_codes.GENERAL_ERROR
        assert "Failed to write index.json" in result.stdout
        assert sorted(p.name for p in registry_root.iterdir()) == ["kits", "schemas"]

    def test_no_kit_files(self, cli_runner: CliRunner, kits_dir: Path) -> None:
        """An empty kits directory cannot be indexed."""
        result = cli_runner.invoke(app, ["index"])

        assert result.exit_code == exit_codes.GENERAL_ERROR
        assert "No kit metadata files found" in result.stdout

    def test_missing_kits_directory(self, cli_runner: CliRunner, registry_root: Path) -> None:
        """A registry without kits/ is reported as a missing directory."""
        (registry_root / "kits").rmdir()

        result = cli_runner.invoke(app, ["index"])

        assert result.exit_code == exit_codes.TARGET_NOT_FOUND
        assert "Directory does not exist" in result.stdout

    def test_check_passes_when_current(
        self, cli_runner: CliRunner, registry_root: Path, add_kit: KitFactory
    ) -> None:
        """--check succeeds right after the index was generated."""
        add_kit()
        cli_runner.invoke(app, ["index"])

        result = cli_runner.invoke(app, ["index", "--check"])

        assert result.exit_code == exit_codes.SUCCESS
        assert "index.json is up to date" in result.stdout

    def test_check_fails_when_stale_and_does_not_write(
        self, cli_runner: CliRunner, registry_root: Path, add_kit: KitFactory
    ) -> None:
        """--check reports a stale index and leaves it untouched."""
        # Given
        add_kit()
        cli_runner.invoke(app, ["index"])
        index_path = registry_root / "index.json"
        before = index_path.read_text()
        add_kit(slug="beta-kit", type="api")

        # When
        result = cli_runner.invoke(app, ["index", "--check"])

        # Then
        assert result.exit_code == exit_codes.GENERAL_ERROR
        assert "out of date" in result.stdout
        assert index_path.read_text() == before
