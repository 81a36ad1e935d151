"""Kit metadata validation.

Checks kit metadata files against the kit schema and the registry-wide
invariants: unique slugs, kit type matching its directory, and repository
URL shape. Every check runs for every file so a contributor sees all
problems in one pass.
"""

import json
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from kitreg.rules import RuleTable, build_rule_table
from kitreg.schema import KitSchema
from kitreg.validation import Issue, Severity, ValidationReport


class KitValidator:
    """Validates kit metadata files for one run.

    The slug registry lives on the instance, so slugs are unique across all
    files passed to the same validator. Create a new validator per run.
    """

    def __init__(
        self,
        schema: KitSchema,
        repo_hosts: Sequence[str] = ("github.com",),
        allowed_requirements: Sequence[str] = ("node", "python", "docker"),
    ) -> None:
        self.schema = schema
        self.rules: RuleTable = build_rule_table(schema, repo_hosts, allowed_requirements)
        self.report = ValidationReport()
        # slug -> path of the first file that declared it
        self._slugs: dict[str, Path] = {}

    def validate_files(self, paths: Iterable[Path]) -> ValidationReport:
        """Validate files in order and return the accumulated report."""
        for path in paths:
            self.validate_file(path)
        return self.report

    def validate_file(self, path: Path) -> None:
        """Parse and validate a single kit metadata file.

        A file that cannot be parsed records one error and gets no
        further checks.
        """
        self.report.file_count += 1
        try:
            kit = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self._error(path, f"Failed to parse JSON - {e}")
            return

        if not isinstance(kit, dict):
            self._error(path, "Failed to parse JSON - top-level value must be an object")
            return

        self.validate_kit(kit, path)

    def validate_kit(self, kit: dict[str, Any], path: Path) -> None:
        """Validate an already-parsed kit document attributed to path."""
        for prop in kit:
            if not self.schema.is_known_property(prop):
                self._error(path, f"Unknown property '{prop}' (not allowed by schema)")

        for field in self.schema.required:
            if field not in kit:
                self._error(path, f"Missing required field '{field}'")

        for key, value in kit.items():
            for rule in self.rules.get(key, []):
                for message in rule.check(key, value):
                    self.report.add(Issue(path, message, rule.severity))

        expected_dir = path.parent.name
        kit_type = kit.get("type")
        if kit_type and kit_type != expected_dir:
            self._error(path, f"Kit type '{kit_type}' does not match directory '{expected_dir}'")

        self._check_slug(kit.get("slug"), path)

    def _check_slug(self, slug: Any, path: Path) -> None:
        if not slug or not isinstance(slug, str):
            return
        first_seen = self._slugs.get(slug)
        if first_seen is not None:
            self._error(
                path,
                f"Duplicate slug '{slug}'. Slugs must be unique across all kits "
                f"(first used in {first_seen}).",
            )
            return
        self._slugs[slug] = path
        self.report.unique_slugs = len(self._slugs)

    def _error(self, path: Path, message: str) -> None:
        self.report.add(Issue(path, message, Severity.ERROR))
