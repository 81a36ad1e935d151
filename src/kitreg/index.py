"""Registry index generation.

Builds index.json from every kit metadata file in the registry. Unlike
validation, indexing is best-effort: files that cannot be indexed are
skipped with a warning and the run carries on with the rest.
"""

import json
import os
import stat
import tempfile
from collections import Counter
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.markup import escape

from kitreg import cli_logger
from kitreg.discovery import NoKitFilesError, find_kit_files
from kitreg.errors import format_validation_errors
from kitreg.index_schema import KitSummary, RegistryIndexSchema, StackHistogram

INDEX_REQUIRED_FIELDS = (
    "name",
    "slug",
    "repo",
    "type",
    "stack",
    "features",
    "difficulty",
    "status",
    "license",
    "maintainers",
    "created_at",
    "last_updated",
)

# stack key in kit metadata -> histogram name in the index
STACK_HISTOGRAMS = {
    "language": "languages",
    "frontend": "frontends",
    "backend": "backends",
    "database": "databases",
    "infrastructure": "infrastructures",
}


class EmptyIndexError(Exception):
    """Raised when no kit survives filtering, so there is nothing to index."""


class IndexWriteError(Exception):
    """Raised when index.json cannot be written."""


@dataclass
class IndexBuild:
    """Outcome of building the index in memory."""

    index: RegistryIndexSchema
    file_count: int
    skipped: int


def _is_blank(value: Any) -> bool:
    # absent, null, empty string, false or zero
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    return value is None or value == ""


def _missing_field(kit: dict[str, Any]) -> str | None:
    for field in INDEX_REQUIRED_FIELDS:
        if _is_blank(kit.get(field)):
            return field
    return None


def _read_kit(path: Path) -> dict[str, Any] | None:
    """Parse a kit file, warning and returning None when it is unusable."""
    try:
        kit = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        cli_logger.warning(escape(f"Skipping invalid JSON in {path}: {e}"))
        return None
    if not isinstance(kit, dict):
        cli_logger.warning(escape(f"Skipping invalid JSON in {path}: top-level value must be an object"))
        return None
    return kit


def _count(values: list[str]) -> dict[str, int]:
    return dict(Counter(values))


def _stack_histogram(documents: list[dict[str, Any]]) -> StackHistogram:
    counters: dict[str, Counter[str]] = {name: Counter() for name in STACK_HISTOGRAMS.values()}
    for kit in documents:
        stack = kit.get("stack")
        if not isinstance(stack, dict):
            continue
        for key, histogram in STACK_HISTOGRAMS.items():
            entries = stack.get(key)
            if not isinstance(entries, list):
                continue
            counters[histogram].update(item for item in entries if isinstance(item, str))
    return StackHistogram(**{name: dict(counter) for name, counter in counters.items()})


def build_index(kit_files: list[Path], today: date | None = None) -> IndexBuild:
    """Build the registry index from kit files, in memory.

    Files are processed in the given order. The first file to claim a slug
    keeps it; later files with the same slug are skipped. Stack histograms
    count every parseable file, including skipped ones.

    Args:
        kit_files: Kit metadata files in scan order.
        today: Generation date. Defaults to the current date.

    Returns:
        IndexBuild with the index and skip statistics.

    Raises:
        EmptyIndexError: If no kit could be indexed.
    """
    summaries: list[KitSummary] = []
    documents: list[dict[str, Any]] = []
    slugs: set[str] = set()
    skipped = 0

    for path in kit_files:
        kit = _read_kit(path)
        if kit is None:
            skipped += 1
            continue
        documents.append(kit)

        slug = kit.get("slug")
        if isinstance(slug, str) and slug:
            if slug in slugs:
                cli_logger.warning(escape(f"Skipping duplicate slug: {slug} in {path}"))
                skipped += 1
                continue
            slugs.add(slug)

        missing = _missing_field(kit)
        if missing is not None:
            cli_logger.warning(escape(f"Skipping kit with missing required field '{missing}': {path}"))
            skipped += 1
            continue

        try:
            summaries.append(
                KitSummary.model_validate(
                    {
                        "name": kit["name"],
                        "slug": kit["slug"],
                        "type": kit["type"],
                        "repo": kit["repo"],
                        "description": kit.get("description") or "",
                        "tags": kit.get("tags") or [],
                        "difficulty": kit["difficulty"],
                        "status": kit["status"],
                        "maintainers": kit["maintainers"],
                        "last_updated": kit["last_updated"],
                    }
                )
            )
        except ValidationError as e:
            cli_logger.warning(
                escape(f"Skipping kit with invalid values in {path}: {format_validation_errors(e)}")
            )
            skipped += 1

    if not summaries:
        msg = "No valid kits found to index"
        raise EmptyIndexError(msg)

    summaries.sort(key=lambda kit: (kit.type, kit.name))

    index = RegistryIndexSchema(
        generated_at=(today or date.today()).isoformat(),
        total_kits=len(summaries),
        categories=_count([kit.type for kit in summaries]),
        difficulty=_count([kit.difficulty for kit in summaries]),
        status=_count([kit.status for kit in summaries]),
        tags=sorted({tag.lower() for kit in summaries for tag in kit.tags}),
        stacks=_stack_histogram(documents),
        kits=summaries,
    )
    return IndexBuild(index=index, file_count=len(kit_files), skipped=skipped)


def generate_index(kits_dir: Path, today: date | None = None) -> IndexBuild:
    """Scan the whole kits directory and build the index.

    Raises:
        KitPathNotFoundError: If the kits directory does not exist.
        NoKitFilesError: If it contains no kit files.
        EmptyIndexError: If no kit could be indexed.
    """
    kit_files = find_kit_files(kits_dir)
    if not kit_files:
        raise NoKitFilesError(kits_dir)
    return build_index(kit_files, today)


def serialize_index(index: RegistryIndexSchema) -> str:
    """Render the index as pretty-printed JSON."""
    return json.dumps(index.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"


def _target_mode(index_path: Path) -> int:
    """Keep an existing index's permissions, otherwise honour the umask."""
    try:
        return stat.S_IMODE(os.stat(index_path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_index(index: RegistryIndexSchema, index_path: Path) -> None:
    """Write the index through a temporary file and an atomic replace.

    An existing index is left untouched if anything fails, and no
    temporary file is left behind.

    Raises:
        IndexWriteError: If the index cannot be encoded or written.
    """
    try:
        content = serialize_index(index).encode("utf-8")
    except UnicodeEncodeError as e:
        msg = f"Failed to write {index_path.name}: {e.reason} in kit metadata"
        raise IndexWriteError(msg) from e

    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb",
            dir=index_path.parent,
            prefix=f".{index_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content)
        os.chmod(tmp_name, _target_mode(index_path))
        os.replace(tmp_name, index_path)
    except BaseException as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        if isinstance(e, OSError):
            msg = f"Failed to write {index_path.name}: {e.strerror or e}"
            raise IndexWriteError(msg) from e
        raise


def index_is_current(index: RegistryIndexSchema, index_path: Path) -> bool:
    """Compare a freshly built index with the one on disk, ignoring generated_at."""
    if not index_path.exists():
        return False
    try:
        existing = json.loads(index_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return False
    if not isinstance(existing, dict):
        return False

    fresh = index.model_dump(mode="json")
    existing.pop("generated_at", None)
    fresh.pop("generated_at", None)
    return existing == fresh
