"""Kit metadata file discovery.

Resolves command line targets and walks directories for *.json files.
Directory entries are visited in name order so every run sees the files in
the same sequence, which keeps duplicate-slug reporting deterministic.
"""

from pathlib import Path

KIT_FILE_SUFFIX = ".json"


class KitPathNotFoundError(Exception):
    """Raised when a target path or the kits directory does not exist."""

    def __init__(self, path: Path | str) -> None:
        self.path = path
        super().__init__(f"Path not found: {path}")


class InvalidTargetError(Exception):
    """Raised when a target is neither a directory nor a .json file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Invalid target '{path}'. Must be a directory or .json file")


class NoKitFilesError(Exception):
    """Raised when a directory contains no kit metadata files."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"No JSON files found in: {path}")


def find_kit_files(directory: Path) -> list[Path]:
    """Recursively collect all .json files under a directory.

    Args:
        directory: Directory to scan.

    Returns:
        Paths in depth-first, name-sorted order. May be empty.

    Raises:
        KitPathNotFoundError: If the directory does not exist.
    """
    if not directory.is_dir():
        raise KitPathNotFoundError(directory)

    files: list[Path] = []
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            files.extend(find_kit_files(entry))
        elif entry.name.endswith(KIT_FILE_SUFFIX):
            files.append(entry)
    return files


def resolve_target(target: str | None, root: Path, default: Path) -> Path:
    """Resolve a validation target to an existing path.

    A target that exists as given wins; otherwise it is looked up relative
    to the registry root.

    Args:
        target: Path given on the command line, or None for the default.
        root: Registry root used for relative lookups.
        default: Path used when no target is given.

    Returns:
        The existing path to validate.

    Raises:
        KitPathNotFoundError: If neither candidate exists.
    """
    if target is None:
        if not default.exists():
            raise KitPathNotFoundError(default)
        return default

    candidate = Path(target)
    if candidate.exists():
        return candidate

    rooted = root / target
    if rooted.exists():
        return rooted

    raise KitPathNotFoundError(target)


def collect_target_files(target: Path) -> list[Path]:
    """Expand a resolved target into the kit files it covers.

    Raises:
        InvalidTargetError: If the target is a file without a .json suffix.
        NoKitFilesError: If a directory target holds no .json files.
    """
    if target.is_dir():
        files = find_kit_files(target)
        if not files:
            raise NoKitFilesError(target)
        return files

    if target.is_file() and target.name.endswith(KIT_FILE_SUFFIX):
        return [target]

    raise InvalidTargetError(target)
