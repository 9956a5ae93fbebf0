import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ErrorContext, ParseError
from .ir import FindingKind

logger = logging.getLogger(__name__)

MANIFEST_FILE = "sassy.toml"


@dataclass
class BuildConfig:
    """Build output configuration."""

    output_dir: str = "."
    workers: int = 1  # resolver threads
    fetch_workers: int = 4  # concurrent import fetches


@dataclass
class LintConfig:
    """Lint configuration."""

    strict: bool = False  # warnings fail the lint command
    disabled: list[str] = field(default_factory=list)

    @property
    def disabled_kinds(self) -> set[FindingKind]:
        return {FindingKind(name) for name in self.disabled}


@dataclass
class ProjectManifest:
    build: BuildConfig = field(default_factory=BuildConfig)
    lint: LintConfig = field(default_factory=LintConfig)
    path: Path | None = None


def find_manifest(start: Path) -> Path | None:
    """Look for sassy.toml in ``start`` and its parents."""
    directory = start if start.is_dir() else start.parent
    for candidate in (directory, *directory.resolve().parents):
        manifest = candidate / MANIFEST_FILE
        if manifest.exists():
            return manifest
    return None


def _positive_int(table: dict, key: str, default: int, path: Path) -> int:
    value = table.get(key, default)
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = 0
    if isinstance(value, bool) or number < 1:
        raise ParseError(
            f"[build].{key} must be a positive integer, got {value!r}",
            ErrorContext(document=str(path), key=f"build.{key}"),
        )
    return number


def load_manifest(path: Path | None, *, required: bool = False) -> ProjectManifest:
    """Load sassy.toml, falling back to defaults when there is none.

    Args:
        path: Manifest location, usually from find_manifest()
        required: The path was given explicitly and must exist

    Raises:
        ParseError: If the file is invalid or a required file is missing.
    """
    if required and (path is None or not path.exists()):
        raise ParseError(f"Manifest not found: {path}", ErrorContext(document=str(path)))
    if path is None or not path.exists():
        logger.debug("No sassy.toml found, using defaults")
        return ProjectManifest()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ParseError(f"Invalid TOML in {path}: {e}", ErrorContext(document=str(path))) from e

    build_data = data.get("build", {})
    lint_data = data.get("lint", {})

    build = BuildConfig(
        output_dir=build_data.get("output_dir", "."),
        workers=_positive_int(build_data, "workers", 1, path),
        fetch_workers=_positive_int(build_data, "fetch_workers", 4, path),
    )
    lint = LintConfig(
        strict=bool(lint_data.get("strict", False)),
        disabled=list(lint_data.get("disabled", [])),
    )

    known = {kind.value for kind in FindingKind}
    unknown = [name for name in lint.disabled if name not in known]
    if unknown:
        raise ParseError(
            f"Unknown lint check(s) in [lint].disabled: {', '.join(unknown)}",
            ErrorContext(document=str(path), key="lint.disabled"),
        )

    return ProjectManifest(build=build, lint=lint, path=path)
