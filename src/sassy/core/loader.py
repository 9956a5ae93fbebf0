"""
Theme source loading.

Reads theme documents from disk and assembles the ordered import chain
the merger consumes. Sibling imports are fetched concurrently, but the
chain always lists them in declared order:

    chain(D) = [D, *chain(import_1), *chain(import_2), ...]

Each document appears once (first occurrence wins); an import cycle is a
ParseError.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import yaml

from .errors import ErrorContext, ParseError, SassyError, attach_import_chain
from .ir import ThemeDocument
from .source import parse_document

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".yaml", ".yml", ".json")


def resolve_import(reference: str, base_dir: Path) -> Path:
    """Resolve an import reference relative to the importing document.

    A reference without a suffix is tried with each known source suffix.
    """
    candidate = (base_dir / reference).expanduser()
    if candidate.suffix or candidate.exists():
        return candidate.resolve()
    for suffix in SOURCE_SUFFIXES:
        with_suffix = candidate.with_name(candidate.name + suffix)
        if with_suffix.exists():
            return with_suffix.resolve()
    return candidate.resolve()


def load_document(path: Path) -> ThemeDocument:
    """Load and parse a single theme source file.

    Raises:
        ParseError: If the file is missing, is not UTF-8, or is not valid YAML/JSON.
    """
    origin = str(path)
    if not path.exists():
        raise ParseError(f"Theme source not found: {path}", ErrorContext(document=origin))

    try:
        content = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ParseError(f"Invalid YAML in {path}: {e}", ErrorContext(document=origin)) from e
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in {path}: {e}", ErrorContext(document=origin)) from e
    except UnicodeDecodeError as e:
        raise ParseError(f"{path} is not valid UTF-8: {e}", ErrorContext(document=origin)) from e
    except OSError as e:
        raise ParseError(f"Cannot read {path}: {e}", ErrorContext(document=origin)) from e

    if data is None:
        logger.warning(f"Empty theme source at {path}")
        data = {}

    return parse_document(data, origin=origin)


class ChainLoader:
    """Loads a document and its transitive imports into an ordered chain."""

    def __init__(self, workers: int = 4) -> None:
        self.workers = max(1, workers)

    def load(self, path: Path) -> list[ThemeDocument]:
        root = path.resolve()
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            root_doc = load_document(root)
            chain: list[ThemeDocument] = []
            self._expand(root, root_doc, (), set(), chain, executor)
        logger.info(f"Loaded {len(chain)} document(s) for {path}")
        return chain

    def _expand(
        self,
        path: Path,
        document: ThemeDocument,
        stack: tuple[Path, ...],
        seen: set[Path],
        chain: list[ThemeDocument],
        executor: ThreadPoolExecutor,
    ) -> None:
        seen.add(path)
        chain.append(document)
        stack = (*stack, path)

        targets: list[Path] = []
        for reference in document.imports:
            target = resolve_import(reference, path.parent)
            if target in stack:
                cycle = " -> ".join(str(p) for p in (*stack, target))
                raise ParseError(
                    f"Import cycle: {cycle}",
                    ErrorContext(document=str(path), key="config.import"),
                )
            if target in seen or target in targets:
                logger.debug(f"Skipping repeated import {target} from {path}")
                continue
            targets.append(target)

        importers = tuple(str(p) for p in stack)

        def fetch(target: Path) -> ThemeDocument:
            try:
                document = load_document(target)
            except SassyError as e:
                attach_import_chain(e, importers)
                raise
            return document.model_copy(update={"imported_via": importers})

        # map() yields in submission order regardless of completion order.
        fetched = list(executor.map(fetch, targets))

        for target, child in zip(targets, fetched, strict=True):
            if target in seen:
                continue
            self._expand(target, child, stack, seen, chain, executor)


def load_chain(path: Path, *, workers: int = 4) -> list[ThemeDocument]:
    """Load ``path`` and its imports as an ordered chain, base document first."""
    return ChainLoader(workers=workers).load(path)
