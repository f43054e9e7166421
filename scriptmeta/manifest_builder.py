"""Script discovery and manifest building utilities."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Set, Tuple

from .config import ScriptMetaConfig
from .directives import DEFAULT_COMMENT_PREFIXES, DirectiveParser
from .logging import get_logger
from .models import BuildResult, Manifest, ScriptMetadata, SkippedDirective

_TEMPLATE_PREFIX = "_"

logger = get_logger("manifest_builder")


class ManifestError(RuntimeError):
    """Raised when the manifest artifact cannot be written."""


@dataclass
class _Accumulator:
    """Accepted scripts and diagnostics collected during one build."""

    scripts: Dict[str, ScriptMetadata] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    skipped: Dict[str, List[SkippedDirective]] = field(default_factory=dict)


def _raise_walk_error(exc: OSError) -> None:
    # os.walk ignores listing failures by default; an unreadable directory is fatal.
    raise exc


def _timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_eligible(filename: str, extensions: Sequence[str] = (".sh",)) -> bool:
    """Return True for script files that should be published in the manifest."""
    if filename.startswith(_TEMPLATE_PREFIX):
        return False
    return filename.endswith(tuple(extensions))


def iter_scripts(
    root: Path,
    extensions: Sequence[str] = (".sh",),
    *,
    follow_symlinks: bool = False,
) -> Iterator[Path]:
    """Yield eligible script paths under ``root`` in a stable order."""
    visited: Set[Tuple[int, int]] = set()
    for dirpath, dirnames, filenames in os.walk(
        root, onerror=_raise_walk_error, followlinks=follow_symlinks
    ):
        if follow_symlinks:
            stat_result = os.stat(dirpath)
            key = (stat_result.st_dev, stat_result.st_ino)
            if key in visited:
                logger.debug("Skipping already visited directory %s", dirpath)
                dirnames[:] = []
                continue
            visited.add(key)

        dirnames.sort()
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            if is_eligible(filename, extensions):
                yield current_dir / filename


class ManifestBuilder:
    """Walks a scripts directory and aggregates directive metadata into a manifest."""

    def __init__(
        self,
        parser: DirectiveParser | None = None,
        *,
        extensions: Sequence[str] = (".sh",),
        duplicate_names: str = "replace",
        strict: bool = False,
        follow_symlinks: bool = False,
    ) -> None:
        self.parser = parser or DirectiveParser()
        self.extensions = tuple(extensions)
        self.duplicate_names = duplicate_names
        self.strict = strict
        self.follow_symlinks = follow_symlinks

    @classmethod
    def from_config(cls, config: ScriptMetaConfig) -> "ManifestBuilder":
        return cls(
            DirectiveParser(config.comment_prefixes or DEFAULT_COMMENT_PREFIXES),
            extensions=config.extensions,
            duplicate_names=config.duplicate_names,
            strict=config.strict,
            follow_symlinks=config.follow_symlinks,
        )

    def build(self, scripts_dir: str | Path, *, base: str | Path | None = None) -> BuildResult:
        """Return the manifest for ``scripts_dir`` plus per-file errors.

        Paths recorded in the manifest are relative to ``base`` (defaults to
        ``scripts_dir``). Unreadable directories or files abort the build.
        """
        root_path = Path(scripts_dir).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Scripts directory not found: {scripts_dir}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Scripts path is not a directory: {scripts_dir}")
        base_path = Path(base).expanduser().resolve() if base is not None else root_path

        acc = _Accumulator()
        for path in iter_scripts(
            root_path, self.extensions, follow_symlinks=self.follow_symlinks
        ):
            self._add_script(acc, path, _relative_path(path, base_path))

        manifest = Manifest(updated=_timestamp(), scripts=acc.scripts)
        logger.debug(
            "Accepted %d script(s), rejected %d", len(acc.scripts), len(acc.errors)
        )
        return BuildResult(manifest=manifest, errors=acc.errors, skipped=acc.skipped)

    def _add_script(self, acc: _Accumulator, path: Path, rel_path: str) -> None:
        content = path.read_text(encoding="utf-8", errors="replace")
        parsed = self.parser.parse_with_report(content)
        meta = parsed.metadata

        if parsed.skipped:
            acc.skipped[rel_path] = parsed.skipped
            for entry in parsed.skipped:
                logger.debug("%s: %s", rel_path, entry.describe())

        if not meta.name:
            acc.errors.append(f"{rel_path}: missing @name")
            return
        if not meta.description:
            acc.errors.append(f"{rel_path}: missing @description")
            return
        if self.strict and parsed.skipped:
            acc.errors.extend(f"{rel_path}: {entry.describe()}" for entry in parsed.skipped)
            return

        existing = acc.scripts.get(meta.name)
        if existing is not None:
            if self.duplicate_names == "error":
                acc.errors.append(
                    f"{rel_path}: duplicate @name {meta.name} (already defined in {existing.path})"
                )
                return
            logger.warning(
                "%s: @name %s replaces the entry from %s", rel_path, meta.name, existing.path
            )

        meta.path = rel_path
        acc.scripts[meta.name] = meta


def write_manifest(manifest: Manifest, path: str | Path) -> Path:
    """Serialise ``manifest`` to ``path``, replacing any previous file in full."""
    target = Path(path)
    payload = json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False) + "\n"
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise ManifestError(f"Failed to write manifest to {target}: {exc}") from exc
    return target


def build_manifest(config: ScriptMetaConfig, *, output: str | Path | None = None) -> BuildResult:
    """Build and persist the manifest for the repository described by ``config``."""
    builder = ManifestBuilder.from_config(config)
    result = builder.build(config.scripts_path, base=config.root)
    target = Path(output) if output is not None else config.output_path
    write_manifest(result.manifest, target)
    logger.debug("Wrote %s", target)
    return result


def _relative_path(path: Path, base: Path) -> str:
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return Path(os.path.relpath(path, base)).as_posix()


__all__ = [
    "ManifestBuilder",
    "ManifestError",
    "build_manifest",
    "is_eligible",
    "iter_scripts",
    "write_manifest",
]
