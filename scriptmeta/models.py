"""Core data models shared across scriptmeta components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MANIFEST_VERSION = 1

ARG_TYPES = ("string", "number", "boolean")
OUTPUT_FORMATS = ("text", "tsv", "csv", "json", "ndjson")

DEFAULT_OUTPUT = "text"
DEFAULT_PLATFORM = "all"


@dataclass
class ArgSpec:
    """One positional argument declared with ``@arg``."""

    name: str
    type: str
    description: str
    required: bool = True
    variadic: bool = False
    default: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "required": self.required,
        }
        if self.variadic:
            payload["variadic"] = True
        if self.default is not None:
            payload["default"] = self.default
        return payload


@dataclass
class ScriptMetadata:
    """Structured record parsed from a script's directive block."""

    name: Optional[str] = None
    description: Optional[str] = None
    args: List[ArgSpec] = field(default_factory=list)
    deps: List[str] = field(default_factory=list)
    envs: List[str] = field(default_factory=list)
    output: str = DEFAULT_OUTPUT
    header: List[str] = field(default_factory=list)
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    author: Optional[str] = None
    platform: str = DEFAULT_PLATFORM
    examples: List[str] = field(default_factory=list)
    stdin: bool = False
    version: Optional[str] = None
    path: Optional[str] = None

    def to_manifest_entry(self) -> Dict[str, Any]:
        """Return the entry shape the runner CLI reads from ``manifest.json``."""
        return {
            "name": self.name,
            "description": self.description,
            "args": [arg.to_dict() for arg in self.args],
            "deps": list(self.deps),
            "envs": list(self.envs),
            "output": self.output,
            "header": list(self.header),
            "category": self.category,
            "tags": list(self.tags),
            "author": self.author,
            "platform": self.platform,
            "examples": list(self.examples),
            "path": self.path,
            "version": self.version,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Return the full parsed record, including fields the manifest omits."""
        payload = self.to_manifest_entry()
        payload["stdin"] = self.stdin
        return payload


@dataclass
class SkippedDirective:
    """A directive line the parser recognised but could not use."""

    line: int
    tag: str
    value: str
    reason: str

    def describe(self) -> str:
        return f"line {self.line}: {self.reason}"


@dataclass
class ParsedScript:
    """Parser output together with its diagnostic channel."""

    metadata: ScriptMetadata
    skipped: List[SkippedDirective] = field(default_factory=list)


@dataclass
class Manifest:
    """Aggregated, persisted view of every accepted script."""

    updated: str
    scripts: Dict[str, ScriptMetadata] = field(default_factory=dict)
    version: int = MANIFEST_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "updated": self.updated,
            "scripts": {
                name: meta.to_manifest_entry() for name, meta in self.scripts.items()
            },
        }


@dataclass
class BuildResult:
    """Outcome of one manifest build: the manifest plus per-file diagnostics."""

    manifest: Manifest
    errors: List[str] = field(default_factory=list)
    skipped: Dict[str, List[SkippedDirective]] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.manifest.scripts)
