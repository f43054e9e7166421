"""Directive parsing and manifest building for annotated scripts."""

from .directives import DirectiveParser, parse
from .manifest_builder import ManifestBuilder, build_manifest, write_manifest
from .models import ArgSpec, BuildResult, Manifest, ScriptMetadata

__version__ = "0.1.0"

__all__ = [
    "ArgSpec",
    "BuildResult",
    "DirectiveParser",
    "Manifest",
    "ManifestBuilder",
    "ScriptMetadata",
    "build_manifest",
    "parse",
    "write_manifest",
]
