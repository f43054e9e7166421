"""Configuration loading for scriptmeta (.scriptmeta.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

CONFIG_FILENAME = ".scriptmeta.yml"

DUPLICATE_POLICIES = ("replace", "error")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ScriptMetaConfig:
    """Represents the settings defined in .scriptmeta.yml."""

    root: Path
    scripts_dir: str = "scripts"
    manifest_path: str = "manifest.json"
    extensions: List[str] = field(default_factory=lambda: [".sh"])
    comment_prefixes: Tuple[str, ...] = ("#", "//")
    duplicate_names: str = "replace"
    strict: bool = False
    follow_symlinks: bool = False

    @property
    def scripts_path(self) -> Path:
        return self.root / self.scripts_dir

    @property
    def output_path(self) -> Path:
        return self.root / self.manifest_path


def load_config(config_path: Path) -> ScriptMetaConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ScriptMetaConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = ScriptMetaConfig(root=root)

    scripts_dir = _as_str(data.get("scripts_dir"))
    if scripts_dir:
        config.scripts_dir = scripts_dir

    manifest_path = _as_str(data.get("manifest_path"))
    if manifest_path:
        config.manifest_path = manifest_path

    if "extensions" in data:
        extensions = [_normalise_extension(ext) for ext in _as_str_list(data["extensions"])]
        extensions = [ext for ext in extensions if ext]
        if not extensions:
            raise ConfigError("extensions must list at least one file extension")
        config.extensions = extensions

    if "comment_prefixes" in data:
        prefixes = [prefix.strip() for prefix in _as_str_list(data["comment_prefixes"])]
        prefixes = [prefix for prefix in prefixes if prefix]
        if not prefixes:
            raise ConfigError("comment_prefixes must list at least one prefix")
        config.comment_prefixes = tuple(prefixes)

    duplicate_names = _as_str(data.get("duplicate_names"))
    if duplicate_names is not None:
        policy = duplicate_names.strip().lower()
        if policy not in DUPLICATE_POLICIES:
            allowed = ", ".join(DUPLICATE_POLICIES)
            raise ConfigError(
                f"duplicate_names must be one of {allowed} (got {duplicate_names!r})"
            )
        config.duplicate_names = policy

    strict = _as_bool(data.get("strict"))
    if strict is not None:
        config.strict = strict

    follow_symlinks = _as_bool(data.get("follow_symlinks"))
    if follow_symlinks is not None:
        config.follow_symlinks = follow_symlinks

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _normalise_extension(value: str) -> str:
    value = value.strip()
    if value and not value.startswith("."):
        value = f".{value}"
    return value


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "ScriptMetaConfig", "load_config"]
