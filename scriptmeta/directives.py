"""Directive parsing for annotated script headers.

A script declares its metadata in a contiguous block of comment lines near the
top of the file::

    #!/bin/bash
    # @name yts
    # @description Search YouTube videos and return results as TSV
    # @arg query string "Search query"
    # @arg maxResults number "Maximum number of results" =10
    # @output tsv

Parsing never raises. Lines that look like directives but cannot be used are
dropped, and values kept only on trust (an unrecognised @output format) are
flagged. Both are reported through :class:`~scriptmeta.models.SkippedDirective`
entries so callers can decide how strict to be.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Pattern, Sequence, Tuple

from .models import ARG_TYPES, OUTPUT_FORMATS, ArgSpec, ParsedScript, ScriptMetadata, SkippedDirective


class CommentStyle(str, Enum):
    """Line-comment prefixes that may carry directives."""

    HASH = "#"
    SLASH = "//"


DEFAULT_COMMENT_PREFIXES: Tuple[str, ...] = tuple(style.value for style in CommentStyle)

_SHEBANG = "#!"

_ARG_PATTERN = re.compile(
    r"^(?P<name>[A-Za-z0-9_][A-Za-z0-9_-]*)\s+"
    rf"(?P<type>{'|'.join(ARG_TYPES)})\s+"
    r'"(?P<description>[^"]+)"'
    r"(?:\s+(?P<modifier>\?|\.\.\.|=(?P<default>.+)))?$"
)
_ENV_PATTERN = re.compile(r'^(?P<name>[A-Za-z0-9_]+)(?:\s+"(?P<hint>[^"]+)")?$')
_WHITESPACE = re.compile(r"\s+")

# Handlers return None on success or a reason string to report on the diagnostic channel.
_Handler = Callable[[ScriptMetadata, str], Optional[str]]


def _set_name(meta: ScriptMetadata, value: str) -> None:
    meta.name = value


def _set_description(meta: ScriptMetadata, value: str) -> None:
    meta.description = value


def _set_category(meta: ScriptMetadata, value: str) -> None:
    meta.category = value


def _set_author(meta: ScriptMetadata, value: str) -> None:
    meta.author = value


def _set_platform(meta: ScriptMetadata, value: str) -> None:
    meta.platform = value


def _set_version(meta: ScriptMetadata, value: str) -> None:
    meta.version = value


def _set_output(meta: ScriptMetadata, value: str) -> Optional[str]:
    meta.output = value
    if value not in OUTPUT_FORMATS:
        return f"unrecognised @output format {value!r}"
    return None


def _add_arg(meta: ScriptMetadata, value: str) -> Optional[str]:
    match = _ARG_PATTERN.match(value)
    if match is None:
        return "malformed @arg"
    modifier = match.group("modifier")
    meta.args.append(
        ArgSpec(
            name=match.group("name"),
            type=match.group("type"),
            description=match.group("description"),
            required=modifier is None,
            variadic=modifier == "...",
            default=match.group("default"),
        )
    )
    return None


def _add_env(meta: ScriptMetadata, value: str) -> Optional[str]:
    match = _ENV_PATTERN.match(value)
    if match is None:
        return "malformed @env"
    meta.envs.append(match.group("name"))
    return None


def _add_dep(meta: ScriptMetadata, value: str) -> None:
    meta.deps.append(value)


def _add_tag(meta: ScriptMetadata, value: str) -> None:
    meta.tags.append(value)


def _add_example(meta: ScriptMetadata, value: str) -> None:
    meta.examples.append(value)


def _set_header(meta: ScriptMetadata, value: str) -> None:
    meta.header = _WHITESPACE.split(value)


def _set_stdin(meta: ScriptMetadata, value: str) -> None:
    meta.stdin = value == "true"


_HANDLERS: Dict[str, _Handler] = {
    "name": _set_name,
    "description": _set_description,
    "arg": _add_arg,
    "dep": _add_dep,
    "env": _add_env,
    "output": _set_output,
    "header": _set_header,
    "category": _set_category,
    "tag": _add_tag,
    "author": _set_author,
    "platform": _set_platform,
    "example": _add_example,
    "stdin": _set_stdin,
    "version": _set_version,
}


def _compile_directive_pattern(prefixes: Sequence[str]) -> Pattern[str]:
    # Longest prefix first so "//" is never shadowed by a shorter alternative.
    ordered = sorted(set(prefixes), key=len, reverse=True)
    alternatives = "|".join(re.escape(prefix) for prefix in ordered)
    return re.compile(rf"^(?:{alternatives})\s*@(?P<tag>\w+)\s+(?P<value>.*)$")


class DirectiveParser:
    """Extracts :class:`ScriptMetadata` from the leading comment block of a script."""

    def __init__(self, comment_prefixes: Iterable[str] | None = None) -> None:
        prefixes = tuple(comment_prefixes) if comment_prefixes is not None else DEFAULT_COMMENT_PREFIXES
        if not prefixes:
            raise ValueError("At least one comment prefix is required")
        self.comment_prefixes = prefixes
        self._directive = _compile_directive_pattern(prefixes)

    def parse(self, content: str) -> ScriptMetadata:
        """Return the metadata declared in ``content``; missing fields keep defaults."""
        return self.parse_with_report(content).metadata

    def parse_with_report(self, content: str) -> ParsedScript:
        """Return the metadata together with every directive line that was dropped or flagged."""
        result = ParsedScript(metadata=ScriptMetadata())
        seen_directive = False

        for index, line in enumerate(content.split("\n"), start=1):
            trimmed = line.strip()
            if index == 1 and trimmed.startswith(_SHEBANG):
                continue

            match = self._directive.match(trimmed)
            if match is None:
                if seen_directive and trimmed and not trimmed.startswith(self.comment_prefixes):
                    break
                continue

            seen_directive = True
            tag = match.group("tag")
            value = match.group("value").strip()

            handler = _HANDLERS.get(tag)
            if handler is None:
                reason: Optional[str] = f"unknown directive @{tag}"
            else:
                reason = handler(result.metadata, value)
            if reason is not None:
                result.skipped.append(
                    SkippedDirective(line=index, tag=tag, value=value, reason=reason)
                )

        return result


_DEFAULT_PARSER = DirectiveParser()


def parse(content: str) -> ScriptMetadata:
    """Parse ``content`` with the default ``#`` and ``//`` comment prefixes."""
    return _DEFAULT_PARSER.parse(content)


__all__ = [
    "CommentStyle",
    "DEFAULT_COMMENT_PREFIXES",
    "DirectiveParser",
    "parse",
]
