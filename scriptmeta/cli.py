"""CLI entrypoints for scriptmeta commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from .config import ConfigError, load_config
from .directives import DirectiveParser
from .logging import configure_logging, get_logger
from .manifest_builder import ManifestError, build_manifest
from .models import BuildResult


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scriptmeta",
        description="Build manifest.json from @-directives in annotated scripts.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command")

    build_parser = subparsers.add_parser(
        "build",
        help="Scan the scripts directory and write the manifest (default command).",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    build_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    build_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the manifest here instead of the configured manifest_path.",
    )

    show_parser = subparsers.add_parser(
        "show",
        help="Print the metadata parsed from a single script as JSON.",
    )
    _add_verbose_option(show_parser, suppress_default=True)
    show_parser.add_argument("file", type=Path, help="Script file to parse.")
    show_parser.add_argument(
        "--root",
        type=Path,
        default=Path("."),
        help="Repository root holding .scriptmeta.yml (defaults to current directory).",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entrypoint for scriptmeta commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    command = args.command or "build"
    if command == "build":
        _run_build(
            parser,
            Path(getattr(args, "path", ".")),
            output=getattr(args, "output", None),
        )
    elif command == "show":
        _run_show(parser, args.file, root=args.root)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_build(
    parser: argparse.ArgumentParser, repo_path: Path, *, output: Path | None
) -> None:
    logger = get_logger("cli")
    if not repo_path.is_dir():
        parser.exit(1, f"Repository path not found: {repo_path}\n")
    try:
        config = load_config(repo_path)
        logger.debug("Scanning %s", config.scripts_path)
        result = build_manifest(config, output=output)
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except ManifestError as exc:
        parser.exit(1, f"{exc}\n")
    except OSError as exc:
        parser.exit(1, f"scriptmeta build failed: {exc}\nRun with --verbose for more details.\n")

    manifest_name = output.name if output is not None else Path(config.manifest_path).name
    _report(result, manifest_name)


def _report(result: BuildResult, manifest_name: str) -> None:
    print(f"Built {manifest_name}: {result.count} script(s)")
    if result.errors:
        print("\nWarnings:", file=sys.stderr)
        for error in result.errors:
            print(f"  - {error}", file=sys.stderr)


def _run_show(parser: argparse.ArgumentParser, file: Path, *, root: Path) -> None:
    try:
        config = load_config(root)
        content = file.read_text(encoding="utf-8", errors="replace")
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")
    except OSError as exc:
        parser.exit(1, f"{exc}\n")

    parsed = DirectiveParser(config.comment_prefixes).parse_with_report(content)
    payload = {
        "metadata": parsed.metadata.to_dict(),
        "skipped": [
            {"line": entry.line, "tag": entry.tag, "value": entry.value, "reason": entry.reason}
            for entry in parsed.skipped
        ],
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main(sys.argv[1:])
