"""Tests for scriptmeta.directives."""

from __future__ import annotations

import textwrap

import pytest

from scriptmeta.directives import CommentStyle, DirectiveParser, parse
from scriptmeta.models import ArgSpec

YTS = textwrap.dedent(
    """\
    #!/bin/bash
    # @name yts
    # @description Search YouTube videos via Apify and return results as TSV
    # @arg query string "Search query (e.g. 'nodejs tutorial')"
    # @arg maxResults number "Maximum number of results to return" =10
    # @dep jq
    # @dep apify
    # @env APIFY_TOKEN "Get from https://console.apify.com/account/integrations"
    # @output tsv
    # @header VideoID Title Description ChannelID
    # @category youtube
    # @tag scraping
    # @tag apify
    # @author yigitkonur
    # @example scriptix yts "react hooks tutorial" 20
    # @example scriptix yts "kubernetes explained"
    # @version 1.0.0

    set -euo pipefail

    QUERY="$1"
    """
)


def _arg(line: str) -> ArgSpec:
    meta = parse(f"# @name x\n# @arg {line}\n")
    assert len(meta.args) == 1, line
    return meta.args[0]


def test_parse_full_directive_block() -> None:
    meta = parse(YTS)

    assert meta.name == "yts"
    assert meta.description == "Search YouTube videos via Apify and return results as TSV"
    assert meta.args == [
        ArgSpec(
            name="query",
            type="string",
            description="Search query (e.g. 'nodejs tutorial')",
        ),
        ArgSpec(
            name="maxResults",
            type="number",
            description="Maximum number of results to return",
            required=False,
            default="10",
        ),
    ]
    assert meta.deps == ["jq", "apify"]
    assert meta.envs == ["APIFY_TOKEN"]
    assert meta.output == "tsv"
    assert meta.header == ["VideoID", "Title", "Description", "ChannelID"]
    assert meta.category == "youtube"
    assert meta.tags == ["scraping", "apify"]
    assert meta.author == "yigitkonur"
    assert meta.platform == "all"
    assert meta.examples == [
        'scriptix yts "react hooks tutorial" 20',
        'scriptix yts "kubernetes explained"',
    ]
    assert meta.version == "1.0.0"
    assert meta.stdin is False
    assert meta.path is None


def test_parse_defaults_for_empty_input() -> None:
    meta = parse("")

    assert meta.name is None
    assert meta.description is None
    assert meta.args == []
    assert meta.output == "text"
    assert meta.platform == "all"
    assert meta.header == []
    assert meta.stdin is False


def test_arg_with_default_value() -> None:
    arg = _arg('count number "n items" =5')

    assert arg.type == "number"
    assert arg.required is False
    assert arg.default == "5"
    assert arg.variadic is False


def test_arg_default_keeps_embedded_spaces() -> None:
    arg = _arg('greeting string "Greeting text" =hello there world')

    assert arg.default == "hello there world"


def test_arg_variadic() -> None:
    arg = _arg('files string "inputs" ...')

    assert arg.variadic is True
    assert arg.required is False
    assert arg.default is None


def test_arg_optional_marker() -> None:
    arg = _arg('verbose boolean "Enable verbose output" ?')

    assert arg.required is False
    assert arg.variadic is False
    assert arg.default is None


def test_arg_without_modifier_is_required() -> None:
    arg = _arg('q string "query"')

    assert arg.required is True
    assert arg.variadic is False
    assert arg.default is None


def test_arg_name_allows_dashes() -> None:
    assert _arg('max-results number "Limit"').name == "max-results"


@pytest.mark.parametrize(
    "line",
    [
        'q text "unknown type"',
        "q string unquoted description",
        'q string ""',
        'q string "query" !',
        'q string "query" =',
    ],
)
def test_malformed_arg_is_dropped(line: str) -> None:
    parser = DirectiveParser()
    parsed = parser.parse_with_report(f"# @name x\n# @arg {line}\n# @dep jq\n")

    assert parsed.metadata.args == []
    assert parsed.metadata.deps == ["jq"]
    assert [(entry.line, entry.tag, entry.reason) for entry in parsed.skipped] == [
        (2, "arg", "malformed @arg")
    ]


def test_args_keep_declaration_order() -> None:
    meta = parse(
        '# @arg a string "first"\n'
        '# @arg b number "second" ?\n'
        '# @arg c string "rest" ...\n'
    )

    assert [arg.name for arg in meta.args] == ["a", "b", "c"]


def test_env_hint_is_accepted_but_not_kept() -> None:
    parsed = DirectiveParser().parse_with_report(
        '# @env API_KEY "Where to get it"\n# @env PLAIN\n# @env not valid here\n'
    )

    assert parsed.metadata.envs == ["API_KEY", "PLAIN"]
    assert [entry.reason for entry in parsed.skipped] == ["malformed @env"]


def test_deps_are_not_deduplicated() -> None:
    meta = parse("# @dep jq\n# @dep curl\n# @dep jq\n")

    assert meta.deps == ["jq", "curl", "jq"]


def test_scalar_directives_last_occurrence_wins() -> None:
    meta = parse("# @name first\n# @name second\n# @platform linux\n# @platform darwin\n")

    assert meta.name == "second"
    assert meta.platform == "darwin"


def test_header_replaces_previous_value() -> None:
    meta = parse("# @header A B\n# @header  C\tD   E\n")

    assert meta.header == ["C", "D", "E"]


@pytest.mark.parametrize(
    ("value", "expected"),
    [("true", True), ("false", False), ("True", False), ("yes", False)],
)
def test_stdin_only_true_for_literal_true(value: str, expected: bool) -> None:
    assert parse(f"# @stdin {value}\n").stdin is expected


def test_unrecognised_output_is_kept_and_flagged() -> None:
    parsed = DirectiveParser().parse_with_report("# @output tsv\n# @output TSV\n")

    assert parsed.metadata.output == "TSV"
    assert [(entry.line, entry.reason) for entry in parsed.skipped] == [
        (2, "unrecognised @output format 'TSV'")
    ]


@pytest.mark.parametrize("fmt", ["text", "tsv", "csv", "json", "ndjson"])
def test_supported_output_formats(fmt: str) -> None:
    assert parse(f"# @output {fmt}\n").output == fmt


def test_unknown_directive_is_reported() -> None:
    parsed = DirectiveParser().parse_with_report("# @name x\n# @license MIT\n")

    assert parsed.metadata.name == "x"
    assert parsed.skipped[0].tag == "license"
    assert parsed.skipped[0].reason == "unknown directive @license"


def test_scan_stops_at_first_code_line_after_directives() -> None:
    meta = parse(
        "#!/bin/bash\n"
        "# @name real\n"
        "\n"
        "# a plain comment does not end the block\n"
        "# @tag kept\n"
        "set -euo pipefail\n"
        "# @name ignored\n"
        "# @tag ignored\n"
    )

    assert meta.name == "real"
    assert meta.tags == ["kept"]


def test_non_directive_lines_before_first_directive_are_skipped() -> None:
    meta = parse(
        "#!/usr/bin/env bash\n"
        "\n"
        "# Helper script\n"
        "# @name late\n"
        "# @description Declared after a prose comment\n"
    )

    assert meta.name == "late"
    assert meta.description == "Declared after a prose comment"


def test_prose_without_directives_yields_defaults() -> None:
    meta = parse("#!/bin/bash\nThis script has no metadata at all.\necho hi\n")

    assert meta.name is None
    assert meta.description is None


def test_slash_comments_and_whitespace_variants() -> None:
    meta = parse(
        "#!/usr/bin/env node\n"
        "// @name jsfetch\n"
        "//@description Fetch things\n"
        "   #   @tag   indented   \n"
        "const x = 1;\n"
    )

    assert meta.name == "jsfetch"
    assert meta.description == "Fetch things"
    assert meta.tags == ["indented"]


def test_directive_without_value_is_not_a_directive() -> None:
    meta = parse("# @name\n# @description Something\n")

    assert meta.name is None
    assert meta.description == "Something"


def test_windows_line_endings() -> None:
    meta = parse("#!/bin/bash\r\n# @name crlf\r\n# @description Works\r\n")

    assert meta.name == "crlf"
    assert meta.description == "Works"


def test_custom_comment_prefixes() -> None:
    parser = DirectiveParser(["--"])
    meta = parser.parse("-- @name luascript\n-- @description Lua style\nprint('x')\n# @tag no\n")

    assert meta.name == "luascript"
    assert meta.tags == []
    assert "#" not in parser.comment_prefixes


def test_default_prefixes_cover_comment_styles() -> None:
    assert DirectiveParser().comment_prefixes == tuple(style.value for style in CommentStyle)


def test_parser_requires_a_prefix() -> None:
    with pytest.raises(ValueError):
        DirectiveParser([])


def test_only_newlines_split_lines() -> None:
    meta = parse("# @name x\n# @description a\x0cb\x85c\u2028d\n")

    assert meta.description == "a\x0cb\x85c\u2028d"


@pytest.mark.parametrize(
    "line",
    ['@arg café string "Accented name"', '@env CAFÉ "Accented variable"'],
)
def test_identifiers_are_ascii_only(line: str) -> None:
    parsed = DirectiveParser().parse_with_report(f"# @name x\n# {line}\n")

    assert parsed.metadata.args == []
    assert parsed.metadata.envs == []
    assert len(parsed.skipped) == 1
