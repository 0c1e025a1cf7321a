#!/usr/bin/python3.12
# Copyright 2025 Red Hat, Inc.
# All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License. You may obtain
# a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations
# under the License.
"""Convert .adoc data model pages to the LLM friendly .txt attachments."""

import argparse
import dataclasses
import enum
import json
from pathlib import Path
import logging
import re
import sys
from typing import Callable

LOG = logging.getLogger()


def default_base_dir(module_file: Path = Path(__file__)) -> Path:
    """Get the directory relative mapping paths are resolved against.

    This is the repository root when running from a checkout (the module sits
    in its scripts/ directory) and the current directory once installed.
    """
    module_dir = module_file.resolve().parent
    if module_dir.name == "scripts":
        return module_dir.parent
    return Path.cwd()


DEFAULT_BASE_DIR = default_base_dir()

XREF_BASE_URL = "https://neo4j.com/developer/industry-use-cases/"

CODE_FENCE = "----"
ADMONITION_DELIMITER = "===="

SOURCE_LANGUAGE_RE = re.compile(r"^\[source,(\w+)\]$")
ADMONITION_RE = re.compile(r"^\[(IMPORTANT|NOTE|CAUTION|WARNING|TIP)\]$")
XREF_RE = re.compile(r"xref:([^\[]+)\[([^\]]+)\]")
DOUBLE_BULLET_RE = re.compile(r"^\*\* ")
BOLD_KEY_BULLET_RE = re.compile(r"^\* \*([^*]+)\*")
INLINE_EMPHASIS_RE = re.compile(r"([^*])\*([^*]+)\*([^*])")
LEADING_EMPHASIS_RE = re.compile(r"^\*([^*\s][^*]+)\*")

# Source page -> attachments that carry its Markdown rendition. Paths are
# relative to the base directory, same shape as a --mappings-file entry.
CONVERSION_MAPPINGS = [
    {
        "name": "Transaction Base Model",
        "source": "modules/ROOT/pages/data-models/transaction-graph/transaction/transaction-base-model.adoc",
        "targets": [
            "modules/ROOT/attachments/transaction-base-model.txt",
            "modules/ROOT/attachments/llm-transaction-base-model.txt",
        ],
        "content_start_marker": "== 1. Node Labels and Properties",
        "header_end_marker": "## 1. Node Labels and Properties",
    },
    {
        "name": "Fraud Event Sequence Model",
        "source": "modules/ROOT/pages/data-models/transaction-graph/fraud-event-sequence/fraud-event-sequence-model.adoc",
        "targets": [
            "modules/ROOT/attachments/fraud-event-sequence-model.txt",
            "modules/ROOT/attachments/llm-fraud-event-sequence-model.txt",
        ],
        "content_start_marker": "== 1. Business Scenario",
        "header_end_marker": "## 1. Business Scenario",
    },
]


class ConversionError(Exception):
    """Base class for errors that make a single mapping fail."""


class SourceNotFoundError(ConversionError):
    """The source .adoc file of a mapping does not exist."""


class MarkerNotFoundError(ConversionError):
    """A marker line could not be found in a document."""


@dataclasses.dataclass(frozen=True)
class ConversionMapping:
    """One source page and the attachment files generated from it."""

    name: str
    source: Path
    targets: tuple[Path, ...]
    content_start_marker: str
    header_end_marker: str

    def __post_init__(self):
        if not self.name:
            raise ValueError("Conversion mapping needs a name")
        if not self.targets:
            raise ValueError(f"Conversion mapping '{self.name}' has no targets")
        if not self.content_start_marker:
            raise ValueError(
                f"Conversion mapping '{self.name}' has an empty content start marker"
            )
        if not self.header_end_marker:
            raise ValueError(
                f"Conversion mapping '{self.name}' has an empty header end marker"
            )


@dataclasses.dataclass
class ConversionSummary:
    """Outcome of a run, mapping names kept in input order."""

    successful: list[str] = dataclasses.field(default_factory=list)
    skipped: list[str] = dataclasses.field(default_factory=list)
    failures: dict[str, str] = dataclasses.field(default_factory=dict)


def build_mappings(raw_mappings: list[dict], base_dir: Path) -> list[ConversionMapping]:
    """Build validated mappings from their dict form.

    Args:
        raw_mappings: List of dicts with name, source, targets,
            content_start_marker and header_end_marker keys
        base_dir: Directory relative source and target paths are resolved against

    Returns:
        List of ConversionMapping in the given order

    Raises:
        ValueError: If an entry is not a dict, misses a key, reuses the name
            of an earlier entry or is invalid
    """
    required_keys = (
        "name",
        "source",
        "targets",
        "content_start_marker",
        "header_end_marker",
    )
    mappings = []
    names = set()

    for index, raw in enumerate(raw_mappings):
        if not isinstance(raw, dict):
            raise ValueError(f"Mapping #{index} is not an object: {raw!r}")

        if missing := [key for key in required_keys if key not in raw]:
            raise ValueError(f"Mapping #{index} is missing keys: {', '.join(missing)}")

        if isinstance(raw["targets"], str):
            raise ValueError(f"Mapping #{index} targets must be a list of paths")

        if raw["name"] in names:
            raise ValueError(f"Mapping #{index} duplicates the name '{raw['name']}'")
        names.add(raw["name"])

        mappings.append(
            ConversionMapping(
                name=raw["name"],
                source=base_dir / raw["source"],
                targets=tuple(base_dir / target for target in raw["targets"]),
                content_start_marker=raw["content_start_marker"],
                header_end_marker=raw["header_end_marker"],
            )
        )

    return mappings


def load_mappings(mappings_file: Path, base_dir: Path) -> list[ConversionMapping]:
    """Load conversion mappings from a JSON file holding a list of mappings."""
    with open(mappings_file, "r", encoding="utf-8") as f:
        raw_mappings = json.load(f)

    if not isinstance(raw_mappings, list):
        raise ValueError(f"{mappings_file} must contain a JSON list of mappings")

    return build_mappings(raw_mappings, base_dir)


class BlockMode(enum.Enum):
    NORMAL = "normal"
    CODE_BLOCK = "code_block"
    ADMONITION = "admonition"


@dataclasses.dataclass(frozen=True)
class ParseState:
    """Block the transformer is in plus the language of a pending [source] line.

    awaiting_delimiter is set right after an admonition tag, a ==== line at
    that point opens the admonition body instead of closing it.
    """

    mode: BlockMode = BlockMode.NORMAL
    language: str = ""
    awaiting_delimiter: bool = False


RuleResult = tuple[list[str], ParseState]
Rule = Callable[[str, ParseState], RuleResult | None]


def source_language_rule(line: str, state: ParseState) -> RuleResult | None:
    """Consume a [source,lang] line and remember lang for the next fence."""
    if state.mode is not BlockMode.NORMAL:
        return None
    if match := SOURCE_LANGUAGE_RE.match(line):
        return [], dataclasses.replace(state, language=match.group(1))
    return None


def code_fence_open_rule(line: str, state: ParseState) -> RuleResult | None:
    if line == CODE_FENCE and state.mode is BlockMode.NORMAL and state.language:
        return [f"```{state.language}"], ParseState(mode=BlockMode.CODE_BLOCK)
    return None


def code_fence_close_rule(line: str, state: ParseState) -> RuleResult | None:
    if line == CODE_FENCE and state.mode is BlockMode.CODE_BLOCK:
        return ["```"], ParseState()
    return None


def admonition_open_rule(line: str, state: ParseState) -> RuleResult | None:
    if state.mode is BlockMode.NORMAL and ADMONITION_RE.match(line):
        return [], dataclasses.replace(
            state, mode=BlockMode.ADMONITION, awaiting_delimiter=True
        )
    return None


def admonition_close_rule(line: str, state: ParseState) -> RuleResult | None:
    """Consume ==== lines of an admonition, the first one may open its body."""
    if line != ADMONITION_DELIMITER or state.mode is not BlockMode.ADMONITION:
        return None
    if state.awaiting_delimiter:
        return [], dataclasses.replace(state, awaiting_delimiter=False)
    return [], dataclasses.replace(state, mode=BlockMode.NORMAL)


def admonition_content_rule(line: str, state: ParseState) -> RuleResult | None:
    """Render admonition content.

    A block title (.Title) turns into a bold paragraph of its own, other text
    is kept as is and blank lines are dropped.
    """
    if state.mode is not BlockMode.ADMONITION:
        return None
    if line.startswith("."):
        output = ["", f"**{line[1:]}**", ""]
    elif line.strip():
        output = [line]
    else:
        return [], state
    return output, dataclasses.replace(state, awaiting_delimiter=False)


def code_block_content_rule(line: str, state: ParseState) -> RuleResult | None:
    if state.mode is BlockMode.CODE_BLOCK:
        return [line], state
    return None


def plain_line_rule(line: str, state: ParseState) -> RuleResult:
    return [convert_plain_line(line)], state


# Order matters, the first rule that applies to a line wins. Lines none of
# them apply to go through plain_line_rule.
LINE_RULES: list[Rule] = [
    source_language_rule,
    code_fence_open_rule,
    code_fence_close_rule,
    admonition_open_rule,
    admonition_close_rule,
    admonition_content_rule,
    code_block_content_rule,
]


def convert_heading(line: str) -> str:
    """Convert level 1 and 2 section titles (== and ===) to Markdown."""
    if line.startswith("== "):
        return "##" + line[2:]
    if line.startswith("=== "):
        return "###" + line[3:]
    return line


def convert_xrefs(line: str) -> str:
    """Replace xref:path/page.adoc#anchor[Text] with Text (full URL)."""

    def _to_url(match: re.Match) -> str:
        url_path = match.group(1).replace(".adoc", "").replace("#", "/#")
        return f"{match.group(2)} ({XREF_BASE_URL}{url_path})"

    return XREF_RE.sub(_to_url, line)


def convert_inline_emphasis(line: str) -> str:
    """Double the asterisks of AsciiDoc *strong* text.

    Text already in **strong** form is left alone.
    """
    line = INLINE_EMPHASIS_RE.sub(r"\1**\2**\3", line)
    return LEADING_EMPHASIS_RE.sub(r"**\1**", line, count=1)


def convert_bullets_and_bold(line: str) -> str:
    """Convert list items and bold text.

    ``** item`` becomes a nested ``  - item``, ``* *Key:* value`` becomes
    ``* **Key:** value``, any other ``*`` bullet is valid Markdown already.
    Lines that are not list items get their inline emphasis converted.
    """
    if DOUBLE_BULLET_RE.match(line):
        return "  - " + line[3:]
    if BOLD_KEY_BULLET_RE.match(line):
        return BOLD_KEY_BULLET_RE.sub(r"* **\1**", line, count=1)
    if line.startswith("*"):
        return line
    return convert_inline_emphasis(line)


def convert_plain_line(line: str) -> str:
    line = convert_heading(line)
    line = convert_xrefs(line)
    return convert_bullets_and_bold(line)


def apply_line_rules(line: str, state: ParseState) -> RuleResult:
    """Run the first applicable rule of LINE_RULES on a line.

    Lines no rule applies to are converted by plain_line_rule.
    """
    for rule in LINE_RULES:
        if (result := rule(line, state)) is not None:
            return result
    return plain_line_rule(line, state)


def convert_asciidoc_to_markdown(content: str) -> str:
    """Convert an AsciiDoc document body to LLM friendly Markdown.

    Only a handful of constructs are recognized: source blocks, admonition
    blocks, section titles, xrefs, list items and strong text. Anything else,
    including malformed markup, is passed through unchanged.

    Args:
        content: AsciiDoc text

    Returns:
        Markdown text
    """
    state = ParseState()
    result = []

    for line in content.split("\n"):
        output_lines, state = apply_line_rules(line, state)
        result.extend(output_lines)

    return "\n".join(result)


def extract_header(
    target_content: str, header_end_marker: str, strict: bool = True
) -> str:
    """Get everything in a target file before the header end marker line.

    Args:
        target_content: Current content of the target file
        header_end_marker: Line that ends the header (not part of it)
        strict: Raise if the marker is missing instead of using the whole
            document as header

    Raises:
        MarkerNotFoundError: If strict and no line equals header_end_marker
    """
    lines = target_content.split("\n")

    if header_end_marker in lines:
        return "\n".join(lines[: lines.index(header_end_marker)])

    if strict:
        raise MarkerNotFoundError(
            f"Could not find header end marker: {header_end_marker}"
        )

    LOG.warning(
        f"Header end marker '{header_end_marker}' not found, "
        "keeping the whole file as header"
    )
    return target_content


def extract_content(source_content: str, content_start_marker: str) -> str:
    """Get everything in a source file from the content start marker line onwards.

    Raises:
        MarkerNotFoundError: If no line equals content_start_marker
    """
    lines = source_content.split("\n")

    if content_start_marker not in lines:
        raise MarkerNotFoundError(
            f"Could not find content start marker: {content_start_marker}"
        )

    return "\n".join(lines[lines.index(content_start_marker) :])


def collapse_blank_lines(content: str) -> str:
    """Reduce every run of blank lines to a single blank line."""
    collapsed = []
    previous_blank = False

    for line in content.split("\n"):
        blank = not line.strip()
        if not (blank and previous_blank):
            collapsed.append(line)
        previous_blank = blank

    return "\n".join(collapsed)


def splice(header: str, converted_content: str) -> str:
    """Join a preserved header and converted content with one blank line."""
    body = collapse_blank_lines(converted_content.strip())
    return collapse_blank_lines(f"{header}\n\n{body}")


def process_target_file(
    target_file: Path,
    converted_content: str,
    header_end_marker: str,
    strict_header: bool = True,
    dry_run: bool = False,
) -> str:
    """Replace the content of a target file after its header.

    Returns:
        The new content of the target file
    """
    LOG.info(f"Processing: {target_file.name}")

    with open(target_file, "r", encoding="utf-8") as f:
        target_content = f.read()

    LOG.debug("Extracting header...")
    header = extract_header(target_content, header_end_marker, strict=strict_header)
    final_content = splice(header, converted_content)

    if dry_run:
        LOG.info(f"Dry run, not writing {target_file}")
        return final_content

    with open(target_file, "w", encoding="utf-8") as f:
        f.write(final_content)

    LOG.info(f"Updated: {target_file.name}")
    return final_content


def process_mapping(
    mapping: ConversionMapping, strict_header: bool = True, dry_run: bool = False
) -> None:
    """Convert a mapping's source once and write it to all of its targets.

    Targets are processed in order and the first failure stops the mapping,
    targets written before it keep their new content.

    Raises:
        SourceNotFoundError: If the source file does not exist
        MarkerNotFoundError: If a marker is missing from source or a target
        OSError: If a file can not be read or written
    """
    LOG.info("=" * 60)
    LOG.info(f"Processing: {mapping.name}")
    LOG.info("=" * 60)

    if not mapping.source.exists():
        raise SourceNotFoundError(f"Source file not found: {mapping.source}")

    LOG.info(f"Reading source: {mapping.source.name}")
    with open(mapping.source, "r", encoding="utf-8") as f:
        source_content = f.read()

    LOG.info(f'Extracting content from marker: "{mapping.content_start_marker}"')
    content = extract_content(source_content, mapping.content_start_marker)

    LOG.info("Converting AsciiDoc to Markdown...")
    converted_content = convert_asciidoc_to_markdown(content)

    LOG.info(f"Updating {len(mapping.targets)} target file(s)")
    for target_file in mapping.targets:
        process_target_file(
            target_file,
            converted_content,
            mapping.header_end_marker,
            strict_header=strict_header,
            dry_run=dry_run,
        )

    LOG.info(f"{mapping.name} conversion complete!")


def log_summary(summary: ConversionSummary) -> None:
    LOG.info("=" * 60)
    LOG.info("CONVERSION SUMMARY:")
    LOG.info(f"  Successful: {len(summary.successful)}")
    for name in summary.successful:
        LOG.info(f"    - {name}")

    if summary.skipped:
        LOG.info(f"  Skipped: {len(summary.skipped)}")
        for name in summary.skipped:
            LOG.info(f"    - {name}")
            if reason := summary.failures.get(name):
                LOG.info(f"      Reason: {reason}")

    LOG.info("=" * 60)


def convert_all_files(
    mappings: list[ConversionMapping],
    strict_header: bool = True,
    dry_run: bool = False,
) -> ConversionSummary:
    """Process every mapping, a failing mapping never stops the others.

    Returns:
        ConversionSummary splitting mapping names into successful and skipped
    """
    summary = ConversionSummary()

    for mapping in mappings:
        try:
            process_mapping(mapping, strict_header=strict_header, dry_run=dry_run)
            summary.successful.append(mapping.name)
        except SourceNotFoundError as e:
            LOG.warning(f"Skipping {mapping.name}: {e}")
            summary.skipped.append(mapping.name)
            summary.failures[mapping.name] = str(e)
        except Exception as e:
            LOG.error("Error processing %s: %s", mapping.name, e)
            LOG.error("Continuing with next mapping...")
            summary.skipped.append(mapping.name)
            summary.failures[mapping.name] = str(e)

    log_summary(summary)
    return summary


def get_argument_parser() -> argparse.ArgumentParser:
    """Get ArgumentParser."""
    parser = argparse.ArgumentParser(
        description="Convert AsciiDoc data model pages to LLM friendly text attachments.",
    )
    parser.add_argument(
        "-b",
        "--base-dir",
        required=False,
        default=DEFAULT_BASE_DIR,
        type=Path,
        help="Directory relative mapping paths are resolved against",
    )
    parser.add_argument(
        "-m",
        "--mappings-file",
        required=False,
        type=Path,
        help="JSON file with a list of conversion mappings to use instead of the built-in ones",
    )
    parser.add_argument(
        "-e",
        "--exclude-mappings",
        required=False,
        type=str,
        nargs="*",
        default=[],
        help="List of mapping names to exclude from processing (e.g., 'Transaction Base Model')",
    )
    parser.add_argument(
        "--allow-missing-header",
        action="store_true",
        help="Keep a whole target file as header when its header end marker is missing",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Convert but do not write target files",
    )
    parser.add_argument(
        "--log-level",
        required=False,
        default="INFO",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = get_argument_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level)

    try:
        if args.mappings_file:
            mappings = load_mappings(args.mappings_file, args.base_dir)
        else:
            mappings = build_mappings(CONVERSION_MAPPINGS, args.base_dir)

        for name in args.exclude_mappings:
            LOG.info(f"{name} is in exclude list. Skipping ...")
        mappings = [m for m in mappings if m.name not in args.exclude_mappings]

        LOG.info("Converting AsciiDoc files to LLM friendly Markdown...")
        LOG.info(f"Found {len(mappings)} conversion mapping(s)")

        convert_all_files(
            mappings,
            strict_header=not args.allow_missing_header,
            dry_run=args.dry_run,
        )
    except Exception as e:
        LOG.error("Fatal error during conversion: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
