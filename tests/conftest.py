"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path

import pytest

from adoc_to_llm_txt import ConversionMapping

from tests.fixtures import (
    CONTENT_START_MARKER,
    HEADER_END_MARKER,
    SOURCE_ADOC,
    TARGET_TXT,
)


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """Create a source .adoc page."""
    path = tmp_path / "pages" / "transaction-base-model.adoc"
    path.parent.mkdir(parents=True)
    path.write_text(SOURCE_ADOC, encoding="utf-8")
    return path


@pytest.fixture
def target_files(tmp_path: Path) -> list[Path]:
    """Create the two attachment files of a mapping."""
    attachments = tmp_path / "attachments"
    attachments.mkdir()
    paths = [
        attachments / "transaction-base-model.txt",
        attachments / "llm-transaction-base-model.txt",
    ]
    for path in paths:
        path.write_text(TARGET_TXT, encoding="utf-8")
    return paths


@pytest.fixture
def mapping(source_file: Path, target_files: list[Path]) -> ConversionMapping:
    """Create a mapping from the sample source page to its two attachments."""
    return ConversionMapping(
        name="Transaction Base Model",
        source=source_file,
        targets=tuple(target_files),
        content_start_marker=CONTENT_START_MARKER,
        header_end_marker=HEADER_END_MARKER,
    )
