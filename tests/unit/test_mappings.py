"""
Unit tests for conversion mapping configuration.
"""

import json
from pathlib import Path

import pytest

from adoc_to_llm_txt import (
    CONVERSION_MAPPINGS,
    ConversionMapping,
    build_mappings,
    default_base_dir,
    load_mappings,
)


def _raw_mapping(**overrides) -> dict:
    raw = {
        "name": "Fraud Event Sequence Model",
        "source": "pages/fraud.adoc",
        "targets": ["attachments/fraud.txt", "attachments/llm-fraud.txt"],
        "content_start_marker": "== 1. Business Scenario",
        "header_end_marker": "## 1. Business Scenario",
    }
    raw.update(overrides)
    return raw


class TestConversionMapping:
    def test_valid_mapping(self):
        mapping = ConversionMapping(
            name="Model",
            source=Path("a.adoc"),
            targets=(Path("a.txt"),),
            content_start_marker="== 1. A",
            header_end_marker="## 1. A",
        )

        assert mapping.targets == (Path("a.txt"),)

    @pytest.mark.parametrize(
        "field, value",
        [
            ("name", ""),
            ("targets", ()),
            ("content_start_marker", ""),
            ("header_end_marker", ""),
        ],
    )
    def test_invalid_mapping_raises(self, field, value):
        kwargs = {
            "name": "Model",
            "source": Path("a.adoc"),
            "targets": (Path("a.txt"),),
            "content_start_marker": "== 1. A",
            "header_end_marker": "## 1. A",
        }
        kwargs[field] = value

        with pytest.raises(ValueError):
            ConversionMapping(**kwargs)

    def test_mapping_is_immutable(self):
        mapping = build_mappings([_raw_mapping()], Path("/docs"))[0]

        with pytest.raises(AttributeError):
            mapping.name = "Other"


class TestBuildMappings:
    def test_paths_resolved_against_base_dir(self):
        mapping = build_mappings([_raw_mapping()], Path("/docs"))[0]

        assert mapping.source == Path("/docs/pages/fraud.adoc")
        assert mapping.targets == (
            Path("/docs/attachments/fraud.txt"),
            Path("/docs/attachments/llm-fraud.txt"),
        )

    def test_absolute_paths_kept(self):
        mapping = build_mappings(
            [_raw_mapping(source="/elsewhere/fraud.adoc")], Path("/docs")
        )[0]

        assert mapping.source == Path("/elsewhere/fraud.adoc")

    def test_order_is_preserved(self):
        mappings = build_mappings(
            [_raw_mapping(name="B"), _raw_mapping(name="A")], Path("/docs")
        )

        assert [m.name for m in mappings] == ["B", "A"]

    def test_missing_key_raises(self):
        raw = _raw_mapping()
        del raw["header_end_marker"]

        with pytest.raises(ValueError, match="header_end_marker"):
            build_mappings([raw], Path("/docs"))

    def test_string_targets_rejected(self):
        with pytest.raises(ValueError, match="targets"):
            build_mappings([_raw_mapping(targets="a.txt")], Path("/docs"))

    def test_builtin_mappings_are_valid(self):
        mappings = build_mappings(CONVERSION_MAPPINGS, Path("/docs"))

        assert [m.name for m in mappings] == [
            "Transaction Base Model",
            "Fraud Event Sequence Model",
        ]
        assert all(len(m.targets) == 2 for m in mappings)


class TestLoadMappings:
    def test_load_from_json(self, tmp_path):
        mappings_file = tmp_path / "mappings.json"
        mappings_file.write_text(json.dumps([_raw_mapping()]), encoding="utf-8")

        mappings = load_mappings(mappings_file, tmp_path)

        assert len(mappings) == 1
        assert mappings[0].source == tmp_path / "pages/fraud.adoc"

    def test_non_list_json_rejected(self, tmp_path):
        mappings_file = tmp_path / "mappings.json"
        mappings_file.write_text(json.dumps(_raw_mapping()), encoding="utf-8")

        with pytest.raises(ValueError, match="JSON list"):
            load_mappings(mappings_file, tmp_path)

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError, match="duplicates the name"):
            build_mappings(
                [_raw_mapping(), _raw_mapping(source="pages/other.adoc")],
                Path("/docs"),
            )


class TestDefaultBaseDir:
    def test_repository_root_when_in_scripts_dir(self, tmp_path):
        module_file = tmp_path / "scripts" / "adoc_to_llm_txt.py"

        assert default_base_dir(module_file) == tmp_path.resolve()

    def test_current_dir_when_installed(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        module_file = tmp_path / "venv" / "site-packages" / "adoc_to_llm_txt.py"

        assert default_base_dir(module_file) == Path.cwd()
