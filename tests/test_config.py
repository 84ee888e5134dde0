# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for modelslim.config — SlimOptions and YAML option files."""

from __future__ import annotations

import pydantic
import pytest

from modelslim.config import TOGGLE_FIELDS, SlimOptions, load_options
from modelslim.errors import ConfigError, ModelSlimError


class TestSlimOptions:
    def test_recommended_defaults(self):
        options = SlimOptions.recommended()
        assert options.remove_presentation is False
        assert set(options.enabled_toggles()) == set(TOGGLE_FIELDS) - {"remove_presentation"}
        assert options.compact_output is None
        assert options.line_terminator == "\n"

    def test_all_off_and_on(self):
        assert SlimOptions.all_off().enabled_toggles() == []
        assert SlimOptions.all_on().enabled_toggles() == list(TOGGLE_FIELDS)

    def test_frozen(self):
        options = SlimOptions()
        with pytest.raises(pydantic.ValidationError):
            options.remove_lineage = False

    def test_unknown_field_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            SlimOptions(remove_everything=True)

    def test_invalid_terminator(self):
        with pytest.raises(pydantic.ValidationError):
            SlimOptions(line_terminator="\r")

    def test_prefixes_normalized(self):
        options = SlimOptions(language_data_prefixes=("definition\\cultures/", "/cultures"))
        assert options.language_data_prefixes == ("definition/cultures", "cultures")

    def test_empty_prefix_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            SlimOptions(language_data_prefixes=("/",))


class TestWithOverrides:
    def test_none_ignored(self):
        options = SlimOptions()
        assert options.with_overrides(remove_lineage=None) is options

    def test_applied(self):
        options = SlimOptions().with_overrides(remove_lineage=False, compact_output=True)
        assert options.remove_lineage is False
        assert options.compact_output is True

    def test_original_unchanged(self):
        options = SlimOptions()
        options.with_overrides(prune_empty=False)
        assert options.prune_empty is True

    def test_invalid_raises_config_error(self):
        with pytest.raises(ConfigError, match="Invalid option override"):
            SlimOptions().with_overrides(line_terminator="x")


class TestLoadOptions:
    def test_yaml_mapping(self, tmp_path):
        path = tmp_path / "slim.yaml"
        path.write_text("remove_lineage: false\nremove_presentation: true\ncompact_output: true\n", encoding="utf-8")
        options = load_options(path)
        assert options.remove_lineage is False
        assert options.remove_presentation is True
        assert options.compact_output is True
        assert options.remove_annotations is True

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "slim.yaml"
        path.write_text("", encoding="utf-8")
        assert load_options(path) == SlimOptions()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_options(tmp_path / "missing.yaml")

    def test_not_yaml(self, tmp_path):
        path = tmp_path / "slim.yaml"
        path.write_text("remove_lineage: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_options(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "slim.yaml"
        path.write_text("- remove_lineage\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_options(path)

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "slim.yaml"
        path.write_text("remove_lineage: false\nstrip_everything: true\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid options"):
            load_options(path)

    def test_config_error_is_model_slim_error(self, tmp_path):
        with pytest.raises(ModelSlimError):
            load_options(tmp_path / "missing.yaml")
