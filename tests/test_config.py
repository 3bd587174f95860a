"""Tests for jqflow.config."""

import pytest

from jqflow.config import (
    DEFAULT_CONFIG_NAME,
    RenderOptions,
    load_options,
    options_from_dict,
    parse_config,
)
from jqflow.errors import ConfigError


class TestRenderOptions:

    def test_defaults(self):
        o = RenderOptions()
        assert (o.layout, o.theme, o.pad, o.d2_binary) == ("dagre", 0, 100, "d2")

    def test_merged_ignores_none(self):
        o = RenderOptions(layout="elk")
        assert o.merged(layout=None, pad=None) == o

    def test_merged_overrides(self):
        assert RenderOptions().merged(layout="elk").layout == "elk"


class TestOptionsFromDict:

    def test_all_keys(self):
        o = options_from_dict({"layout": "elk", "theme": 200, "pad": 10, "d2_binary": "/opt/d2"})
        assert o == RenderOptions(layout="elk", theme=200, pad=10, d2_binary="/opt/d2")

    @pytest.mark.parametrize("data,expected", [
        ({"engine": "elk"}, RenderOptions(layout="elk")),
        ({"layout_engine": "elk"}, RenderOptions(layout="elk")),
        ({"padding": 5}, RenderOptions(pad=5)),
        ({"d2": "d2-nightly"}, RenderOptions(d2_binary="d2-nightly")),
    ])
    def test_synonyms(self, data, expected):
        assert options_from_dict(data) == expected

    def test_canonical_key_wins_over_synonym(self):
        assert options_from_dict({"layout": "elk", "engine": "dagre"}).layout == "elk"

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown config key"):
            options_from_dict({"colour": "red"})

    @pytest.mark.parametrize("data", [
        {"pad": "wide"},
        {"pad": -1},
        {"theme": True},
        {"layout": ""},
        {"d2_binary": 3},
    ])
    def test_bad_values(self, data):
        with pytest.raises(ConfigError):
            options_from_dict(data)

    def test_root_must_be_mapping(self):
        with pytest.raises(ConfigError, match="mapping"):
            options_from_dict(["layout", "elk"])


class TestLoading:

    def test_parse_yaml(self):
        assert parse_config("layout: elk\npadding: 20\n") == RenderOptions(layout="elk", pad=20)

    def test_empty_document(self):
        assert parse_config("") == RenderOptions()

    def test_invalid_yaml(self):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            parse_config("layout: [elk")

    def test_default_file_in_cwd(self, tmp_path):
        (tmp_path / DEFAULT_CONFIG_NAME).write_text("theme: 4\n", encoding="utf-8")
        assert load_options(cwd=tmp_path).theme == 4

    def test_no_file_gives_defaults(self, tmp_path):
        assert load_options(cwd=tmp_path) == RenderOptions()

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "diagram.yaml"
        path.write_text("engine: elk\n", encoding="utf-8")
        assert load_options(path).layout == "elk"

    def test_explicit_path_missing(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_options(tmp_path / "missing.yaml")
