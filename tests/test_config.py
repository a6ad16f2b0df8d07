# tests/test_config.py
"""
Tests for generator configuration loading and validation.
"""

import json

import pytest

from autoequality.config import GeneratorConfig, HashingMode, load_config
from autoequality.errors import ConfigError, ErrorCodes


class TestGeneratorConfig:

    def test_defaults_are_valid(self):
        config = GeneratorConfig()
        assert config.hashing_mode is HashingMode.AUTO
        assert config.namespace_placeholder == "global"
        assert config.indent == "    "
        assert config.emit_header
        assert config.hash_combinator_arity == 8
        assert config.validate() == []

    @pytest.mark.parametrize("kwargs", [
        {"namespace_placeholder": ""},
        {"namespace_placeholder": "two words"},
        {"indent": ""},
        {"indent": "--"},
        {"hash_combinator_arity": -1},
    ])
    def test_validation(self, kwargs):
        assert GeneratorConfig(**kwargs).validate()

    def test_from_mapping(self):
        config = GeneratorConfig.from_mapping({
            "hashing_mode": "MANUAL",
            "indent": "\t",
            "emit_header": False,
        })
        assert config.hashing_mode is HashingMode.MANUAL
        assert config.indent == "\t"
        assert not config.emit_header

    @pytest.mark.parametrize("data, fragment", [
        ({"colour": "red"}, "unknown configuration key"),
        ({"hashing_mode": "sometimes"}, "hashing_mode must be one of"),
        ({"hash_combinator_arity": "eight"}, "must be an integer"),
        ({"emit_header": "yes"}, "must be a boolean"),
        ({"indent": "x"}, "spaces or tabs"),
    ])
    def test_from_mapping_rejects(self, data, fragment):
        with pytest.raises(ConfigError) as info:
            GeneratorConfig.from_mapping(data)
        assert info.value.code == ErrorCodes.INVALID_CONFIG
        assert fragment in str(info.value)


class TestLoadConfig:

    def test_missing_file_yields_defaults(self, tmp_path):
        assert load_config(tmp_path / "absent.json") == GeneratorConfig()

    def test_empty_file_yields_defaults(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("  \n", encoding="utf-8")
        assert load_config(path) == GeneratorConfig()

    def test_valid_file(self, tmp_path):
        path = tmp_path / "autoequality.json"
        path.write_text(json.dumps({"hashing_mode": "combinator", "hash_combinator_arity": 16}))
        config = load_config(path)
        assert config.hashing_mode is HashingMode.COMBINATOR
        assert config.hash_combinator_arity == 16

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{hashing_mode: manual", encoding="utf-8")
        with pytest.raises(ConfigError, match="failed to parse bad.json"):
            load_config(path)

    def test_root_must_be_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(path)
