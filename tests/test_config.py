"""Tests for settings loading."""

from pathlib import Path

import pytest

from componentmeta.config import DEFAULT_GLOBAL_PROPS, Settings, load_settings
from componentmeta.errors import ConfigurationError
from componentmeta.models.records import TypeMeta


def test_defaults():
    settings = Settings()
    assert settings.schema_options.exclude == ["node_modules"]
    assert settings.schema_options.ignore_type_args is False
    assert settings.filter_global_props is True
    assert settings.filter_exposed is True
    assert settings.global_props == DEFAULT_GLOBAL_PROPS
    assert settings.component_wrappers["DefineComponent"] == TypeMeta.CLASS


def test_load_settings_from_yaml(tmp_path: Path):
    config = tmp_path / "componentmeta.yaml"
    config.write_text(
        "root_path: {root}\n"
        "entry: src/index.ts\n"
        "filter_exposed: false\n"
        "schema_options:\n"
        "  ignore: [HTMLElement]\n"
        "  ignore_type_args: true\n"
        "component_wrappers:\n"
        "  DefineComponent: class\n"
        "  DefineSetupFnComponent: function\n".format(root=tmp_path)
    )

    settings = load_settings(config)

    assert settings.root_path == tmp_path.resolve()
    assert settings.entry_path() == (tmp_path / "src" / "index.ts").resolve()
    assert settings.filter_exposed is False
    assert settings.schema_options.ignore == ["HTMLElement"]
    assert settings.schema_options.ignore_type_args is True
    assert settings.component_wrappers["DefineSetupFnComponent"] == TypeMeta.FUNCTION


def test_missing_config_file_uses_defaults(tmp_path: Path):
    settings = load_settings(tmp_path / "absent.yaml")
    assert settings.entry is None


def test_non_mapping_config_is_rejected(tmp_path: Path):
    config = tmp_path / "componentmeta.yaml"
    config.write_text("- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        load_settings(config)


def test_unknown_component_kind_is_rejected():
    with pytest.raises(ConfigurationError, match="widget"):
        Settings(component_wrappers={"DefineComponent": "widget"})


def test_entry_path_requires_entry(tmp_path: Path):
    settings = Settings(root_path=tmp_path)
    with pytest.raises(ConfigurationError):
        settings.entry_path()
    assert settings.entry_path("lib/main.ts") == (tmp_path / "lib" / "main.ts").resolve()
