# tests/ocpack/app/test_settings.py
import pytest

from ocpack.app import settings as settingsModule
from ocpack.app.settings import deepMerge, loadSettings, settings, settingsBool, settingsList


def test_shipped_defaults():
    assert settings("npm.binary") == "npm"
    assert settings("archive.rootPrefix") == "_package"
    assert settingsList("templates.legacyAliases") == ["jade", "handlebars"]
    assert settingsBool("init.installCompiler") is True
    assert settings("templates.compilers")["oc-template-html-compiler"] == "ocpack.templates.compilers.html:getCompiler"


def test_user_file_overrides_and_extends(isolated_settings):
    isolated_settings.write_text(
        "{ // user overrides\n packaging: {maxWorkers: 8}, templates: {compilers: {'oc-template-x-compiler': 'x:y'}} }",
        encoding="utf-8",
    )
    assert settings("packaging.maxWorkers") == 8
    assert settings("packaging.minify") is True
    compilers = settings("templates.compilers")
    assert set(compilers) == {"oc-template-html-compiler", "oc-template-x-compiler"}


def test_broken_user_file_falls_back_to_defaults(isolated_settings, caplog):
    isolated_settings.write_text("{ nope", encoding="utf-8")
    assert settings("npm.binary") == "npm"
    assert any("Failed to parse" in record.getMessage() for record in caplog.records)


def test_settings_are_cached(isolated_settings):
    first = loadSettings()
    isolated_settings.write_text("{npm: {binary: 'yarn'}}", encoding="utf-8")
    assert loadSettings() is first
    settingsModule.loadSettings.cache_clear()
    assert settings("npm.binary") == "yarn"


@pytest.mark.parametrize(
    "first, second, expected",
    [
        ({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}}, {"a": {"b": 1, "c": 3}}),
        ({"a": [1, 2]}, {"a": [3]}, {"a": [3]}),
        ({"a": 1}, {"b": 2}, {"a": 1, "b": 2}),
        ({"a": {"b": 1}}, {"a": None}, {"a": None}),
    ],
)
def test_deep_merge(first, second, expected):
    assert deepMerge(first, second) == expected


def test_missing_paths_use_default():
    assert settings("no.such.key", "fallback") == "fallback"
    assert settingsBool("no.such.flag", True) is True
    assert settingsList("no.such.list", ["x"]) == ["x"]
