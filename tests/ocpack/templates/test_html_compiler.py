# tests/ocpack/templates/test_html_compiler.py
import json

import pytest

from ocpack.components.descriptor import loadDescriptor
from ocpack.core.hashing import sha1sum
from ocpack.templates.compilers.html import COMPILED_VIEW_FILE, HtmlCompiler
from ocpack.templates.registry import CompileOptions


def _options(componentPath, **kwargs):
    publishPath = componentPath / "_package"
    publishPath.mkdir()
    return CompileOptions(
        componentPath=componentPath,
        descriptor=loadDescriptor(componentPath),
        publishPath=publishPath,
        packagerVersion="9.9.9",
        **kwargs,
    )


def test_compile_writes_view_data_and_static(make_component):
    component = make_component("hello", extra={"license": "MIT"})
    options = _options(component)

    manifest = HtmlCompiler().compile(options)

    view = (options.publishPath / COMPILED_VIEW_FILE).read_text(encoding="utf-8")
    files = manifest["oc"]["files"]
    assert view.startswith("var oc=oc||{};")
    assert f'oc.components["{files["template"]["hashKey"]}"]' in view
    assert "<div><p>Hello</p></div>" in view
    assert files["template"] == {"type": "oc-template-html", "hashKey": files["template"]["hashKey"], "src": "template.js"}
    assert files["dataProvider"]["src"] == "server.js"
    assert files["dataProvider"]["hashKey"] == sha1sum(options.publishPath / "server.js")
    assert "data" not in files
    assert files["static"] == ["img"]
    assert (options.publishPath / "img" / "logo.png").is_file()
    assert manifest["oc"]["packaged"] is True
    assert manifest["oc"]["version"] == "9.9.9"
    assert isinstance(manifest["oc"]["date"], int)
    assert manifest["license"] == "MIT"


def test_compile_without_minify_keeps_whitespace(make_component):
    component = make_component("spaced")
    options = _options(component, minify=False)
    HtmlCompiler().compile(options)
    view = (options.publishPath / COMPILED_VIEW_FILE).read_text(encoding="utf-8")
    assert json.dumps("<div>\n  <p>Hello</p>\n</div>\n") in view


def test_compile_does_not_touch_source_descriptor(make_component):
    component = make_component("pristine")
    before = (component / "package.json").read_text(encoding="utf-8")
    options = _options(component)
    HtmlCompiler().compile(options)
    assert (component / "package.json").read_text(encoding="utf-8") == before
    assert "packaged" not in options.descriptor.toJson()["oc"]


def test_missing_view_fails(make_component):
    component = make_component("noview")
    (component / "template.html").unlink()
    with pytest.raises(FileNotFoundError):
        HtmlCompiler().compile(_options(component))


def test_component_without_data_provider(make_component):
    component = make_component("static-only", data=False, static=())
    manifest = HtmlCompiler().compile(_options(component))
    assert "dataProvider" not in manifest["oc"]["files"]
    assert manifest["oc"]["files"]["static"] == []


def test_scaffold_writes_a_loadable_component(tmp_path):
    HtmlCompiler().scaffold(tmp_path, "fresh")
    descriptor = loadDescriptor(tmp_path)
    assert descriptor.name == "fresh"
    assert descriptor.templateType == "oc-template-html"
    assert (tmp_path / "template.html").is_file()
    assert (tmp_path / "server.js").is_file()
    assert (tmp_path / "img").is_dir()
