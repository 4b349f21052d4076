# tests/ocpack/templates/test_resolver.py
import logging

import pytest

from ocpack.core.errors import TemplateInvalidError
from ocpack.templates.resolver import TemplateResolver


@pytest.mark.parametrize("legacy", ["jade", "handlebars"])
def test_legacy_alias_is_rewritten_with_one_notice(legacy, caplog):
    notices = []
    resolver = TemplateResolver(onDeprecation=lambda old, new: notices.append((old, new)))

    with caplog.at_level(logging.WARNING, logger="ocpack.templates.resolver"):
        resolved = resolver.resolve(legacy)

    assert resolved.canonicalType == f"oc-template-{legacy}"
    assert resolved.compilerId == f"oc-template-{legacy}-compiler"
    assert resolved.isLegacyAlias is True
    assert notices == [(legacy, f"oc-template-{legacy}")]
    assert len([r for r in caplog.records if "deprecated" in r.getMessage()]) == 1


def test_canonical_type_is_not_legacy(caplog):
    notices = []
    resolver = TemplateResolver(onDeprecation=lambda old, new: notices.append(old))

    with caplog.at_level(logging.WARNING, logger="ocpack.templates.resolver"):
        resolved = resolver.resolve("oc-template-react")

    assert resolved.canonicalType == "oc-template-react"
    assert resolved.compilerId == "oc-template-react-compiler"
    assert resolved.isLegacyAlias is False
    assert notices == []
    assert not caplog.records


def test_custom_alias_set():
    resolver = TemplateResolver(["pug"])
    assert resolver.resolve("pug").canonicalType == "oc-template-pug"
    assert resolver.resolve("jade").canonicalType == "jade"


def test_alias_set_from_settings(isolated_settings):
    isolated_settings.write_text("{templates: {legacyAliases: ['ejs']}}", encoding="utf-8")
    resolver = TemplateResolver()
    assert resolver.isLegacy("ejs")
    assert not resolver.isLegacy("jade")


@pytest.mark.parametrize("bad", ["", "   ", None])
def test_empty_type_is_invalid(bad):
    with pytest.raises(TemplateInvalidError):
        TemplateResolver().resolve(bad)
