# ocpack/templates/compilers/html.py
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from ocpack.components.descriptor import DESCRIPTOR_FILE, writeDescriptor
from ocpack.core.hashing import sha1text
from ocpack.templates.compilers.base import buildPackagedManifest, copyDataProvider, copyStatic
from ocpack.templates.registry import CompileOptions

logger = logging.getLogger(__name__)

__all__ = ["TEMPLATE_TYPE", "COMPILED_VIEW_FILE", "HtmlCompiler", "getCompiler"]



TEMPLATE_TYPE = "oc-template-html"
COMPILED_VIEW_FILE = "template.js"

_BETWEEN_TAGS_RE = re.compile(r">\s+<")



class HtmlCompiler:
    """
    Compiler for plain HTML views.

    The view becomes a function registered on oc.components[hashKey] that
    returns the (optionally minified) markup; the model is ignored.
    """
    templateType = TEMPLATE_TYPE
    version = "1.0.0"

    def compile(self, options: CompileOptions) -> dict[str, Any]:
        viewSrc = options.descriptor.oc.files.template.src
        viewPath = options.componentPath / viewSrc
        if not viewPath.is_file():
            raise FileNotFoundError(f"View '{viewSrc}' not found in component")

        markup = viewPath.read_text(encoding="utf-8")
        if options.minify:
            markup = _BETWEEN_TAGS_RE.sub("><", markup).strip()

        compiledView = (
            "function(model){var fn = function(model){ return "
            + json.dumps(markup, ensure_ascii=False)
            + "; }; return fn(model);}"
        )
        hashKey = sha1text(compiledView)
        wrapped = (
            "var oc=oc||{};oc.components=oc.components||{};"
            f"oc.components[{json.dumps(hashKey)}]={compiledView}"
        )
        (options.publishPath / COMPILED_VIEW_FILE).write_text(wrapped, encoding="utf-8")
        if options.verbose:
            logger.info("Compiled view '%s' -> %s (%s)", viewSrc, COMPILED_VIEW_FILE, hashKey)

        dataProvider = copyDataProvider(options)
        static = copyStatic(options)

        return buildPackagedManifest(
            options,
            template={"type": self.templateType, "hashKey": hashKey, "src": COMPILED_VIEW_FILE},
            dataProvider=dataProvider,
            static=static,
        )

    def scaffold(self, destination: Path, componentName: str) -> None:
        (destination / "template.html").write_text(
            "<div>Hello world!</div>\n", encoding="utf-8"
        )
        (destination / "server.js").write_text(
            "'use strict';\n\n"
            "module.exports.data = function(context, callback) {\n"
            "  callback(null, {});\n"
            "};\n",
            encoding="utf-8",
        )
        (destination / "img").mkdir(exist_ok=True)
        (destination / "img" / ".gitkeep").write_text("", encoding="utf-8")
        writeDescriptor(
            destination / DESCRIPTOR_FILE,
            {
                "name": componentName,
                "description": "",
                "version": "1.0.0",
                "oc": {
                    "files": {
                        "data": "server.js",
                        "template": {"src": "template.html", "type": self.templateType},
                        "static": ["img"],
                    }
                },
            },
        )



def getCompiler() -> HtmlCompiler:
    return HtmlCompiler()
