# ocpack/templates/resolver.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ocpack.app.settings import settingsList
from ocpack.core.errors import TemplateInvalidError

logger = logging.getLogger(__name__)

__all__ = [
    "CANONICAL_PREFIX",
    "COMPILER_SUFFIX",
    "DEFAULT_LEGACY_ALIASES",
    "ResolvedTemplate",
    "TemplateResolver",
    "DeprecationCallback",
]



CANONICAL_PREFIX = "oc-template-"
COMPILER_SUFFIX = "-compiler"

# Template names used before the oc-template-* convention existed
DEFAULT_LEGACY_ALIASES: tuple[str, ...] = ("jade", "handlebars")

DeprecationCallback = Callable[[str, str], None]



@dataclass(frozen=True, slots=True)
class ResolvedTemplate:
    requestedType: str
    canonicalType: str
    compilerId: str
    isLegacyAlias: bool = False



class TemplateResolver:
    """
    Maps a requested template type to its canonical type and compiler id.

    Legacy aliases are rewritten to "oc-template-<alias>" and reported once per
    resolve() call, through the module logger and the optional onDeprecation
    callback. The alias set comes from `templates.legacyAliases` unless passed.
    """

    def __init__(
        self,
        legacyAliases: Iterable[str] | None = None,
        *,
        onDeprecation: DeprecationCallback | None = None,
    ):
        if legacyAliases is None:
            legacyAliases = settingsList("templates.legacyAliases", list(DEFAULT_LEGACY_ALIASES))
        self.legacyAliases: frozenset[str] = frozenset(legacyAliases)
        self._onDeprecation = onDeprecation

    def isLegacy(self, templateType: str) -> bool:
        return templateType in self.legacyAliases

    def resolve(self, requestedType: str) -> ResolvedTemplate:
        if not isinstance(requestedType, str) or not requestedType.strip():
            raise TemplateInvalidError("Template type not valid: empty", templateType=requestedType or None)
        requestedType = requestedType.strip()

        if self.isLegacy(requestedType):
            canonicalType = f"{CANONICAL_PREFIX}{requestedType}"
            self._warnDeprecated(requestedType, canonicalType)
            isLegacy = True
        else:
            canonicalType = requestedType
            isLegacy = False

        return ResolvedTemplate(
            requestedType=requestedType,
            canonicalType=canonicalType,
            compilerId=f"{canonicalType}{COMPILER_SUFFIX}",
            isLegacyAlias=isLegacy,
        )

    def _warnDeprecated(self, legacyName: str, canonicalType: str) -> None:
        logger.warning(
            "Template type '%s' is deprecated and will stop working in a future release. Use '%s' instead.",
            legacyName,
            canonicalType,
        )
        if self._onDeprecation is not None:
            self._onDeprecation(legacyName, canonicalType)
