# ocpack/components/descriptor.py
from __future__ import annotations

import json
import logging
import posixpath
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Protocol

import json5
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from semantic_version import NpmSpec, Version

from ocpack.core.errors import DescriptorInvalidError, PackagerIOError

logger = logging.getLogger(__name__)

__all__ = [
    "DESCRIPTOR_FILE",
    "TemplateFile",
    "ComponentFiles",
    "OcSection",
    "AuthorInfo",
    "ComponentDescriptor",
    "DescriptorValidation",
    "DescriptorValidator",
    "PydanticDescriptorValidator",
    "readDescriptor",
    "writeDescriptor",
    "loadDescriptor",
]



DESCRIPTOR_FILE = "package.json"

# Values that look like a semver range get checked; tags, URLs, paths,
# "github:user/repo" and friends are passed through untouched, as npm does.
_RANGE_START_RE = re.compile(r"^\s*(?:[\^~<>=*]|\d|[xX](?:\.|\s|$))")

# Generated by packaging or npm; never valid as component sources
_GENERATED_DIRS = frozenset({"_package", "node_modules"})



def _insideComponent(entry: str, what: str) -> str:
    normalized = posixpath.normpath(entry.replace("\\", "/")) if entry else ""
    first = normalized.split("/", 1)[0]
    if (
        not normalized
        or normalized == "."
        or posixpath.isabs(normalized)
        or Path(entry).is_absolute()
        or first == ".."
        or first in _GENERATED_DIRS
    ):
        raise ValueError(f"{what} '{entry}' must be a relative path inside the component")
    return entry



class TemplateFile(BaseModel):
    """oc.files.template of a source descriptor: which compiler, which view file."""
    model_config = ConfigDict(extra="allow")

    type: str = Field(min_length=1)
    src: str = Field(min_length=1)

    @field_validator("src")
    @classmethod
    def _srcInside(cls, value: str) -> str:
        return _insideComponent(value, "template src")



class ComponentFiles(BaseModel):
    model_config = ConfigDict(extra="allow")

    template: TemplateFile
    data: str | None = None
    static: list[str] = Field(default_factory=list)

    @field_validator("data")
    @classmethod
    def _dataInside(cls, value: str | None) -> str | None:
        return value if value is None else _insideComponent(value, "data")

    @field_validator("static")
    @classmethod
    def _staticDirsInside(cls, value: list[str]) -> list[str]:
        for entry in value:
            _insideComponent(entry, "static entry")
        return value



class OcSection(BaseModel):
    model_config = ConfigDict(extra="allow")

    files: ComponentFiles
    packaged: bool = False
    parameters: dict[str, Any] = Field(default_factory=dict)
    plugins: list[str] = Field(default_factory=list)
    renderInfo: bool | None = None
    container: bool | None = None
    state: str | None = None

    @field_validator("packaged")
    @classmethod
    def _notPackaged(cls, value: bool) -> bool:
        if value:
            raise ValueError("source descriptor is marked as already packaged")
        return value



class AuthorInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    email: str | None = None
    url: str | None = None



class ComponentDescriptor(BaseModel):
    """
    Validated view of a component's package.json.

    Unknown top-level keys are kept (extra="allow") so the packaged manifest can
    carry them forward unchanged. The name is only required to be a non-empty
    string here; naming rules are enforced by validateComponentName() so that a
    bad name surfaces as NameInvalidError, not as a schema failure.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    version: str
    description: str | None = None
    author: str | AuthorInfo | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
    devDependencies: dict[str, str] = Field(default_factory=dict)
    oc: OcSection

    @field_validator("version")
    @classmethod
    def _semver(cls, value: str) -> str:
        try:
            Version(value)
        except ValueError as err:
            raise ValueError(f"'{value}' is not a semantic version ({err})") from err
        return value

    @field_validator("dependencies", "devDependencies")
    @classmethod
    def _ranges(cls, value: dict[str, str]) -> dict[str, str]:
        for depName, depRange in value.items():
            if not depName.strip():
                raise ValueError("dependency names must be non-empty")
            if depRange.strip() and _RANGE_START_RE.match(depRange):
                try:
                    NpmSpec(depRange)
                except ValueError as err:
                    raise ValueError(f"'{depName}': invalid version range '{depRange}' ({err})") from err
        return value

    @property
    def templateType(self) -> str:
        return self.oc.files.template.type

    def toJson(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)



@dataclass(frozen=True, slots=True)
class DescriptorValidation:
    isValid: bool
    reasons: tuple[str, ...] = field(default_factory=tuple)
    descriptor: ComponentDescriptor | None = None



class DescriptorValidator(Protocol):
    def validate(self, raw: Any) -> DescriptorValidation:
        ...



class PydanticDescriptorValidator:
    """Default descriptor validator: ComponentDescriptor.model_validate()."""

    def validate(self, raw: Any) -> DescriptorValidation:
        if not isinstance(raw, Mapping):
            return DescriptorValidation(isValid=False, reasons=("descriptor must be a JSON object",))
        try:
            descriptor = ComponentDescriptor.model_validate(dict(raw))
        except ValidationError as err:
            reasons = tuple(_formatError(item) for item in err.errors())
            return DescriptorValidation(isValid=False, reasons=reasons)
        return DescriptorValidation(isValid=True, descriptor=descriptor)



def _formatError(item: Mapping[str, Any]) -> str:
    loc = ".".join(str(part) for part in item.get("loc", ()))
    msg = str(item.get("msg", "invalid"))
    return f"{loc}: {msg}" if loc else msg



def readDescriptor(componentPath: Path) -> dict[str, Any]:
    """
    Returns the raw package.json object of a component.

    Missing or unparsable descriptors are DescriptorInvalidError; other disk
    failures are PackagerIOError.
    """
    descriptorPath = Path(componentPath) / DESCRIPTOR_FILE
    try:
        text = descriptorPath.read_text(encoding="utf-8")
    except FileNotFoundError as err:
        raise DescriptorInvalidError([f"{DESCRIPTOR_FILE} not found"], path=descriptorPath) from err
    except OSError as err:
        raise PackagerIOError(f"Cannot read {DESCRIPTOR_FILE}: {err}", path=descriptorPath) from err

    try:
        raw = json5.loads(text)
    except ValueError as err:
        raise DescriptorInvalidError([f"{DESCRIPTOR_FILE} is not valid JSON: {err}"], path=descriptorPath) from err
    if not isinstance(raw, dict):
        raise DescriptorInvalidError(["descriptor must be a JSON object"], path=descriptorPath)
    return raw



def writeDescriptor(path: Path, payload: Mapping[str, Any]) -> None:
    try:
        Path(path).write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    except OSError as err:
        raise PackagerIOError(f"Cannot write {Path(path).name}: {err}", path=path) from err



def loadDescriptor(componentPath: Path, validator: DescriptorValidator | None = None) -> ComponentDescriptor:
    """Reads and validates a component descriptor, raising DescriptorInvalidError with reasons."""
    raw = readDescriptor(componentPath)
    result = (validator or PydanticDescriptorValidator()).validate(raw)
    if not result.isValid or result.descriptor is None:
        componentName = raw.get("name") if isinstance(raw.get("name"), str) else None
        logger.debug("Descriptor at '%s' rejected: %s", componentPath, "; ".join(result.reasons))
        raise DescriptorInvalidError(
            result.reasons,
            componentName=componentName,
            path=Path(componentPath) / DESCRIPTOR_FILE,
        )
    return result.descriptor
