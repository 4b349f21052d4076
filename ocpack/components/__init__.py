# ocpack/components/__init__.py
from .names import RESERVED_NAMES, validateComponentName
from .descriptor import (
    DESCRIPTOR_FILE,
    ComponentDescriptor,
    DescriptorValidation,
    DescriptorValidator,
    PydanticDescriptorValidator,
    loadDescriptor,
    readDescriptor,
    writeDescriptor,
)
from .discover import ComponentDiscoverer, getComponentsByDir, isComponentDir
from .clean import ModulesCleaner

__all__ = [
    "RESERVED_NAMES",
    "validateComponentName",
    "DESCRIPTOR_FILE",
    "ComponentDescriptor",
    "DescriptorValidation",
    "DescriptorValidator",
    "PydanticDescriptorValidator",
    "loadDescriptor",
    "readDescriptor",
    "writeDescriptor",
    "ComponentDiscoverer",
    "getComponentsByDir",
    "isComponentDir",
    "ModulesCleaner",
]
