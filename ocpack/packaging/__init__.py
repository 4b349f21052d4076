# ocpack/packaging/__init__.py
from .archive import cleanup, compress
from .manifest import PACKAGED_MANIFEST_SCHEMA, validatePackagedManifest
from .packager import PUBLISH_DIR, BatchResult, PackagedComponent, PackageOutcome, Packager

__all__ = [
    "cleanup",
    "compress",
    "PACKAGED_MANIFEST_SCHEMA",
    "validatePackagedManifest",
    "PUBLISH_DIR",
    "BatchResult",
    "PackagedComponent",
    "PackageOutcome",
    "Packager",
]
