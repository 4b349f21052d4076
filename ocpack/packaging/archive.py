# ocpack/packaging/archive.py
from __future__ import annotations

import fnmatch
import gzip
import logging
import os
import tarfile
import tempfile
import threading
import weakref
from collections.abc import Iterable, Iterator
from pathlib import Path, PurePosixPath

from ocpack.app.settings import settings, settingsBool, settingsList
from ocpack.core.errors import ArchiveMissingError, CleanupError, PackagerIOError

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_ROOT_PREFIX", "compress", "cleanup"]



DEFAULT_ROOT_PREFIX = "_package"



class _SourceLock:
    __slots__ = ("lock", "__weakref__")

    def __init__(self) -> None:
        self.lock = threading.Lock()

    def __enter__(self) -> _SourceLock:
        self.lock.acquire()
        return self

    def __exit__(self, *excInfo) -> None:
        self.lock.release()



# Entries disappear once no compress() holds them
_sourceLocks: weakref.WeakValueDictionary[str, _SourceLock] = weakref.WeakValueDictionary()
_sourceLocksGuard = threading.Lock()



def _lockFor(source: Path) -> _SourceLock:
    key = os.path.normcase(str(source))
    with _sourceLocksGuard:
        lock = _sourceLocks.get(key)
        if lock is None:
            lock = _SourceLock()
            _sourceLocks[key] = lock
        return lock



def _excluded(relPath: str, patterns: tuple[str, ...]) -> bool:
    name = PurePosixPath(relPath).name
    return any(fnmatch.fnmatchcase(relPath, pattern) or fnmatch.fnmatchcase(name, pattern) for pattern in patterns)



def _dirKey(path: str) -> tuple[int, int]:
    st = os.stat(path)
    return st.st_dev, st.st_ino



def _iterEntries(source: Path, patterns: tuple[str, ...], skip: set[str], followLinks: bool) -> Iterator[str]:
    # Sorted, depth-first; excluded directories are pruned with their contents
    # Directory identities on the path from source down to each walked dir
    chains = {str(source): frozenset({_dirKey(str(source))})} if followLinks else {}
    for dirPath, dirNames, fileNames in os.walk(source, followlinks=followLinks):
        chain = chains.pop(dirPath, frozenset())
        relDir = Path(dirPath).relative_to(source).as_posix()
        keptDirs: list[str] = []
        linkedDirs: list[str] = []
        for dirName in sorted(dirNames):
            relPath = dirName if relDir == "." else f"{relDir}/{dirName}"
            if _excluded(relPath, patterns):
                continue
            fullPath = os.path.join(dirPath, dirName)
            if os.path.islink(fullPath) and not followLinks:
                # Stored as a link entry, never descended into
                linkedDirs.append(dirName)
                continue
            if followLinks:
                try:
                    key = _dirKey(fullPath)
                except OSError:
                    linkedDirs.append(dirName)
                    continue
                if key in chain:
                    logger.debug("Not following '%s': links back to an enclosing directory", relPath)
                    linkedDirs.append(dirName)
                    continue
                chains[fullPath] = chain | {key}
            keptDirs.append(dirName)
        dirNames[:] = keptDirs

        entries = [(name, False) for name in fileNames] + [(name, True) for name in keptDirs + linkedDirs]
        for entryName, isDir in sorted(entries):
            relPath = entryName if relDir == "." else f"{relDir}/{entryName}"
            if not isDir and (_excluded(relPath, patterns) or os.path.join(dirPath, entryName) in skip):
                continue
            yield relPath



def compress(
    sourceDir: str | Path,
    destination: str | Path,
    *,
    prefix: str | None = None,
    exclude: Iterable[str] | None = None,
    dereference: bool | None = None,
) -> Path:
    """
    Writes a gzipped tarball of `sourceDir` to `destination`.

    Every entry is stored as "<prefix>/<path relative to sourceDir>", so the
    archive does not depend on where the source lives on disk. Hidden files,
    empty files, directories and permission bits are kept; symlinks stay links
    unless `dereference`. Entries are sorted and the gzip header carries no
    timestamp. The archive is written next to `destination` and renamed into
    place when complete.
    """
    source = Path(sourceDir).resolve()
    dest = Path(destination).absolute()
    if not source.is_dir():
        raise PackagerIOError("Source directory not found", operation="compress", path=source)

    rootPrefix = (prefix if prefix is not None else str(settings("archive.rootPrefix", DEFAULT_ROOT_PREFIX))).strip("/")
    patterns = tuple(exclude) if exclude is not None else tuple(settingsList("archive.exclude", []))
    followLinks = settingsBool("archive.dereferenceSymlinks", False) if dereference is None else dereference

    with _lockFor(source):
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmpName = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent)
        except OSError as err:
            raise PackagerIOError(f"Cannot create archive: {err}", operation="compress", path=dest) from err

        tmpPath = Path(tmpName)
        # Archive may be written inside the directory being archived
        realParent = os.path.realpath(dest.parent)
        skip = {os.path.join(realParent, tmpPath.name), os.path.join(realParent, dest.name)}
        count = 0
        try:
            with os.fdopen(fd, "wb") as raw:
                with gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz:
                    with tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT, dereference=followLinks) as tar:
                        if rootPrefix:
                            tar.add(source, arcname=rootPrefix, recursive=False)
                        for relPath in _iterEntries(source, patterns, skip, followLinks):
                            arcname = f"{rootPrefix}/{relPath}" if rootPrefix else relPath
                            tar.add(source / relPath, arcname=arcname, recursive=False)
                            count += 1
            os.replace(tmpPath, dest)
        except OSError as err:
            tmpPath.unlink(missing_ok=True)
            raise PackagerIOError(f"Compression failed: {err}", operation="compress", path=source) from err
        except BaseException:
            tmpPath.unlink(missing_ok=True)
            raise

    logger.debug("Compressed %d entries from '%s' into '%s'", count, source, dest)
    return dest



def cleanup(archivePath: str | Path) -> None:
    """
    Deletes an archive.

    An archive that is already gone raises ArchiveMissingError (fatal=False);
    any other failure raises CleanupError (fatal=True).
    """
    path = Path(archivePath)
    try:
        path.unlink()
    except FileNotFoundError as err:
        raise ArchiveMissingError("Archive not found", operation="cleanup", path=path) from err
    except OSError as err:
        raise CleanupError(f"Cannot remove archive: {err}", operation="cleanup", path=path) from err
    logger.debug("Removed archive '%s'", path)
