from __future__ import annotations

import os
from pathlib import PurePosixPath, Path
from typing import Dict, List, Optional, Protocol


class FileSystem(Protocol):
    """
    The filesystem calls the core makes. Swap in MemoryFileSystem
    for tests that should not touch the disk.
    """

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def list_directories(self, path: str) -> List[str]: ...

    def read_text(self, path: str) -> str: ...

    def join(self, *parts: str) -> str: ...

    def basename(self, path: str) -> str: ...


class LocalFileSystem:
    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def list_directories(self, path: str) -> List[str]:
        """Immediate subdirectories, full paths, sorted by name. Raises OSError."""
        out = []
        with os.scandir(path) as it:
            for entry in it:
                if entry.is_dir():
                    out.append(entry.path)
        return sorted(out, key=lambda p: os.path.basename(p))

    def read_text(self, path: str) -> str:
        # utf-8-sig so files saved with a BOM still parse
        return Path(path).read_text(encoding="utf-8-sig")

    def join(self, *parts: str) -> str:
        return os.path.join(*parts)

    def basename(self, path: str) -> str:
        return os.path.basename(os.path.normpath(path))


class MemoryFileSystem:
    """
    In-memory tree keyed by posix paths. Directories are implied by the
    files written under them, or created explicitly with make_dirs().
    """

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self._files: Dict[str, str] = {}
        self._dirs = {"/"}
        for path, text in (files or {}).items():
            self.write_text(path, text)

    @staticmethod
    def _norm(path: str) -> str:
        p = str(PurePosixPath("/") / str(path).replace("\\", "/"))
        return p.rstrip("/") or "/"

    def make_dirs(self, path: str) -> None:
        p = PurePosixPath(self._norm(path))
        for parent in [p, *p.parents]:
            self._dirs.add(str(parent))

    def write_text(self, path: str, text: str) -> None:
        p = self._norm(path)
        self.make_dirs(str(PurePosixPath(p).parent))
        self._files[p] = text

    def exists(self, path: str) -> bool:
        p = self._norm(path)
        return p in self._files or p in self._dirs

    def is_dir(self, path: str) -> bool:
        return self._norm(path) in self._dirs

    def list_directories(self, path: str) -> List[str]:
        p = self._norm(path)
        if p not in self._dirs:
            raise FileNotFoundError(path)
        children = [d for d in self._dirs if d != p and str(PurePosixPath(d).parent) == p]
        return sorted(children, key=lambda d: PurePosixPath(d).name)

    def read_text(self, path: str) -> str:
        p = self._norm(path)
        if p not in self._files:
            raise FileNotFoundError(path)
        return self._files[p]

    def join(self, *parts: str) -> str:
        return str(PurePosixPath(*parts))

    def basename(self, path: str) -> str:
        return PurePosixPath(self._norm(path)).name


def default_fs() -> FileSystem:
    return LocalFileSystem()
