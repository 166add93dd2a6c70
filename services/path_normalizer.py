from pathlib import PurePosixPath
from typing import Iterable, List, Optional

from core.settings import settings


ARCHIVE_SUFFIXES = (".tar.gz", ".tar.bz2", ".tar.xz", ".tgz", ".zip", ".tar")


def archive_stem(filename: Optional[str]) -> Optional[str]:
    """'replit.zip' -> 'replit', 'site.tar.gz' -> 'site'."""
    if not filename:
        return None
    name = PurePosixPath(filename.replace("\\", "/")).name
    lowered = name.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if lowered.endswith(suffix):
            return name[: -len(suffix)] or None
    return PurePosixPath(name).stem or None


class PathNormalizer:
    """
    Turns raw archive / text paths into clean relative POSIX paths.

    Two kinds of wrapper folders are unwrapped from the front of a path:
    - export wrappers ("replit", ...) whenever something is left underneath
    - generic names ("project", "app", ... and the archive's own base name)
      only when the path has more than two segments, so that a real short
      path like app/page.tsx stays
    """

    def __init__(
        self,
        wrapper_names: Optional[Iterable[str]] = None,
        export_wrappers: Optional[Iterable[str]] = None,
        archive_name: Optional[str] = None,
    ):
        if wrapper_names is None:
            wrapper_names = settings.WRAPPER_DIRECTORY_NAMES
        if export_wrappers is None:
            export_wrappers = settings.ARCHIVE_EXPORT_WRAPPERS

        self.wrapper_names = {name.lower() for name in wrapper_names}
        self.export_wrappers = {name.lower() for name in export_wrappers}

        stem = archive_stem(archive_name)
        if stem:
            self.wrapper_names.add(stem.lower())

    def normalize(self, raw_path: Optional[str]) -> Optional[str]:
        """Returns the cleaned path, or None when nothing usable is left."""
        if not raw_path or "\x00" in raw_path:
            return None

        # 1. Separators (surrounding line breaks only, spaces may be part of a name)
        path = raw_path.strip("\r\n").replace("\\", "/")

        # 2. Segments (empty and "." are dropped, ".." is never allowed)
        parts = [p for p in path.split("/") if p and p != "."]
        if ".." in parts:
            return None

        # 3. Wrapper folders
        if len(parts) > 1 and parts[0].lower() in self.export_wrappers:
            parts = parts[1:]
        if len(parts) > 2 and parts[0].lower() in self.wrapper_names:
            parts = parts[1:]

        # 4. Empty
        if not parts:
            return None

        # 5. Join
        return "/".join(parts)

    def normalize_all(self, raw_paths: Iterable[str], strip_common_root: Optional[bool] = None) -> List[str]:
        """
        Normalizes every path, drops the unusable ones and keeps first-seen order.
        Optionally removes a single top-level folder shared by the whole set.
        """
        if strip_common_root is None:
            strip_common_root = settings.STRIP_COMMON_ROOT

        seen = {}
        for raw in raw_paths:
            cleaned = self.normalize(raw)
            if cleaned is not None and cleaned not in seen:
                seen[cleaned] = None

        paths = list(seen)
        if strip_common_root:
            paths = strip_single_root(paths)
        return paths


def common_root(paths: List[str]) -> Optional[str]:
    """The one top-level folder every path lives under, if there is one."""
    if not paths:
        return None

    roots = set()
    for path in paths:
        parts = path.split("/")
        if len(parts) < 2:
            return None
        roots.add(parts[0])
        if len(roots) > 1:
            return None
    return roots.pop()


def strip_single_root(paths: List[str]) -> List[str]:
    root = common_root(paths)
    if root is None:
        return list(paths)
    prefix = root + "/"
    return [p[len(prefix):] for p in paths]
