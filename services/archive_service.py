"""
Archive extraction service.
Reads an uploaded ZIP / tar archive fully in memory and returns a flat
mapping of cleaned relative path -> text content.
"""
import io
import logging
import lzma
import stat
import tarfile
import zipfile
import zlib
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional

from core.exceptions import ExtractionError
from core.settings import settings
from services.path_normalizer import PathNormalizer, common_root


# Extensions whose content is never decoded as text
BINARY_EXTENSIONS = {
    '.png', '.jpg', '.jpeg', '.gif', '.bmp', '.ico', '.webp',
    '.mp3', '.mp4', '.wav', '.mov', '.webm',
    '.pdf', '.zip', '.tar', '.gz', '.rar', '.7z',
    '.exe', '.dll', '.so', '.dylib', '.bin',
    '.ttf', '.otf', '.woff', '.woff2', '.eot',
    '.pyc', '.class', '.o', '.db', '.sqlite',
}

# OS / archiver droppings that are not part of any project
IGNORED_NAMES = {"__MACOSX", ".DS_Store", "Thumbs.db", "desktop.ini"}

BINARY_SNIFF_BYTES = 8000

TAR_READ_ERRORS = (tarfile.TarError, EOFError, OSError, zlib.error, lzma.LZMAError)


@dataclass
class ArchiveEntry:
    """One member of the archive as it was enumerated."""
    path: str
    content: str = ""
    is_directory: bool = False
    size: int = 0
    modified: Optional[datetime] = None


@dataclass
class ExtractedArchive:
    name: Optional[str]
    format: str
    entries: Dict[str, ArchiveEntry] = field(default_factory=dict)
    overwritten: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    total_bytes: int = 0

    @property
    def files(self) -> Dict[str, str]:
        """Cleaned path -> decoded content, in enumeration order."""
        return {path: entry.content for path, entry in self.entries.items()}

    @property
    def file_count(self) -> int:
        return len(self.entries)


def detect_format(data: bytes) -> Optional[str]:
    """Identifies the container by its magic bytes ("zip", "tar" or None)."""
    if data[:4] in (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08"):
        return "zip"
    if data[:2] == b"\x1f\x8b" or data[:3] == b"BZh" or data[:6] == b"\xfd7zXZ\x00":
        return "tar"
    if data[257:262] == b"ustar":
        return "tar"
    return None


def _zip_timestamp(info: zipfile.ZipInfo) -> Optional[datetime]:
    try:
        return datetime(*info.date_time)
    except ValueError:
        return None


def _tar_timestamp(member: tarfile.TarInfo) -> Optional[datetime]:
    if not member.mtime:
        return None
    try:
        return datetime.fromtimestamp(member.mtime)
    except (ValueError, OverflowError, OSError):
        return None


def is_archive(data: bytes) -> bool:
    return detect_format(data) is not None


def decode_content(raw: bytes, path: str) -> str:
    """Best-effort text decoding; binary payloads become a placeholder."""
    placeholder = f"[binary file: {len(raw)} bytes]"
    if PurePosixPath(path).suffix.lower() in BINARY_EXTENSIONS:
        return placeholder
    if b"\x00" in raw[:BINARY_SNIFF_BYTES]:
        return placeholder
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return placeholder


class ArchiveExtractor:
    """
    Opens an archive buffer and produces an ExtractedArchive.

    - directory entries are skipped, folders are implied by file paths
    - paths go through PathNormalizer; unusable ones are skipped
    - when two raw paths clean up to the same path the later entry wins
    - total decompressed size is capped (ExtractionError "too_large")
    """

    def __init__(
        self,
        max_total_bytes: Optional[int] = None,
        normalizer: Optional[PathNormalizer] = None,
        strip_common_root: Optional[bool] = None,
    ):
        self.max_total_bytes = max_total_bytes or settings.MAX_ARCHIVE_UNCOMPRESSED_BYTES
        self.normalizer = normalizer
        if strip_common_root is None:
            strip_common_root = settings.STRIP_COMMON_ROOT
        self.strip_common_root = strip_common_root

    def extract(self, data: bytes, archive_name: Optional[str] = None) -> ExtractedArchive:
        fmt = detect_format(data)
        if fmt is None:
            raise ExtractionError("unsupported_format", "not a ZIP or tar archive")

        normalizer = self.normalizer or PathNormalizer(archive_name=archive_name)
        result = ExtractedArchive(name=archive_name, format=fmt)

        logging.info(f"📦 Extracting {fmt} archive {archive_name or '<upload>'} ({len(data)} bytes)")

        members = self._iter_zip(data) if fmt == "zip" else self._iter_tar(data)
        for entry in members:
            if entry.is_directory:
                continue
            self._add(result, entry, normalizer)

        if self.strip_common_root:
            self._strip_root(result)

        logging.info(
            f"✅ Extracted {result.file_count} files ({result.total_bytes} bytes, "
            f"{len(result.skipped)} skipped, {len(result.overwritten)} overwritten)"
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _add(self, result: ExtractedArchive, entry: ArchiveEntry, normalizer: PathNormalizer) -> None:
        raw_parts = entry.path.replace("\\", "/").split("/")
        if any(part in IGNORED_NAMES for part in raw_parts):
            result.skipped.append(entry.path)
            return
        if ".." in raw_parts:
            logging.warning(f"🚫 Skipping entry with parent reference: {entry.path}")
            result.skipped.append(entry.path)
            return

        cleaned = normalizer.normalize(entry.path)
        if cleaned is None:
            result.skipped.append(entry.path)
            return

        if cleaned in result.entries:
            logging.warning(f"⚠️ {entry.path} overwrites an earlier entry at {cleaned}")
            result.overwritten.append(cleaned)

        entry.path = cleaned
        result.entries[cleaned] = entry
        result.total_bytes += entry.size

    def _strip_root(self, result: ExtractedArchive) -> None:
        root = common_root(list(result.entries))
        if root is None:
            return
        logging.info(f"📂 Unwrapping single top-level folder: {root}/")
        prefix = root + "/"
        stripped = {}
        for path, entry in result.entries.items():
            entry.path = path[len(prefix):]
            stripped[entry.path] = entry
        result.entries = stripped

    def _budget(self, result_bytes: int, declared: int) -> int:
        if result_bytes + declared > self.max_total_bytes:
            raise ExtractionError(
                "too_large",
                f"archive expands past {self.max_total_bytes} bytes",
            )
        return self.max_total_bytes - result_bytes

    def _read_limited(self, handle, remaining: int) -> bytes:
        # One extra byte tells us the declared size was a lie
        raw = handle.read(remaining + 1)
        if len(raw) > remaining:
            raise ExtractionError(
                "too_large",
                f"archive expands past {self.max_total_bytes} bytes",
            )
        return raw

    def _iter_zip(self, data: bytes) -> Iterator[ArchiveEntry]:
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, OSError, ValueError) as e:
            raise ExtractionError("corrupt", str(e)) from e

        with archive:
            infos = archive.infolist()
            declared = sum(info.file_size for info in infos)
            self._budget(0, declared)

            read_total = 0
            for info in infos:
                if info.is_dir():
                    yield ArchiveEntry(path=info.filename, is_directory=True)
                    continue
                if stat.S_ISLNK(info.external_attr >> 16):
                    logging.warning(f"🚫 Skipping symlink entry: {info.filename}")
                    continue

                remaining = self._budget(read_total, 0)
                try:
                    with archive.open(info) as handle:
                        raw = self._read_limited(handle, remaining)
                except ExtractionError:
                    raise
                except (zipfile.BadZipFile, zlib.error, EOFError, OSError) as e:
                    raise ExtractionError("corrupt", f"{info.filename}: {e}") from e
                except (NotImplementedError, RuntimeError) as e:
                    # Unknown compression method or encrypted member
                    raise ExtractionError("unsupported_format", f"{info.filename}: {e}") from e

                read_total += len(raw)
                yield ArchiveEntry(
                    path=info.filename,
                    content=decode_content(raw, info.filename),
                    size=len(raw),
                    modified=_zip_timestamp(info),
                )

    def _iter_tar(self, data: bytes) -> Iterator[ArchiveEntry]:
        try:
            archive = tarfile.open(fileobj=io.BytesIO(data), mode="r:*")
        except TAR_READ_ERRORS as e:
            raise ExtractionError("corrupt", str(e)) from e

        with archive:
            try:
                members = archive.getmembers()
            except TAR_READ_ERRORS as e:
                raise ExtractionError("corrupt", str(e)) from e

            self._budget(0, sum(m.size for m in members if m.isfile()))

            read_total = 0
            for member in members:
                if member.isdir():
                    yield ArchiveEntry(path=member.name, is_directory=True)
                    continue
                if not member.isfile():
                    logging.warning(f"🚫 Skipping non-regular tar member: {member.name}")
                    continue

                remaining = self._budget(read_total, 0)
                try:
                    handle = archive.extractfile(member)
                    raw = self._read_limited(handle, remaining) if handle else b""
                except ExtractionError:
                    raise
                except TAR_READ_ERRORS as e:
                    raise ExtractionError("corrupt", f"{member.name}: {e}") from e

                read_total += len(raw)
                yield ArchiveEntry(
                    path=member.name,
                    content=decode_content(raw, member.name),
                    size=len(raw),
                    modified=_tar_timestamp(member),
                )
