"""
Heuristic path extraction for codebases uploaded as plain text.

Best-effort only: the result may contain files that do not exist and miss
files that do. Structured archive data should always be preferred.
"""
import logging
import re
from pathlib import PurePosixPath
from typing import Iterable, Optional, Set, Union

from core.settings import settings
from services.path_normalizer import PathNormalizer


# ---- File Type Heuristics ----
SOURCE_EXTS = {".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".vue", ".svelte", ".py"}
MARKUP_EXTS = {".html", ".htm", ".md", ".mdx", ".xml"}
STYLE_EXTS = {".css", ".scss", ".sass", ".less"}
DATA_EXTS = {".json", ".yaml", ".yml", ".toml", ".env", ".txt", ".csv"}
IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp"}
FONT_EXTS = {".woff", ".woff2", ".ttf", ".otf", ".eot"}

RECOGNIZED_EXTENSIONS = SOURCE_EXTS | MARKUP_EXTS | STYLE_EXTS | DATA_EXTS | IMAGE_EXTS | FONT_EXTS

# ---- Regular Expression Patterns ----
# Characters that can never be part of a path token
TOKEN_SPLIT_RE = re.compile(r"[\s\"'`(){}\[\]<>,;|=*!?]+")
# from "./x", import "./x.css", import("./x"), require("./x")
IMPORT_RE = re.compile(
    r"""(?:\bfrom|\bimport|\brequire\s*\(|\bimport\s*\()\s*["']([^"'\n]+)["']"""
)
# Tree drawing characters left over from `tree` style listings
TREE_GLYPHS = "│├└─┬┴┤┌┐┘ "

LOCAL_IMPORT_PREFIXES = ("./", "../", "/", "@/", "~/")

# marker found anywhere in the text -> file that almost certainly exists
SNIFF_RULES = [
    (re.compile(r'"(?:dev)?[dD]ependencies"\s*:'), "package.json"),
    (re.compile(r'"compilerOptions"\s*:'), "tsconfig.json"),
    (re.compile(r"@tailwind\s+(?:base|components|utilities)|tailwindcss"), "tailwind.config.js"),
    (re.compile(r"<!DOCTYPE html", re.IGNORECASE), "index.html"),
    (re.compile(r"""from\s+["']next/"""), "next.config.js"),
    (re.compile(r"""from\s+["']vite["']"""), "vite.config.ts"),
]


class HeuristicPathExtractor:
    """
    Scans arbitrary text for things that look like file paths.

    Sources of candidates:
    - tokens ending in a recognized extension
    - local import / require specifiers (default extension appended)
    - marker strings that imply well-known project files
    """

    def __init__(
        self,
        normalizer: Optional[PathNormalizer] = None,
        default_extension: Optional[str] = None,
    ):
        self.normalizer = normalizer or PathNormalizer()
        self.default_extension = default_extension or settings.DEFAULT_MODULE_EXTENSION

    def extract(self, text: Union[str, bytes, None]) -> Set[str]:
        """Never raises; any internal failure yields an empty set."""
        try:
            if text is None:
                return set()
            if isinstance(text, bytes):
                text = text.decode("utf-8", errors="replace")

            candidates = []
            for line in text.splitlines():
                candidates.extend(self._path_tokens(line))
            candidates.extend(self._import_paths(text))
            candidates.extend(self._sniffed_paths(text))

            paths = self._normalize(candidates)
            logging.info(f"🔎 Heuristic scan found {len(paths)} candidate paths")
            return paths
        except Exception as e:
            logging.warning(f"⚠️ Heuristic path scan failed, returning nothing: {e}")
            return set()

    def _path_tokens(self, line: str) -> Iterable[str]:
        for token in TOKEN_SPLIT_RE.split(line):
            token = token.strip(TREE_GLYPHS).rstrip(":.")
            if not token or "://" in token or token.startswith("#"):
                continue
            if PurePosixPath(token).suffix.lower() in RECOGNIZED_EXTENSIONS:
                yield _strip_local_prefix(token)

    def _import_paths(self, text: str) -> Iterable[str]:
        for match in IMPORT_RE.finditer(text):
            spec = match.group(1).strip()
            # bare specifiers ("react", "next/link") are packages, not files
            if not spec.startswith(LOCAL_IMPORT_PREFIXES):
                continue
            path = _strip_local_prefix(spec)
            if PurePosixPath(path).suffix.lower() not in RECOGNIZED_EXTENSIONS:
                path += self.default_extension
            yield path

    def _sniffed_paths(self, text: str) -> Iterable[str]:
        for pattern, path in SNIFF_RULES:
            if pattern.search(text):
                yield path

    def _normalize(self, candidates: Iterable[str]) -> Set[str]:
        result = set()
        for candidate in candidates:
            cleaned = self.normalizer.normalize(candidate)
            if cleaned is not None:
                result.add(cleaned)
        return result


def _strip_local_prefix(spec: str) -> str:
    for alias in ("@/", "~/"):
        if spec.startswith(alias):
            return spec[len(alias):]
    while spec.startswith(("./", "../")):
        spec = spec.split("/", 1)[1]
    return spec.lstrip("/")


def extract_heuristic_paths(text: Union[str, bytes, None]) -> Set[str]:
    return HeuristicPathExtractor().extract(text)
