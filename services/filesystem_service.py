from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Iterator, List, Literal, Mapping, Optional, Tuple, Union

from core.exceptions import ConflictError


@dataclass(frozen=True)
class FileMetadata:
    size_estimate: Optional[int] = None
    last_modified_label: Optional[str] = None


@dataclass(frozen=True)
class FileNode:
    name: str
    size_estimate: Optional[int] = None
    last_modified_label: Optional[str] = None
    type: Literal["file"] = "file"


@dataclass(frozen=True)
class FolderNode:
    name: str
    children: Tuple["TreeNode", ...] = ()
    type: Literal["folder"] = "folder"

    def child(self, name: str) -> Optional["TreeNode"]:
        for node in self.children:
            if node.name == name:
                return node
        return None


TreeNode = Union[FolderNode, FileNode]
Tree = Tuple[TreeNode, ...]


class _FolderDraft:
    """Mutable folder used while the tree is being assembled."""

    def __init__(self, name: str):
        self.name = name
        self.entries: Dict[str, Union["_FolderDraft", FileNode]] = {}

    def freeze(self) -> FolderNode:
        return FolderNode(name=self.name, children=_freeze_entries(self.entries))


def _freeze_entries(entries: Dict[str, Union[_FolderDraft, FileNode]]) -> Tree:
    # Deterministic Sort: Folders first, then files (A-Z)
    ordered = sorted(
        entries.values(),
        key=lambda e: (isinstance(e, FileNode), e.name.lower(), e.name),
    )
    return tuple(e.freeze() if isinstance(e, _FolderDraft) else e for e in ordered)


def _split(path: str) -> List[str]:
    parts = path.split("/")
    if not path or any(p in ("", ".", "..") for p in parts):
        raise ValueError(f"Not a normalized relative path: {path!r}")
    return parts


class TreeBuilder:
    """
    Folds a set of normalized paths into an immutable folder/file tree.
    The same input always produces the same tree, whatever its order.
    """

    def build(self, paths: Union[Iterable[str], Mapping[str, FileMetadata]]) -> Tree:
        metadata: Mapping[str, FileMetadata] = paths if isinstance(paths, Mapping) else {}
        root = _FolderDraft("")

        for path in sorted(set(paths)):
            parts = _split(path)
            folder = root

            # 1. Folder chain
            for depth, segment in enumerate(parts[:-1]):
                existing = folder.entries.get(segment)
                if isinstance(existing, FileNode):
                    raise ConflictError("/".join(parts[: depth + 1]))
                if existing is None:
                    existing = _FolderDraft(segment)
                    folder.entries[segment] = existing
                folder = existing

            # 2. Leaf
            leaf = parts[-1]
            if isinstance(folder.entries.get(leaf), _FolderDraft):
                raise ConflictError(path)
            meta = metadata.get(path) or FileMetadata()
            folder.entries[leaf] = FileNode(
                name=leaf,
                size_estimate=meta.size_estimate,
                last_modified_label=meta.last_modified_label,
            )

        return _freeze_entries(root.entries)


def build_tree(paths: Union[Iterable[str], Mapping[str, FileMetadata]]) -> Tree:
    return TreeBuilder().build(paths)


# ---------------------------------------------------------
# Traversal helpers
# ---------------------------------------------------------
def join_path(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def walk(nodes: Tree, parent: str = "", depth: int = 0) -> Iterator[Tuple[str, TreeNode, int]]:
    """Depth-first (path, node, depth) over the whole tree."""
    for node in nodes:
        path = join_path(parent, node.name)
        yield path, node, depth
        if isinstance(node, FolderNode):
            yield from walk(node.children, path, depth + 1)


def find_node(nodes: Tree, path: str) -> Optional[TreeNode]:
    current: Optional[TreeNode] = None
    children = nodes
    for segment in path.split("/"):
        current = next((n for n in children if n.name == segment), None)
        if current is None:
            return None
        children = current.children if isinstance(current, FolderNode) else ()
    return current


def folder_paths(nodes: Tree) -> List[str]:
    return [path for path, node, _ in walk(nodes) if isinstance(node, FolderNode)]


def file_paths(nodes: Tree) -> List[str]:
    return [path for path, node, _ in walk(nodes) if isinstance(node, FileNode)]


def tree_to_dict(nodes: Tree) -> List[dict]:
    return [asdict(node) for node in nodes]


def format_size(size_bytes: Optional[int]) -> str:
    """Format file size in human-readable form (2.1KB)."""
    if size_bytes is None:
        return ""
    if size_bytes < 1024:
        return f"{size_bytes}B"
    size = float(size_bytes)
    for unit in ("KB", "MB", "GB"):
        size /= 1024
        if size < 1024 or unit == "GB":
            return f"{size:.1f}{unit}"
    return f"{size:.1f}GB"


# ---------------------------------------------------------
# The Formatter
# ---------------------------------------------------------
class TreeFormatter:
    def format(self, nodes: Tree, root_label: str = ".") -> str:
        """Converts the tree into a `tree`-style string."""
        lines = [root_label]
        self._render(nodes, lines, "")
        return "\n".join(lines)

    def _render(self, nodes: Tree, lines: list, prefix: str):
        count = len(nodes)
        for i, node in enumerate(nodes):
            is_last = i == count - 1
            # Visual logic (└── vs ├──)
            connector = "└── " if is_last else "├── "
            label = f"{node.name}/" if isinstance(node, FolderNode) else node.name
            lines.append(f"{prefix}{connector}{label}")

            if isinstance(node, FolderNode):
                self._render(node.children, lines, prefix + ("    " if is_last else "│   "))
