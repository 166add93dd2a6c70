from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Set

from services.filesystem_service import (
    FileNode,
    FolderNode,
    Tree,
    TreeNode,
    find_node,
    folder_paths,
    format_size,
    join_path,
)


@dataclass
class ViewState:
    """Per-session explorer state. Never persisted."""
    expanded_paths: Set[str] = field(default_factory=set)
    selected_file: Optional[str] = None
    filter_text: str = ""


@dataclass(frozen=True)
class VisibleNode:
    node: TreeNode
    depth: int
    path: str
    is_open: bool = False
    is_selected: bool = False

    @property
    def is_folder(self) -> bool:
        return isinstance(self.node, FolderNode)


class TreeViewModel:
    """
    Presentation state over an immutable tree: expanded folders, the
    selected file and a case-insensitive name filter.

    visible_nodes() is recomputed from the current state on every call.
    While a filter is active, folders that lead to a match are opened
    regardless of the expansion set so every match is reachable.
    """

    def __init__(self, tree: Tree, state: Optional[ViewState] = None):
        self._tree = tree
        self._folders = set(folder_paths(tree))
        self.state = state or ViewState()

    @property
    def tree(self) -> Tree:
        return self._tree

    def set_tree(self, tree: Tree) -> None:
        """Swap in a rebuilt tree, forgetting expansions that no longer apply."""
        self._tree = tree
        self._folders = set(folder_paths(tree))
        self.state.expanded_paths &= self._folders

    # ---- user actions ----
    def toggle_folder(self, path: str) -> None:
        if path not in self._folders:
            return
        if path in self.state.expanded_paths:
            self.state.expanded_paths.discard(path)
        else:
            self.state.expanded_paths.add(path)

    def select_file(self, path: Optional[str]) -> None:
        self.state.selected_file = path

    def set_filter(self, text: Optional[str]) -> None:
        self.state.filter_text = text or ""

    def expand_all(self) -> None:
        self.state.expanded_paths = set(self._folders)

    def collapse_all(self) -> None:
        self.state.expanded_paths = set()

    # ---- queries ----
    def is_expanded(self, path: str) -> bool:
        return path in self.state.expanded_paths

    def is_selected(self, path: str) -> bool:
        return self.state.selected_file == path

    def find_node(self, path: str) -> Optional[TreeNode]:
        return find_node(self._tree, path)

    def selected_node(self) -> Optional[FileNode]:
        if not self.state.selected_file:
            return None
        node = self.find_node(self.state.selected_file)
        return node if isinstance(node, FileNode) else None

    def visible_nodes(self) -> Iterator[VisibleNode]:
        query = self.state.filter_text.strip().lower()
        return self._visible(self._tree, "", 0, query, False)

    def _visible(self, nodes: Tree, parent: str, depth: int, query: str, ancestor_matched: bool) -> Iterator[VisibleNode]:
        for node in nodes:
            path = join_path(parent, node.name)
            is_folder = isinstance(node, FolderNode)
            self_match = bool(query) and query in node.name.lower()
            leads_to_match = bool(query) and is_folder and _has_match(node.children, query)

            if query and not (ancestor_matched or self_match or leads_to_match):
                continue

            is_open = is_folder and (path in self.state.expanded_paths or leads_to_match)
            yield VisibleNode(
                node=node,
                depth=depth,
                path=path,
                is_open=is_open,
                is_selected=self.state.selected_file == path,
            )

            if is_open:
                yield from self._visible(node.children, path, depth + 1, query, ancestor_matched or self_match)


def _has_match(nodes: Tree, query: str) -> bool:
    for node in nodes:
        if query in node.name.lower():
            return True
        if isinstance(node, FolderNode) and _has_match(node.children, query):
            return True
    return False


def render_visible(rows: Iterable[VisibleNode], indent: str = "  ") -> str:
    """Plain-text rendering of visible rows (▾ open folder, ▸ closed, › selected file)."""
    lines = []
    for row in rows:
        if row.is_folder:
            marker = "▾" if row.is_open else "▸"
            lines.append(f"{indent * row.depth}{marker} {row.node.name}/")
            continue
        marker = "›" if row.is_selected else " "
        details = "  ".join(
            part for part in (format_size(row.node.size_estimate), row.node.last_modified_label or "") if part
        )
        line = f"{indent * row.depth}{marker} {row.node.name}"
        lines.append(f"{line}  ({details})" if details else line)
    return "\n".join(lines)
