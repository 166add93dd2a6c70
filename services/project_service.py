import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import PurePosixPath
from typing import Dict, List, Literal, Optional

from core.exceptions import ExtractionError, ProjectNotFoundError, UploadTooLargeError
from core.schemas import (
    DEFAULT_FRAMEWORK,
    ChatMessage,
    CodebaseBlob,
    Conversation,
    DesignInput,
    DesignInputCreate,
    Project,
    ProjectCreate,
)
from core.settings import settings
from services.archive_service import ArchiveExtractor, detect_format
from services.filesystem_service import FileMetadata, Tree, TreeFormatter, build_tree
from services.heuristic_service import HeuristicPathExtractor
from services.path_normalizer import ARCHIVE_SUFFIXES


# Shown when a project has nothing we can turn into a tree.
# Always flagged as a sample so it is never mistaken for the user's code.
SAMPLE_FILES: Dict[str, FileMetadata] = {
    "src/components/Header.tsx": FileMetadata(2150, "2 mins ago"),
    "src/components/Navigation.tsx": FileMetadata(1843, "5 mins ago"),
    "src/components/SearchBar.tsx": FileMetadata(1228, "10 mins ago"),
    "src/components/UserMenu.tsx": FileMetadata(921, "15 mins ago"),
    "src/pages/index.tsx": FileMetadata(1536, "1 hour ago"),
    "src/pages/dashboard.tsx": FileMetadata(3277, "2 hours ago"),
    "src/pages/profile.tsx": FileMetadata(2867, "1 day ago"),
    "src/styles/globals.css": FileMetadata(2560, "3 days ago"),
    "src/styles/components.css": FileMetadata(1946, "2 days ago"),
    "src/App.tsx": FileMetadata(819, "1 week ago"),
    "src/main.tsx": FileMetadata(307, "1 week ago"),
    "public/favicon.ico": FileMetadata(15360, "1 week ago"),
    "public/logo.svg": FileMetadata(2355, "1 week ago"),
    "package.json": FileMetadata(1228, "1 week ago"),
    "tsconfig.json": FileMetadata(512, "1 week ago"),
    "tailwind.config.js": FileMetadata(307, "1 week ago"),
}

SAMPLE_PROJECT_ID = "sample-project-1"

# Upper bound on source text sent to the model as project context
MAX_CONTEXT_CHARS = 12000


@dataclass(frozen=True)
class ProjectTree:
    nodes: Tree
    source: Literal["archive", "text", "sample"]

    @property
    def is_sample(self) -> bool:
        return self.source == "sample"


def build_sample_tree() -> Tree:
    return build_tree(SAMPLE_FILES)


# ---------------------------------------------------------
# Store
# ---------------------------------------------------------
class ProjectStore(ABC):
    """Storage boundary for projects, conversations and design inputs."""

    @abstractmethod
    def get(self, project_id: str) -> Optional[Project]: ...

    @abstractmethod
    def put(self, project: Project) -> Project: ...

    @abstractmethod
    def list(self) -> List[Project]: ...

    @abstractmethod
    def get_conversation(self, project_id: str) -> Optional[Conversation]: ...

    @abstractmethod
    def put_conversation(self, conversation: Conversation) -> Conversation: ...

    @abstractmethod
    def add_design_input(self, design_input: DesignInput) -> DesignInput: ...

    @abstractmethod
    def list_design_inputs(self, project_id: str) -> List[DesignInput]: ...


class InMemoryProjectStore(ProjectStore):
    """Process-local store for development and tests. Lost on restart."""

    def __init__(self):
        self._projects: Dict[str, Project] = {}
        self._conversations: Dict[str, Conversation] = {}
        self._design_inputs: Dict[str, DesignInput] = {}

    def get(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def put(self, project: Project) -> Project:
        self._projects[project.id] = project
        return project

    def list(self) -> List[Project]:
        return list(self._projects.values())

    def get_conversation(self, project_id: str) -> Optional[Conversation]:
        return self._conversations.get(project_id)

    def put_conversation(self, conversation: Conversation) -> Conversation:
        self._conversations[conversation.project_id] = conversation
        return conversation

    def add_design_input(self, design_input: DesignInput) -> DesignInput:
        self._design_inputs[design_input.id] = design_input
        return design_input

    def list_design_inputs(self, project_id: str) -> List[DesignInput]:
        return [d for d in self._design_inputs.values() if d.project_id == project_id]


def seed_sample_data(store: ProjectStore) -> None:
    """Adds the demo project and its conversation."""
    project = Project(
        id=SAMPLE_PROJECT_ID,
        name="E-commerce App",
        description="A modern e-commerce application with React and Tailwind CSS",
        framework=DEFAULT_FRAMEWORK,
        progress="78",
    )
    store.put(project)

    now = datetime.now()
    store.put_conversation(Conversation(
        project_id=project.id,
        messages=[
            ChatMessage(
                role="assistant",
                content=(
                    "I've analyzed your existing codebase. I see you want to update the header navigation. "
                    "I have a few questions to better understand your requirements:\n\n"
                    "1. Search Functionality: Should the search include autocomplete suggestions?\n"
                    "2. User Avatar: What options should appear in the dropdown menu?"
                ),
                timestamp=now - timedelta(minutes=5),
            ),
            ChatMessage(
                role="user",
                content="Yes, include autocomplete for search. For the avatar dropdown, add Profile, Settings, and Logout options.",
                timestamp=now - timedelta(minutes=3),
            ),
            ChatMessage(
                role="assistant",
                content=(
                    "Perfect! I'll generate the updated header component with search autocomplete and user dropdown. "
                    "Here's a preview of the changes I'll make to your Header.tsx component."
                ),
                timestamp=now - timedelta(minutes=1),
            ),
        ],
    ))


# ---------------------------------------------------------
# Service
# ---------------------------------------------------------
class ProjectService:
    """
    Project CRUD plus codebase ingestion and tree reconstruction.
    Structured archive data always wins over the text heuristic.
    """

    def __init__(
        self,
        store: Optional[ProjectStore] = None,
        extractor: Optional[ArchiveExtractor] = None,
        heuristic: Optional[HeuristicPathExtractor] = None,
    ):
        self.store = store if store is not None else InMemoryProjectStore()
        self.extractor = extractor or ArchiveExtractor()
        self.heuristic = heuristic or HeuristicPathExtractor()

    # ---- projects ----
    def list_projects(self) -> List[Project]:
        return self.store.list()

    def get_project(self, project_id: str) -> Project:
        project = self.store.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def create_project(
        self,
        name: str,
        description: Optional[str] = None,
        framework: str = DEFAULT_FRAMEWORK,
        upload: Optional[bytes] = None,
        upload_name: Optional[str] = None,
    ) -> Project:
        data = ProjectCreate(name=name, description=description or None, framework=framework)
        codebase = self.ingest_upload(upload, upload_name) if upload is not None else None

        project = Project(**data.model_dump(), codebase=codebase)
        self.store.put(project)
        logging.info(f"🆕 Created project '{project.name}' ({project.id})")
        return project

    def update_project(self, project_id: str, **changes) -> Project:
        project = self.get_project(project_id)
        merged = {**project.model_dump(), **changes, "id": project.id, "updated_at": datetime.now()}
        updated = Project.model_validate(merged)
        return self.store.put(updated)

    # ---- codebase ----
    def ingest_upload(self, data: bytes, filename: Optional[str] = None) -> CodebaseBlob:
        """
        Archives go through the extractor, anything else is kept as text.
        Raises ExtractionError / UploadTooLargeError; never invents content.
        """
        if len(data) > settings.MAX_UPLOAD_BYTES:
            raise UploadTooLargeError(len(data), settings.MAX_UPLOAD_BYTES)

        if detect_format(data) is not None:
            archive = self.extractor.extract(data, archive_name=filename)
            return CodebaseBlob(
                kind="archive",
                name=filename,
                size=len(data),
                files=archive.files,
                file_sizes={path: entry.size for path, entry in archive.entries.items()},
                file_modified={
                    path: entry.modified.strftime("%Y-%m-%d %H:%M")
                    for path, entry in archive.entries.items()
                    if entry.modified is not None
                },
            )

        if filename and filename.lower().endswith(ARCHIVE_SUFFIXES):
            raise ExtractionError("corrupt", f"{filename} does not contain a readable archive")

        logging.info(f"📝 Storing {filename or 'upload'} as plain text ({len(data)} bytes)")
        return CodebaseBlob(
            kind="text",
            name=filename,
            size=len(data),
            text=data.decode("utf-8", errors="replace"),
        )

    def build_project_tree(self, codebase: Optional[CodebaseBlob]) -> ProjectTree:
        """
        archive -> real tree; text -> heuristic guess; nothing found -> labeled sample.
        ConflictError from the builder propagates.
        """
        if codebase is None:
            return ProjectTree(build_sample_tree(), "sample")

        if codebase.kind == "archive":
            metadata = {
                path: FileMetadata(codebase.file_sizes.get(path), codebase.file_modified.get(path))
                for path in codebase.files
            }
            return ProjectTree(build_tree(metadata), "archive")

        paths = self.heuristic.extract(codebase.text or "")
        if not paths:
            logging.info("ℹ️ No paths recognized in text codebase, showing sample tree")
            return ProjectTree(build_sample_tree(), "sample")
        return ProjectTree(build_tree(paths), "text")

    def get_tree(self, project_id: str) -> ProjectTree:
        return self.build_project_tree(self.get_project(project_id).codebase)

    def read_file(self, project_id: str, path: str) -> Optional[str]:
        codebase = self.get_project(project_id).codebase
        if codebase is None or codebase.kind != "archive":
            return None
        return codebase.files.get(path)

    def find_component_sources(self, project_id: str, components: List[str]) -> Dict[str, str]:
        """Files whose base name matches one of the component names (Header -> Header.tsx)."""
        codebase = self.get_project(project_id).codebase
        if codebase is None or codebase.kind != "archive":
            return {}
        wanted = {c.strip().lower() for c in components if c.strip()}
        return {
            path: content
            for path, content in codebase.files.items()
            if PurePosixPath(path).stem.lower() in wanted or PurePosixPath(path).name.lower() in wanted
        }

    def codebase_context(self, project_id: str) -> str:
        """Tree listing plus as much source as fits, for prompting."""
        project = self.get_project(project_id)
        tree = self.build_project_tree(project.codebase)
        header = f"Project: {project.name} ({project.framework})"
        if tree.is_sample:
            return f"{header}\nNo codebase uploaded."

        lines = [header, TreeFormatter().format(tree.nodes, root_label=project.name)]
        codebase = project.codebase
        if codebase.kind == "text":
            lines.append((codebase.text or "")[:MAX_CONTEXT_CHARS])
            return "\n\n".join(lines)

        budget = MAX_CONTEXT_CHARS
        for path, content in codebase.files.items():
            if budget <= 0:
                break
            chunk = f"--- {path} ---\n{content[:budget]}"
            lines.append(chunk)
            budget -= len(chunk)
        return "\n\n".join(lines)

    # ---- conversations ----
    def get_conversation(self, project_id: str) -> Conversation:
        return self.store.get_conversation(project_id) or Conversation(project_id=project_id)

    def update_conversation(self, project_id: str, messages: List[ChatMessage]) -> Conversation:
        conversation = self.store.get_conversation(project_id)
        if conversation is None:
            conversation = Conversation(project_id=project_id, messages=messages)
        else:
            conversation = conversation.model_copy(update={"messages": messages, "updated_at": datetime.now()})
        return self.store.put_conversation(conversation)

    # ---- design inputs ----
    def create_design_input(self, data: DesignInputCreate) -> DesignInput:
        return self.store.add_design_input(DesignInput(**data.model_dump()))

    def list_design_inputs(self, project_id: str) -> List[DesignInput]:
        return self.store.list_design_inputs(project_id)
