"""
Pydantic models for projects, conversations and design inputs.
"""
import uuid
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


FRAMEWORKS = ("Next.js + Tailwind", "React + Tailwind", "React Native", "Vite + React")
DEFAULT_FRAMEWORK = FRAMEWORKS[0]


def new_id() -> str:
    return str(uuid.uuid4())


class CodebaseBlob(BaseModel):
    """
    What an upload turned into. `kind` tells consumers whether `files` is a
    real archive listing or whether only opaque `text` is available.
    """
    kind: Literal["archive", "text"]
    name: Optional[str] = None
    size: int = 0
    files: Dict[str, str] = Field(default_factory=dict)
    file_sizes: Dict[str, int] = Field(default_factory=dict)
    file_modified: Dict[str, str] = Field(default_factory=dict)
    text: Optional[str] = None

    @property
    def file_count(self) -> int:
        return len(self.files)


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    framework: str = DEFAULT_FRAMEWORK
    progress: str = "0"

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Project name is required")
        return value

    @field_validator("framework")
    @classmethod
    def _known_framework(cls, value: str) -> str:
        if value not in FRAMEWORKS:
            raise ValueError(f"Framework must be one of: {', '.join(FRAMEWORKS)}")
        return value


class Project(ProjectCreate):
    id: str = Field(default_factory=new_id)
    codebase: Optional[CodebaseBlob] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)


class Conversation(BaseModel):
    id: str = Field(default_factory=new_id)
    project_id: str
    messages: List[ChatMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class DesignInputCreate(BaseModel):
    project_id: Optional[str] = None
    description: str = Field(min_length=1)
    figma_link: Optional[str] = None
    screenshots: List[str] = Field(default_factory=list)
    target_components: List[str] = Field(default_factory=list)


class DesignInput(DesignInputCreate):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=datetime.now)
