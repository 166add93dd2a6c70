"""
Domain exceptions shared by the services and the entrypoints.
"""
from typing import Literal

ExtractionReason = Literal["corrupt", "too_large", "unsupported_format"]


class WebCraftError(Exception):
    """Base class for every error the services raise on purpose."""


class ExtractionError(WebCraftError):
    """The uploaded buffer could not be turned into a file mapping."""

    def __init__(self, reason: ExtractionReason, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = f"Archive extraction failed ({reason})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ConflictError(WebCraftError):
    """A name is used both as a file and as a folder at the same position."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path conflict: '{path}' is both a file and a folder")


class ProjectNotFoundError(WebCraftError):
    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class UploadTooLargeError(WebCraftError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Upload is {size} bytes, limit is {limit} bytes")


class GenerationError(WebCraftError):
    """Wraps any failure talking to the LLM provider."""


class InvalidDesignImageError(WebCraftError):
    """A design screenshot could not be opened as an image."""
