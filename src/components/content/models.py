"""
Content component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.components.property_editors import PropertyEditorPort, UploadedFile
from src.domain.entities import ContentItem

# --- Validation Error ---


@dataclass(frozen=True)
class ContentValidationError:
    """Content validation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class GetContentByIdInput:
    """Input for retrieving content by id."""

    content_id: int


@dataclass(frozen=True)
class GetEmptyContentInput:
    """Input for scaffolding new content of a content type."""

    content_type_alias: str
    parent_id: int


@dataclass(frozen=True)
class SubmittedProperty:
    """One property of a save submission, with its editor already resolved."""

    id: int
    alias: str
    value: Any
    editor: PropertyEditorPort | None = None


@dataclass(frozen=True)
class SaveContentInput:
    """
    A bound and validated save submission.

    `persisted_content` is the fetched (or freshly scaffolded) item that the
    submitted values are applied to.
    """

    properties: tuple[SubmittedProperty, ...]
    persisted_content: ContentItem
    uploaded_files: tuple[UploadedFile, ...] = ()
    name: str | None = None


# --- Display Models ---


@dataclass(frozen=True)
class ContentPropertyDisplay:
    id: int
    alias: str
    label: str
    editor_alias: str
    value: Any
    description: str = ""


@dataclass(frozen=True)
class ContentTabDisplay:
    id: int
    label: str
    properties: list[ContentPropertyDisplay] = field(default_factory=list)


@dataclass(frozen=True)
class ContentItemDisplay:
    """Presentation view of a content item; never persisted."""

    id: int | None
    name: str
    parent_id: int
    content_type_alias: str
    content_type_name: str
    is_new: bool
    created_at: datetime
    updated_at: datetime
    tabs: list[ContentTabDisplay] = field(default_factory=list)

    def property_by_alias(self, alias: str) -> ContentPropertyDisplay | None:
        for tab in self.tabs:
            for prop in tab.properties:
                if prop.alias == alias:
                    return prop
        return None


# --- Output Models ---


@dataclass(frozen=True)
class ContentDisplayOutput:
    """Output containing a content display projection."""

    display: ContentItemDisplay | None
    errors: list[ContentValidationError] = field(default_factory=list)
    success: bool = True
