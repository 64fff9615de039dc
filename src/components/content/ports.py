"""
Content component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import ContentItem, ContentType


class ContentRepoPort(Protocol):
    """Repository interface for content persistence."""

    def get_by_id(self, item_id: int) -> ContentItem | None:
        """Get content by ID."""
        ...

    def save(self, content: ContentItem) -> ContentItem:
        """Save or update content. Persistence errors propagate."""
        ...


class ContentTypeRepoPort(Protocol):
    """Repository interface for content type lookups."""

    def get_by_alias(self, alias: str) -> ContentType | None:
        """Get a content type by alias."""
        ...


class TimePort(Protocol):
    """Port for time operations."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
