from typing import Protocol

from src.domain.entities import ContentItem, ContentType


class ContentRepoPort(Protocol):
    def get_by_id(self, item_id: int) -> ContentItem | None:
        ...

    def save(self, content: ContentItem) -> ContentItem:
        """Persist content, assigning an id on first save. Raises on failure."""
        ...


class ContentTypeRepoPort(Protocol):
    def get_by_alias(self, alias: str) -> ContentType | None:
        ...

    def get_by_id(self, content_type_id: int) -> ContentType | None:
        ...

    def list_all(self) -> list[ContentType]:
        ...

    def save(self, content_type: ContentType) -> ContentType:
        ...
