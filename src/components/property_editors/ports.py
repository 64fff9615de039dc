"""
Property editor component port definitions.
"""

from __future__ import annotations

from typing import Any, Protocol

from .models import ContentPropertyData


class PropertyEditorPort(Protocol):
    """An editor that turns a raw submitted value into its stored form."""

    alias: str
    name: str

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        """
        Produce the value to store.

        Args:
            data: Submitted value and auxiliary data (uploaded files).
            current_value: The value currently persisted for the property.
        """
        ...


class MediaStorePort(Protocol):
    """Port for storing files attached to upload properties."""

    def save_file(self, property_id: int, file_name: str, source_path: str) -> str:
        """Copy a staged file into the media store and return its media path."""
        ...

    def get(self, path: str) -> bytes:
        """Retrieve bytes by media path. Raises FileNotFoundError."""
        ...

    def delete(self, path: str) -> None:
        ...


class RulesPort(Protocol):
    """Port for editor configuration."""

    def get_allowed_tags(self) -> list[str]:
        ...

    def get_allowed_attrs(self) -> dict[str, list[str]]:
        ...

    def get_forbidden_tags(self) -> list[str]:
        ...

    def get_forbidden_protocols(self) -> list[str]:
        ...
