"""
Property editors component - alias to editor registry.

Editors register under their property-type alias at process start. Resolving
an alias with no registered editor is a normal outcome (the editor may have
been removed after content was authored) and returns None.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ._editors import (
    IntegerEditor,
    RichTextEditor,
    TextareaEditor,
    TextboxEditor,
    TrueFalseEditor,
    UploadFieldEditor,
)
from .ports import MediaStorePort, PropertyEditorPort, RulesPort

logger = logging.getLogger(__name__)


class DuplicateEditorError(ValueError):
    """Raised when two editors claim the same alias."""


class PropertyEditorRegistry:
    def __init__(self, editors: Iterable[PropertyEditorPort] = ()) -> None:
        self._editors: dict[str, PropertyEditorPort] = {}
        for editor in editors:
            self.register(editor)

    def register(self, editor: PropertyEditorPort) -> None:
        if editor.alias in self._editors:
            raise DuplicateEditorError(f"A property editor is already registered for '{editor.alias}'")
        self._editors[editor.alias] = editor
        logger.debug("Registered property editor %s", editor.alias)

    def resolve(self, alias: str) -> PropertyEditorPort | None:
        return self._editors.get(alias)

    def aliases(self) -> list[str]:
        return list(self._editors)

    def __contains__(self, alias: object) -> bool:
        return alias in self._editors

    def __len__(self) -> int:
        return len(self._editors)


def create_default_registry(
    media_store: MediaStorePort,
    rules: RulesPort | None = None,
) -> PropertyEditorRegistry:
    """Build a registry holding every built-in editor."""
    if rules is not None:
        richtext = RichTextEditor(
            allowed_tags=rules.get_allowed_tags(),
            allowed_attrs=rules.get_allowed_attrs(),
            forbidden_tags=rules.get_forbidden_tags(),
            forbidden_protocols=rules.get_forbidden_protocols(),
        )
    else:
        richtext = RichTextEditor()

    return PropertyEditorRegistry(
        [
            TextboxEditor(),
            TextareaEditor(),
            richtext,
            IntegerEditor(),
            TrueFalseEditor(),
            UploadFieldEditor(media_store),
        ]
    )
