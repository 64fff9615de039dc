"""
Property editor component models.

The data handed to an editor when a submitted value is deserialized.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    """A file already staged on disk for one property of a submission."""

    property_id: int
    temp_file_path: str
    file_name: str
    content_type: str | None = None


@dataclass(frozen=True)
class PropertyEditorData:
    """
    Auxiliary data for an editor.

    `files` is only set when at least one file was uploaded for the property.
    """

    files: tuple[UploadedFile, ...] | None = None


class SaveEffects:
    """
    Side effects deferred until the save that produced a value settles.

    Editors must not change anything outside the content item while values
    are being computed. They register work here instead: `on_commit` actions
    run once the item is persisted, `on_rollback` actions undo work already
    done (such as a file copied into the media store) when the save fails.
    """

    def __init__(self) -> None:
        self._on_commit: list[Callable[[], None]] = []
        self._on_rollback: list[Callable[[], None]] = []

    def on_commit(self, action: Callable[[], None]) -> None:
        self._on_commit.append(action)

    def on_rollback(self, action: Callable[[], None]) -> None:
        self._on_rollback.append(action)

    @property
    def pending(self) -> int:
        return len(self._on_commit) + len(self._on_rollback)

    def commit(self) -> None:
        actions = self._on_commit
        self._on_commit, self._on_rollback = [], []
        self._run(actions, "commit")

    def rollback(self) -> None:
        actions = self._on_rollback
        self._on_commit, self._on_rollback = [], []
        self._run(actions, "rollback")

    @staticmethod
    def _run(actions: list[Callable[[], None]], stage: str) -> None:
        # The outcome of the save is already decided; a failing cleanup is logged
        for action in actions:
            try:
                action()
            except OSError:
                logger.exception("Deferred %s action failed", stage)


@dataclass(frozen=True)
class ContentPropertyData:
    """Raw submitted value plus its auxiliary data."""

    value: Any
    additional: PropertyEditorData = PropertyEditorData()
    effects: SaveEffects = field(default_factory=SaveEffects)
