"""
Property editors component - resolving and running per-property value editors.
"""

from ._editors import (
    IntegerEditor,
    RichTextEditor,
    TextareaEditor,
    TextboxEditor,
    TrueFalseEditor,
    UploadFieldEditor,
)
from .component import (
    DuplicateEditorError,
    PropertyEditorRegistry,
    create_default_registry,
)
from .models import ContentPropertyData, PropertyEditorData, SaveEffects, UploadedFile
from .ports import MediaStorePort, PropertyEditorPort, RulesPort

__all__ = [
    # Registry
    "DuplicateEditorError",
    "PropertyEditorRegistry",
    "create_default_registry",
    # Editors
    "IntegerEditor",
    "RichTextEditor",
    "TextareaEditor",
    "TextboxEditor",
    "TrueFalseEditor",
    "UploadFieldEditor",
    # Models
    "ContentPropertyData",
    "PropertyEditorData",
    "SaveEffects",
    "UploadedFile",
    # Ports
    "MediaStorePort",
    "PropertyEditorPort",
    "RulesPort",
]
