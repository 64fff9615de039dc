"""
Content component - fetching, scaffolding, and saving content items.
"""

from ._mapper import to_content_item_display
from .component import (
    EMPTY_CONTENT_NAME,
    PropertyValueError,
    UnknownPropertyError,
    build_property_data,
    files_for_property,
    resolve_property_values,
    run,
    run_get_by_id,
    run_get_empty,
    run_save,
    scaffold_content,
)
from .models import (
    ContentDisplayOutput,
    ContentItemDisplay,
    ContentPropertyDisplay,
    ContentTabDisplay,
    ContentValidationError,
    GetContentByIdInput,
    GetEmptyContentInput,
    SaveContentInput,
    SubmittedProperty,
)
from .ports import ContentRepoPort, ContentTypeRepoPort, TimePort

__all__ = [
    # Entry points
    "run",
    "run_get_by_id",
    "run_get_empty",
    "run_save",
    # Save pipeline
    "EMPTY_CONTENT_NAME",
    "PropertyValueError",
    "UnknownPropertyError",
    "build_property_data",
    "files_for_property",
    "resolve_property_values",
    "scaffold_content",
    "to_content_item_display",
    # Input models
    "GetContentByIdInput",
    "GetEmptyContentInput",
    "SaveContentInput",
    "SubmittedProperty",
    # Output models
    "ContentDisplayOutput",
    "ContentItemDisplay",
    "ContentPropertyDisplay",
    "ContentTabDisplay",
    "ContentValidationError",
    # Ports
    "ContentRepoPort",
    "ContentTypeRepoPort",
    "TimePort",
]
