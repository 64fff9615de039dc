"""
Projection of content items into their display shape.

Properties are grouped into tabs by their property type's group, in the
order the groups first appear on the content type.
"""

from __future__ import annotations

from src.domain.entities import ContentItem

from .models import ContentItemDisplay, ContentPropertyDisplay, ContentTabDisplay


def to_content_item_display(content: ContentItem) -> ContentItemDisplay:
    content_type = content.content_type
    groups: dict[str, list[ContentPropertyDisplay]] = {}

    for prop in content.properties:
        property_type = content_type.property_type_by_alias(prop.alias)
        label = property_type.name if property_type else prop.alias
        group = property_type.group if property_type else "Generic properties"

        groups.setdefault(group, []).append(
            ContentPropertyDisplay(
                id=prop.id,
                alias=prop.alias,
                label=label,
                editor_alias=prop.editor_alias,
                value=prop.value,
                description=property_type.description if property_type else "",
            )
        )

    tabs = [
        ContentTabDisplay(id=index, label=label, properties=properties)
        for index, (label, properties) in enumerate(groups.items(), start=1)
    ]

    return ContentItemDisplay(
        id=content.id,
        name=content.name,
        parent_id=content.parent_id,
        content_type_alias=content_type.alias,
        content_type_name=content_type.name,
        is_new=content.is_new,
        created_at=content.created_at,
        updated_at=content.updated_at,
        tabs=tabs,
    )
