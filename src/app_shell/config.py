import logging

from src.components.property_editors import PropertyEditorRegistry
from src.domain.entities import ContentType, PropertyType
from src.ports.repo import ContentTypeRepoPort
from src.rules.models import ContentTypeRule, Rules

logger = logging.getLogger(__name__)


def content_type_from_rule(rule: ContentTypeRule) -> ContentType:
    # Ids are placeholders; the repository assigns real ones on save
    return ContentType(
        id=0,
        alias=rule.alias,
        name=rule.name,
        property_types=[
            PropertyType(
                id=0,
                alias=p.alias,
                name=p.name,
                editor_alias=p.editor,
                group=p.group,
                description=p.description,
            )
            for p in rule.properties
        ],
    )


def seed_content_types(rules: Rules, repo: ContentTypeRepoPort) -> list[ContentType]:
    """Upsert every content type declared in the rules."""
    seeded = [repo.save(content_type_from_rule(rule)) for rule in rules.content_types]
    logger.info("Seeded %d content type(s)", len(seeded))
    return seeded


def check_editor_aliases(rules: Rules, registry: PropertyEditorRegistry) -> list[str]:
    """
    Report property types whose editor is not registered.

    Such properties are skipped on save rather than failing, so this only warns.
    Returns "<contentType>.<property>" for each unresolved property.
    """
    missing = []
    for content_type in rules.content_types:
        for prop in content_type.properties:
            if registry.resolve(prop.editor) is None:
                logger.warning(
                    "Property %s.%s uses unknown editor '%s'",
                    content_type.alias,
                    prop.alias,
                    prop.editor,
                )
                missing.append(f"{content_type.alias}.{prop.alias}")
    return missing
