from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules


def _extract_yaml(content: str) -> str:
    """Return the first ```yaml fenced block, or the whole text if none."""
    yaml_lines = []
    in_block = False
    found_block = False

    for line in content.splitlines():
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            break
        if in_block:
            yaml_lines.append(line)

    return "\n".join(yaml_lines) if found_block else content


def _check_unique_aliases(rules: Rules) -> None:
    seen: set[str] = set()
    for content_type in rules.content_types:
        if content_type.alias in seen:
            raise ValueError(f"Duplicate content type alias in rules: {content_type.alias}")
        seen.add(content_type.alias)

        property_aliases = [p.alias for p in content_type.properties]
        duplicates = {a for a in property_aliases if property_aliases.count(a) > 1}
        if duplicates:
            raise ValueError(
                f"Duplicate property aliases on content type '{content_type.alias}': "
                f"{', '.join(sorted(duplicates))}"
            )


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if YAML or schema invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(_extract_yaml(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        rules = Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e

    _check_unique_aliases(rules)
    return rules
