"""Compose config (YAML) comparison and rendering.

Two compose strings are equal when they parse to the same document, so
formatting or key-order differences never trigger an app.update.
"""

from typing import Any

import yaml


def parse_compose(text: str | None) -> Any:
    """Parse compose YAML. None/empty → None.

    Raises:
        yaml.YAMLError: If the text is not valid YAML
    """
    if text is None or not text.strip():
        return None
    return yaml.safe_load(text)


def compose_equal(a: str | None, b: str | None) -> bool:
    """Semantic equality of two compose strings.

    Falls back to exact string comparison when either side is not valid YAML.
    """
    if a == b:
        return True
    try:
        return parse_compose(a) == parse_compose(b)
    except yaml.YAMLError:
        return False


def render_compose(config: dict[str, Any] | None) -> str | None:
    """Render a decoded config mapping back to YAML (None when empty)."""
    if not config:
        return None
    return yaml.safe_dump(config, sort_keys=True, default_flow_style=False)
