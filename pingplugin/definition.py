"""Loading of the static plugin capability descriptor."""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from pingplugin.errors import PluginError

logger = logging.getLogger(__name__)

DEFINITION_FILE = "plugin.json"


def load_definition(path: str | Path | None = None) -> dict[str, Any]:
    """Read the plugin descriptor.

    Args:
        path: Descriptor file to read; the bundled plugin.json when None

    Raises:
        PluginError: file missing, unreadable, or not a JSON object
    """
    try:
        if path is None:
            text = resources.files("pingplugin").joinpath(DEFINITION_FILE).read_text(encoding="utf-8")
        else:
            text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise PluginError(f"cannot read plugin definition: {e}") from e

    try:
        definition = json.loads(text)
    except json.JSONDecodeError as e:
        raise PluginError(f"invalid plugin definition: {e}") from e

    if not isinstance(definition, dict):
        raise PluginError("invalid plugin definition: expected a JSON object")

    logger.debug("Definition loaded: name=%s", definition.get("name"))
    return definition
