"""Per-document settings read from a leading ``<!-- twoslash: ... -->`` comment.

The payload is untrusted text from the document being rendered, so it is
parsed as data with :func:`yaml.safe_load` and never executed.  JS-style
object literals with bare keys (``{theme: "dark"}``) are valid YAML flow
mappings and keep working.  The compact form ``{theme:"dark"}`` is not: YAML
needs a space after the colon, so such keys are rejected instead of being
silently read as ``{'theme:"dark"': None}``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from twoslash_cli.errors import SettingsError

logger = logging.getLogger(__name__)

SETTINGS_MARKER = "<!-- twoslash: "
SETTINGS_END = " -->"

DEFAULT_THEME = "nord"

# Document keys (camelCase, as written in the comment) to attribute names.
_SETTING_KEYS = {
    "theme": "theme",
    "defaultCompilerOptions": "default_compiler_options",
    "ignoreCodeblocksWithCodefenceMeta": "ignore_codeblocks_with_codefence_meta",
}


@dataclass
class TwoslashSettings:
    theme: str = DEFAULT_THEME
    default_compiler_options: dict[str, Any] = field(default_factory=dict)
    ignore_codeblocks_with_codefence_meta: list[str] = field(default_factory=list)
    # Keys this project does not interpret; kept for callers that do.
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Optional[dict[str, Any]]) -> TwoslashSettings:
        """Build settings from the camelCase mapping found in a document."""
        settings = cls()
        for key, value in (data or {}).items():
            attr = _SETTING_KEYS.get(key)
            if attr is None:
                settings.extra[key] = value
            else:
                setattr(settings, attr, value)
        return settings


def get_settings_from_markdown(text: str, path: str | Path) -> Optional[dict[str, Any]]:
    """Return the settings mapping embedded at the top of *text*, or None.

    Raises:
        SettingsError: the payload is not a valid mapping.  The message names
            *path* and the literal payload.
    """
    if not text.startswith(SETTINGS_MARKER):
        return None

    payload = text[len(SETTINGS_MARKER):].split(SETTINGS_END, 1)[0]
    try:
        value = yaml.safe_load(payload)
    except yaml.YAMLError as exc:
        logger.error(
            "Twoslash CLI: Setting custom theme settings in %s failed. "
            "The parsed text is '%s' which bailed:", path, payload,
        )
        raise SettingsError(
            f"Invalid twoslash settings in {path}: could not parse '{payload}': {exc}"
        ) from exc

    if not isinstance(value, dict):
        logger.error(
            "Twoslash CLI: Settings in %s must be a mapping, got '%s'", path, payload
        )
        raise SettingsError(
            f"Invalid twoslash settings in {path}: '{payload}' is not a mapping"
        )

    key = _find_compact_key(value)
    if key is not None:
        logger.error(
            "Twoslash CLI: Settings in %s contain the unseparated key '%s' in '%s'",
            path, key, payload,
        )
        raise SettingsError(
            f"Invalid twoslash settings in {path}: could not parse '{payload}': "
            f"key '{key}' has no value; write 'key: value' with a space after the colon"
        )
    return value


def _find_compact_key(value: Any) -> Optional[str]:
    """Return the first ``key:value`` that YAML read as a single valueless key."""
    if isinstance(value, dict):
        for key, item in value.items():
            if item is None and isinstance(key, str) and ":" in key:
                return key
            found = _find_compact_key(item)
            if found is not None:
                return found
    elif isinstance(value, list):
        for item in value:
            found = _find_compact_key(item)
            if found is not None:
                return found
    return None
